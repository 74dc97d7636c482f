"""Per-request authentication context and its validation state machine."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, FrozenSet, Optional

from .errors import InternalInconsistencyError


class ValidationState(str, Enum):
    """Validation state of a request.

    UNVALIDATED -> TRUSTED     (server-rendered call)
    UNVALIDATED -> VALIDATED   (token verified)
    UNVALIDATED -> REJECTED    (terminal, no retries)
    """

    UNVALIDATED = "unvalidated"
    TRUSTED = "trusted"
    VALIDATED = "validated"
    REJECTED = "rejected"


@dataclass
class RequestAuthContext:
    """Authentication state for one request. Never shared across requests."""
    saleor_api_url: Optional[str] = None
    token: Optional[str] = None
    app_id: Optional[str] = None
    app_token: Optional[str] = None
    ssr: bool = False
    state: ValidationState = ValidationState.UNVALIDATED
    rejection_reason: Optional[str] = None
    granted_permissions: FrozenSet[str] = field(default_factory=frozenset)
    claims: Dict[str, Any] = field(default_factory=dict)

    @property
    def is_authenticated(self) -> bool:
        return self.state in (ValidationState.TRUSTED, ValidationState.VALIDATED)

    def transition(self, state: ValidationState, reason: Optional[str] = None) -> None:
        """
        Move out of UNVALIDATED.

        Raises:
            InternalInconsistencyError: If the context was already decided
        """
        if self.state is not ValidationState.UNVALIDATED:
            raise InternalInconsistencyError(
                f"Auth context already {self.state.value}, cannot move to {state.value}",
                reason="validated_twice",
                hint="This is a server bug: the token validator ran twice for one request.",
            )
        if state is ValidationState.UNVALIDATED:
            raise InternalInconsistencyError(
                "Auth context cannot move back to unvalidated",
                reason="invalid_transition",
            )
        self.state = state
        if state is ValidationState.REJECTED:
            self.rejection_reason = reason

    def redacted(self) -> Dict[str, Any]:
        """Log-safe view: token presence and length only."""
        return {
            "saleor_api_url": self.saleor_api_url,
            "has_token": bool(self.token),
            "token_length": len(self.token) if self.token else 0,
            "has_app_id": bool(self.app_id),
            "app_id": self.app_id,
            "has_app_token": bool(self.app_token),
            "ssr": self.ssr,
            "state": self.state.value,
            "rejection_reason": self.rejection_reason,
        }
