"""
Saleor App Auth API response models.
"""

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field

from ..auth.context import RequestAuthContext, ValidationState


class HealthResponse(BaseModel):
    """Liveness and APL readiness."""

    status: str = Field(..., description="ok or degraded")
    apl_type: str
    apl_ready: bool
    timestamp: str


class AuthContextResponse(BaseModel):
    """Redacted view of the authenticated request context."""

    saleor_api_url: str
    app_id: str
    has_app_token: bool
    state: ValidationState
    granted_permissions: List[str] = Field(default_factory=list)
    user_id: Optional[str] = None
    email: Optional[str] = None

    @classmethod
    def from_context(cls, ctx: RequestAuthContext) -> "AuthContextResponse":
        return cls(
            saleor_api_url=ctx.saleor_api_url,
            app_id=ctx.app_id,
            has_app_token=bool(ctx.app_token),
            state=ctx.state,
            granted_permissions=sorted(ctx.granted_permissions),
            user_id=ctx.claims.get("user_id") or ctx.claims.get("sub"),
            email=ctx.claims.get("email"),
        )


class DebugErrorResponse(BaseModel):
    """Body returned when the debug endpoint itself fails."""

    error: str
    message: str
    timestamp: str


class DebugAuthResponse(BaseModel):
    """Full auth debug snapshot."""

    timestamp: str
    request_info: Dict[str, Any]
    auth_debug_info: Dict[str, Any]
    apl_health: Dict[str, Any]
    environment: Dict[str, Any]
