"""
Authentication pipeline facade following Black Box Design principles.

Combines the credential resolver and the client token validator behind one
call so the HTTP layer and server-side callers share the same rules.
"""

import logging
from typing import Any, Optional, Sequence

from .context import RequestAuthContext
from .errors import AuthError, UnauthorizedError
from .resolver import CredentialResolver
from .validator import ClientTokenValidator

logger = logging.getLogger(__name__)


class AuthPipeline:
    """Resolve then validate, for one request at a time."""

    def __init__(
        self,
        resolver: CredentialResolver,
        validator: ClientTokenValidator,
        debugger: Optional[Any] = None,
    ):
        """
        Initialize with injected dependencies.

        Args:
            resolver: Credential resolver bound to the shared APL
            validator: Client token validator
            debugger: Optional diagnostics with log_auth_failure_details()
        """
        self.resolver = resolver
        self.validator = validator
        self.debugger = debugger

    async def authenticate(
        self,
        saleor_api_url: Optional[str],
        token: Optional[str],
        ssr: bool = False,
        extra_permissions: Optional[Sequence[str]] = None,
    ) -> RequestAuthContext:
        """
        Authenticate a call on behalf of a Saleor instance.

        Args:
            saleor_api_url: Claimed Saleor API URL
            token: Dashboard token (ignored for server-rendered calls)
            ssr: True for server-rendered calls
            extra_permissions: Per-route permissions on top of the baseline

        Returns:
            TRUSTED or VALIDATED RequestAuthContext

        Raises:
            AuthError: Request rejected
        """
        ctx = await self.resolver.resolve(saleor_api_url, token=token, ssr=ssr)

        # A client call without a token is a client error, not an ordering bug
        if not ssr and not token:
            raise UnauthorizedError(
                "Missing authorization token in request",
                reason="missing_token",
                hint="Open the app from the Saleor Dashboard so the authorization-bearer header is sent.",
            )

        try:
            await self.validator.validate(ctx, extra_permissions=extra_permissions)
        except AuthError as e:
            if self.debugger is not None:
                self.debugger.log_auth_failure_details(
                    saleor_api_url,
                    ctx,
                    {"middleware": "validate_client_token", "reason": e.reason},
                )
            raise

        logger.debug(f"Request authenticated for {ctx.saleor_api_url} ({ctx.state.value})")
        return ctx
