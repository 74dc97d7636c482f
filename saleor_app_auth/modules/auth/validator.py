"""
Client token validator.

Confirms that a dashboard user acting for the resolved tenant sent the
request. Server-rendered calls are trusted without a signature check; every
other call has its token verified through the injected TokenVerifier.
"""

import logging
from typing import Optional, Sequence

from .context import RequestAuthContext, ValidationState
from .errors import (
    AppIdMismatchError,
    AuthError,
    ForbiddenError,
    InsufficientPermissionsError,
    InternalInconsistencyError,
    MalformedTokenError,
    SignatureMismatchError,
    TokenExpiredError,
    UnauthorizedError,
)
from .interfaces import TokenVerifier
from .permissions import (
    REQUIRED_SALEOR_PERMISSIONS,
    build_required_permissions,
    normalize_permissions,
)
from .token import decode_token_claims

logger = logging.getLogger(__name__)


def classify_verification_error(
    error: Exception, required_permissions: Sequence[str] = ()
) -> AuthError:
    """
    Map a verifier failure to a boundary error.

    Checked in priority order: expiry, app ID, signature, permissions.
    Exception type is trusted first; message text covers verifiers that
    raise plain exceptions.
    """
    message = str(error)
    lowered = message.lower()

    if isinstance(error, TokenExpiredError) or "expired" in lowered:
        logger.warning("JWT token has expired - user needs to refresh the page or reinstall the app")
        return UnauthorizedError(
            "JWT token has expired.",
            reason="token_expired",
            hint="Please refresh the page or reinstall the app from Saleor Dashboard.",
        )

    if isinstance(error, AppIdMismatchError) or "app id" in lowered:
        logger.warning("JWT app ID mismatch - token app ID doesn't match stored app ID")
        return UnauthorizedError(
            "JWT app ID mismatch.",
            reason="app_id_mismatch",
            hint="Please reinstall the app from Saleor Dashboard to sync app IDs.",
        )

    if isinstance(error, SignatureMismatchError) or "signature" in lowered:
        logger.warning("JWT signature verification failed - possible JWKS key rotation")
        return UnauthorizedError(
            "JWT signature verification failed.",
            reason="signature_mismatch",
            hint="Saleor may have rotated its signing keys. Please reinstall the app from Saleor Dashboard.",
        )

    if isinstance(error, InsufficientPermissionsError) or "permission" in lowered:
        missing = getattr(error, "missing_permissions", None) or list(required_permissions)
        logger.warning(f"JWT permission error - missing {missing}")
        return ForbiddenError(
            "Insufficient permissions.",
            hint=f"You need {', '.join(missing) or 'additional'} permission to use this app.",
            data={"missing_permissions": missing},
        )

    return UnauthorizedError(
        "JWT verification failed.",
        reason="verification_failed",
        hint="Please check your authentication and try again.",
    )


class ClientTokenValidator:
    """Validates the dashboard token attached to a resolved request."""

    def __init__(
        self,
        verifier: TokenVerifier,
        baseline_permissions: Sequence[str] = REQUIRED_SALEOR_PERMISSIONS,
    ):
        """
        Initialize with injected dependencies.

        Args:
            verifier: Cryptographic token verifier
            baseline_permissions: Permissions every request requires
        """
        self.verifier = verifier
        self.baseline_permissions = tuple(baseline_permissions)

    def _check_preconditions(self, ctx: RequestAuthContext) -> None:
        if not ctx.token and not ctx.ssr:
            raise InternalInconsistencyError(
                "Missing token in request. This middleware can be used only in frontend",
                reason="missing_token",
            )
        if not ctx.app_id:
            raise InternalInconsistencyError(
                "Missing appId in request. This middleware can be used after auth is attached",
                reason="missing_app_id",
            )
        if not ctx.saleor_api_url:
            raise InternalInconsistencyError(
                "Missing saleorApiUrl in request. This middleware can be used after auth is attached",
                reason="missing_saleor_api_url",
            )

    def _reject(self, ctx: RequestAuthContext, error: AuthError) -> AuthError:
        ctx.transition(ValidationState.REJECTED, reason=error.reason)
        return error

    async def validate(
        self,
        ctx: RequestAuthContext,
        extra_permissions: Optional[Sequence[str]] = None,
    ) -> RequestAuthContext:
        """
        Validate a resolved context in place.

        Args:
            ctx: Context produced by the credential resolver
            extra_permissions: Per-route permissions on top of the baseline

        Returns:
            The same context, TRUSTED or VALIDATED

        Raises:
            InternalInconsistencyError: Resolver did not populate the context
            UnauthorizedError: Token is malformed, expired or not genuine
            ForbiddenError: Token lacks a required permission
        """
        try:
            self._check_preconditions(ctx)
        except InternalInconsistencyError as e:
            self._reject(ctx, e)
            raise

        if ctx.ssr:
            logger.debug(f"Server-rendered call for {ctx.saleor_api_url}, skipping token verification")
            ctx.transition(ValidationState.TRUSTED)
            return ctx

        required = build_required_permissions(extra_permissions, self.baseline_permissions)
        logger.debug(f"Validating client token, required permissions: {required}")

        try:
            claims = decode_token_claims(ctx.token)
        except MalformedTokenError as e:
            logger.warning(f"Could not decode JWT payload: {e}")
            raise self._reject(ctx, UnauthorizedError(
                "Authorization token is malformed.",
                reason="malformed_token",
                hint="Please refresh the page to obtain a new token from Saleor Dashboard.",
            )) from e

        granted = normalize_permissions(claims)

        verifier_permissions = required
        if granted.user_permissions_satisfy(required):
            # TODO: security review: identity is still verified, but the
            # verifier no longer binds the permission check to the signature.
            logger.warning(
                "User has required permissions via user_permissions claim, "
                "verifying token with empty permission list"
            )
            verifier_permissions = []

        try:
            verified_claims = await self.verifier.verify(
                app_id=ctx.app_id,
                token=ctx.token,
                saleor_api_url=ctx.saleor_api_url,
                required_permissions=verifier_permissions,
            )
        except Exception as e:
            logger.error(
                f"JWT verification failed: {type(e).__name__}: {e} "
                f"(app_id={ctx.app_id}, saleor_api_url={ctx.saleor_api_url}, "
                f"token_length={len(ctx.token)}, required_permissions={required})"
            )
            raise self._reject(ctx, classify_verification_error(e, required)) from e

        if verified_claims:
            claims = verified_claims
            granted = normalize_permissions(claims)

        missing = granted.missing(required)
        if missing:
            raise self._reject(ctx, ForbiddenError(
                "Insufficient permissions.",
                hint=f"You need {', '.join(missing)} permission to use this app.",
                data={"missing_permissions": missing},
            ))

        ctx.claims = claims
        ctx.granted_permissions = granted.all
        ctx.transition(ValidationState.VALIDATED)
        logger.debug("JWT verification successful")
        return ctx
