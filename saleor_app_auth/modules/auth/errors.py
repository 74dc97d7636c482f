"""
Error taxonomy for the auth pipeline.

Two families live here:

- ``AuthError`` subclasses are what the pipeline raises at the request
  boundary. Each carries a machine-readable ``reason`` and a human-oriented
  ``hint`` so the caller always learns how to recover.
- ``TokenVerificationError`` subclasses are raised by token verifiers and
  converted into ``AuthError`` by the validator.
"""

from typing import Any, Dict, Optional


class AuthError(Exception):
    """Base class for errors rejected at the middleware boundary."""

    code = "UNAUTHORIZED"
    status_code = 401
    default_reason = "unauthorized"
    default_hint = "Open the app from the Saleor Dashboard and try again."

    def __init__(
        self,
        message: str,
        reason: Optional[str] = None,
        hint: Optional[str] = None,
        data: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message)
        self.message = message
        self.reason = reason or self.default_reason
        self.hint = hint or self.default_hint
        self.data = data or {}

    def to_dict(self) -> Dict[str, Any]:
        """Serialize for an HTTP error body."""
        return {
            "code": self.code,
            "reason": self.reason,
            "message": self.message,
            "hint": self.hint,
            "data": self.data,
        }

    def __repr__(self) -> str:
        return f"{type(self).__name__}(reason={self.reason!r}, message={self.message!r})"


class BadRequestError(AuthError):
    """Required identifying input is missing (no claim was made at all)."""

    code = "BAD_REQUEST"
    status_code = 400
    default_reason = "bad_request"
    default_hint = "Access the app through the Saleor Dashboard so the saleor-api-url header is sent."


class UnauthorizedError(AuthError):
    """No credentials, or the presented token is not acceptable."""


class ForbiddenError(AuthError):
    """Identity is valid but lacks a required permission."""

    code = "FORBIDDEN"
    status_code = 403
    default_reason = "insufficient_permissions"
    default_hint = "Ask a Saleor staff member with the MANAGE_APPS permission to use the app."


class InternalInconsistencyError(AuthError):
    """A context field that an earlier middleware must set is missing."""

    code = "INTERNAL_SERVER_ERROR"
    status_code = 500
    default_reason = "middleware_order"
    default_hint = "This is a server bug: the credential resolver must run before token validation."


class StorageWriteError(AuthError):
    """A persistence write or delete did not complete."""

    code = "STORAGE_WRITE_FAILURE"
    status_code = 500
    default_reason = "storage_write_failed"
    default_hint = "Check that the auth store is writable, then reinstall the app."


# Verifier-side failures


class TokenVerificationError(Exception):
    """Token could not be verified for a reason not covered below."""


class MalformedTokenError(TokenVerificationError):
    """Token is not a decodable header.payload.signature structure."""


class TokenExpiredError(TokenVerificationError):
    """Token exp claim is in the past."""


class AppIdMismatchError(TokenVerificationError):
    """Token was issued for a different app ID than the stored one."""


class SignatureMismatchError(TokenVerificationError):
    """Signature does not match any key published by the tenant."""


class InsufficientPermissionsError(TokenVerificationError):
    """Token does not grant every required permission."""

    def __init__(self, message: str, missing_permissions=None):
        super().__init__(message)
        self.missing_permissions = list(missing_permissions or [])
