"""
Authentication Module - Black Box Interface

Purpose: Resolve tenant credentials and validate dashboard tokens
Interface: AuthPipeline.authenticate(), CredentialResolver.resolve(),
           ClientTokenValidator.validate()
Hidden: Claim normalization, JWKS handling, error classification

The verifier is injected, so the JWKS implementation can be replaced
without affecting the resolver or the HTTP layer.
"""

from .context import RequestAuthContext, ValidationState
from .errors import (
    AuthError,
    BadRequestError,
    ForbiddenError,
    InternalInconsistencyError,
    StorageWriteError,
    UnauthorizedError,
)
from .jwks_verifier import JWKSVerifier
from .resolver import CredentialResolver
from .service import AuthPipeline
from .validator import ClientTokenValidator

__all__ = [
    "AuthError",
    "AuthPipeline",
    "BadRequestError",
    "ClientTokenValidator",
    "CredentialResolver",
    "ForbiddenError",
    "InternalInconsistencyError",
    "JWKSVerifier",
    "RequestAuthContext",
    "StorageWriteError",
    "UnauthorizedError",
    "ValidationState",
]
