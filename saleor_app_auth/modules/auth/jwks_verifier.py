"""
JWKS-based dashboard token verifier implementing the TokenVerifier interface.

Mirrors the checks of the Saleor app SDK's verifyJWT:
- the token's app claim matches the stored app ID
- the signature matches a key published at <saleor origin>/.well-known/jwks.json
- expiry and other registered claims are valid
- the token grants every required permission
"""

import logging
from typing import Any, Dict, Optional, Sequence
from urllib.parse import urlsplit

import jwt
from jwt import PyJWKClient

from .errors import (
    AppIdMismatchError,
    InsufficientPermissionsError,
    MalformedTokenError,
    SignatureMismatchError,
    TokenExpiredError,
    TokenVerificationError,
)
from .permissions import normalize_permissions
from ...config.provider import JWTConfig

logger = logging.getLogger(__name__)

ALGORITHMS = ["RS256", "RS384", "RS512"]
APP_ID_CLAIMS = ("app", "app_id", "appId")


def get_jwks_url(saleor_api_url: str) -> str:
    """JWKS endpoint for a Saleor API URL (same origin, well-known path)."""
    parts = urlsplit(saleor_api_url)
    if not parts.scheme or not parts.netloc:
        raise TokenVerificationError(f"Invalid Saleor API URL: {saleor_api_url}")
    return f"{parts.scheme}://{parts.netloc}/.well-known/jwks.json"


class JWKSVerifier:
    """
    Verifies dashboard JWTs against the tenant's published keys.

    One PyJWKClient is kept per JWKS URL so signing keys are cached
    between requests for the same tenant.
    """

    def __init__(self, config: Optional[JWTConfig] = None):
        """
        Initialize verifier with injected config.

        Args:
            config: Token verification configuration
        """
        self.config = config or JWTConfig()
        self._clients: Dict[str, PyJWKClient] = {}

    def _get_client(self, jwks_url: str) -> PyJWKClient:
        client = self._clients.get(jwks_url)
        if client is None:
            client = PyJWKClient(
                jwks_url,
                cache_keys=True,
                lifespan=self.config.jwks_cache_lifespan,
            )
            self._clients[jwks_url] = client
        return client

    async def verify(
        self,
        app_id: str,
        token: str,
        saleor_api_url: str,
        required_permissions: Sequence[str],
    ) -> Dict[str, Any]:
        if not token:
            raise MalformedTokenError("Could not decode authorization token: token is empty")

        try:
            unverified = jwt.decode(token, options={"verify_signature": False})
        except jwt.DecodeError as e:
            raise MalformedTokenError(f"Could not decode authorization token: {e}") from e

        token_app_id = next(
            (unverified[claim] for claim in APP_ID_CLAIMS if unverified.get(claim)), None
        )
        if token_app_id != app_id:
            raise AppIdMismatchError("Token's app property is different than app ID")

        jwks_url = get_jwks_url(saleor_api_url)
        try:
            signing_key = self._get_client(jwks_url).get_signing_key_from_jwt(token)
        except jwt.PyJWKClientError as e:
            # Unknown kid usually means the tenant rotated its keys
            raise SignatureMismatchError(f"No matching signing key at {jwks_url}: {e}") from e

        try:
            claims = jwt.decode(
                token,
                signing_key.key,
                algorithms=ALGORITHMS,
                audience=self.config.audience,
                issuer=saleor_api_url if self.config.verify_issuer else None,
                leeway=self.config.leeway,
                options={
                    "verify_signature": True,
                    "verify_aud": bool(self.config.audience),
                    "verify_iss": self.config.verify_issuer,
                    "verify_exp": True,
                    "require": ["exp"],
                },
            )
        except jwt.ExpiredSignatureError as e:
            raise TokenExpiredError("Token is expired") from e
        except jwt.InvalidSignatureError as e:
            raise SignatureMismatchError("Token signature verification failed") from e
        except jwt.InvalidTokenError as e:
            raise TokenVerificationError(f"JWKS verification failed: {e}") from e

        missing = normalize_permissions(claims).missing(required_permissions)
        if missing:
            raise InsufficientPermissionsError(
                f"Token's permissions are not sufficient, missing: {', '.join(missing)}",
                missing_permissions=missing,
            )

        logger.debug(f"Token verified for app {app_id} at {saleor_api_url}")
        return claims
