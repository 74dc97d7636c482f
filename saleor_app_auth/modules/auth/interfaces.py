"""Authentication interfaces following Black Box Design principles."""
from typing import Any, Dict, Protocol, Sequence


class TokenVerifier(Protocol):
    """Protocol for cryptographic token verification - allows swappable implementations."""

    async def verify(
        self,
        app_id: str,
        token: str,
        saleor_api_url: str,
        required_permissions: Sequence[str],
    ) -> Dict[str, Any]:
        """
        Verify a dashboard token for an app installation.

        Args:
            app_id: App ID stored for the tenant
            token: Raw JWT (no Bearer prefix)
            saleor_api_url: Tenant the token claims to come from
            required_permissions: Permissions the token must grant

        Returns:
            Verified claims

        Raises:
            TokenVerificationError: Or a subclass describing the failure
        """
        ...
