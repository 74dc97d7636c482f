"""
Credential resolver: attaches the tenant's stored credentials to a request.

Runs before any business logic. Fails closed when the claimed Saleor
instance has no credentials in the APL.
"""

import json
import logging
from datetime import UTC, datetime
from typing import Any, Dict, Optional

from .context import RequestAuthContext
from .errors import BadRequestError, UnauthorizedError
from ..apl.interfaces import APL

logger = logging.getLogger(__name__)


class CredentialResolver:
    """Looks up the AuthData for the Saleor instance a request claims."""

    def __init__(self, apl: APL):
        """
        Initialize resolver with the shared APL.

        Args:
            apl: Auth Persistence Layer built at process start
        """
        self.apl = apl

    async def resolve(
        self,
        saleor_api_url: Optional[str],
        token: Optional[str] = None,
        ssr: bool = False,
    ) -> RequestAuthContext:
        """
        Resolve credentials for a request.

        Args:
            saleor_api_url: Value of the saleor-api-url header
            token: Raw dashboard token, if any
            ssr: True for server-rendered calls

        Returns:
            Fresh, unvalidated RequestAuthContext

        Raises:
            BadRequestError: No Saleor API URL was claimed
            UnauthorizedError: No credentials stored for the claimed URL
        """
        if not saleor_api_url:
            logger.warning("saleor-api-url not found in request context")
            raise BadRequestError(
                "Missing saleorApiUrl in request",
                reason="missing_saleor_api_url",
            )

        auth_data = await self.apl.get(saleor_api_url)

        if auth_data is None:
            snapshot = await self.failure_snapshot(saleor_api_url)
            logger.error(f"Auth data not found in APL: {json.dumps(snapshot)}")

            if snapshot["any_configured"]:
                reason = "installed_elsewhere"
                hint = (
                    "The app is installed for a different Saleor instance. Check that the "
                    "Saleor API URL matches your instance, or install the app from Saleor "
                    "Dashboard -> Apps."
                )
            else:
                reason = "not_installed"
                hint = "Install the app through Saleor Dashboard -> Apps."

            raise UnauthorizedError(
                f"No credential data found for {saleor_api_url}",
                reason=reason,
                hint=hint,
                data=snapshot,
            )

        logger.debug(
            f"Auth data found for {saleor_api_url}: has_token={bool(auth_data.token)}, "
            f"has_app_id={bool(auth_data.app_id)}"
        )

        return RequestAuthContext(
            saleor_api_url=auth_data.saleor_api_url,
            token=token,
            app_id=auth_data.app_id,
            app_token=auth_data.token,
            ssr=ssr,
        )

    async def failure_snapshot(self, saleor_api_url: str) -> Dict[str, Any]:
        """Operator-facing summary of what the APL does hold."""
        entries = await self.apl.get_all()
        return {
            "saleor_api_url": saleor_api_url,
            "apl_type": self.apl.name,
            "any_configured": bool(entries),
            "configured_count": len(entries),
            "available_domains": [entry.domain or entry.saleor_api_url for entry in entries],
            "timestamp": datetime.now(UTC).isoformat(),
        }
