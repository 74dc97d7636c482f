"""
Auth diagnostics for operators.

Read-only views over the APL and the auth pipeline. The only write is the
throwaway record used by the health check, which is always cleaned up.
Raw tokens are never returned: only their presence and length.
"""

import json
import logging
import uuid
from datetime import UTC, datetime
from typing import Any, Dict, List, Mapping, Optional

from ..apl.interfaces import APL, AuthData
from ..auth.context import RequestAuthContext
from ..auth.errors import AuthError, UnauthorizedError

logger = logging.getLogger(__name__)

SALEOR_API_URL_HEADER = "saleor-api-url"
SALEOR_AUTHORIZATION_BEARER_HEADER = "authorization-bearer"


def _redact(auth_data: AuthData) -> Dict[str, Any]:
    return {
        "has_token": bool(auth_data.token),
        "token_length": len(auth_data.token) if auth_data.token else 0,
        "app_id": auth_data.app_id,
        "saleor_api_url": auth_data.saleor_api_url,
        "domain": auth_data.domain,
    }


class AuthDebugger:
    """Diagnostic facade over the APL and auth pipeline."""

    def __init__(self, apl: APL):
        """
        Initialize debugger.

        Args:
            apl: The process-wide APL instance
        """
        self.apl = apl

    async def debug_auth_state(
        self,
        saleor_api_url: Optional[str],
        headers: Optional[Mapping[str, str]] = None,
    ) -> Dict[str, Any]:
        """
        Snapshot of what the APL holds for a Saleor API URL.

        Args:
            saleor_api_url: URL to look up (may be None)
            headers: Request headers, only presence is reported

        Returns:
            Redacted debug info dictionary
        """
        logger.info(f"Starting auth debug analysis for {saleor_api_url}")
        headers = headers or {}

        auth_data = await self.apl.get(saleor_api_url) if saleor_api_url else None
        entries = await self.apl.get_all()

        debug_info = {
            "apl_type": self.apl.name,
            "saleor_api_url": saleor_api_url,
            "auth_data_exists": auth_data is not None,
            "auth_data": _redact(auth_data) if auth_data else None,
            "apl_stats": {
                "total_entries": len(entries),
                "entries": [
                    {
                        "domain": entry.domain or entry.saleor_api_url,
                        "has_token": bool(entry.token),
                        "app_id": entry.app_id,
                    }
                    for entry in entries
                ],
            },
            "headers": {
                "saleor_api_url": headers.get(SALEOR_API_URL_HEADER),
                "has_authorization_bearer": bool(headers.get(SALEOR_AUTHORIZATION_BEARER_HEADER)),
            },
        }

        logger.info(
            f"Auth debug info gathered: exists={debug_info['auth_data_exists']}, "
            f"total_entries={len(entries)}"
        )
        return debug_info

    async def check_apl_health(self) -> Dict[str, Any]:
        """
        Round-trip a throwaway record through the APL.

        A failed cleanup is reported in errors and can_delete, but does not
        undo the write and read results already observed.

        The probe goes through the normal write path. On the file APL a
        legacy single-domain file is therefore rewritten in the multi-domain
        shape: the tenant record is kept, only the layout changes.
        """
        errors: List[str] = []
        can_write = False
        can_read = False
        can_delete = False

        probe = AuthData(
            saleor_api_url=f"https://apl-health-check-{uuid.uuid4().hex}.invalid/graphql/",
            token="health-check-token",
            app_id="health-check-app-id",
            domain="apl-health-check.invalid",
        )

        try:
            await self.apl.set(probe)
            can_write = True
        except Exception as e:
            errors.append(f"APL write failed: {e}")

        if can_write:
            try:
                retrieved = await self.apl.get(probe.saleor_api_url)
                can_read = retrieved is not None and retrieved.app_id == probe.app_id
                if not can_read:
                    errors.append("APL read failed: written record not returned")
            except Exception as e:
                errors.append(f"APL read failed: {e}")

            try:
                await self.apl.delete(probe.saleor_api_url)
                can_delete = await self.apl.get(probe.saleor_api_url) is None
                if not can_delete:
                    errors.append("APL cleanup failed: health check record still present")
            except Exception as e:
                errors.append(f"APL cleanup failed: {e}")

        health = {
            "is_healthy": can_write and can_read and can_delete,
            "apl_type": self.apl.name,
            "is_ready": await self.apl.is_ready(),
            "is_configured": await self.apl.is_configured(),
            "can_write": can_write,
            "can_read": can_read,
            "can_delete": can_delete,
            "errors": errors,
        }

        if errors:
            logger.warning(f"APL health check reported errors: {errors}")
        return health

    def log_auth_failure_details(
        self,
        saleor_api_url: Optional[str],
        ctx: Optional[RequestAuthContext],
        additional_info: Optional[Dict[str, Any]] = None,
    ) -> None:
        """Emit a structured error log describing a rejected request."""
        details = {
            "saleor_api_url": saleor_api_url,
            "context": ctx.redacted() if ctx else None,
            "additional_info": additional_info or {},
            "timestamp": datetime.now(UTC).isoformat(),
        }
        logger.error(f"Authentication failure details: {json.dumps(details, default=str)}")

    async def explain_unauthorized(
        self,
        error: AuthError,
        saleor_api_url: Optional[str],
        token: Optional[str],
    ) -> AuthError:
        """
        Add troubleshooting steps to an Unauthorized error.

        Other error kinds are returned unchanged.
        """
        if not isinstance(error, UnauthorizedError):
            return error

        debug_info = await self.debug_auth_state(
            saleor_api_url, {SALEOR_API_URL_HEADER: saleor_api_url or ""}
        )
        data: Dict[str, Any] = dict(error.data)
        data["original_error"] = error.message
        troubleshooting: List[str] = []
        message = error.message

        if not saleor_api_url:
            message = "Missing Saleor API URL in request headers"
            troubleshooting.append("Ensure you're accessing the app through Saleor Dashboard")
            troubleshooting.append("Check that the AppBridge is properly initialized")
        elif not debug_info["auth_data_exists"]:
            message = f"No authentication data found for {saleor_api_url}"
            troubleshooting.append("Install the app through Saleor Dashboard -> Apps")
            troubleshooting.append("Verify the Saleor API URL matches your instance")
            troubleshooting.append("Check if the APL storage exists and is readable")
            domains = [entry["domain"] for entry in debug_info["apl_stats"]["entries"]]
            if domains:
                data["available_domains"] = domains
                troubleshooting.append(f"Found auth data for: {', '.join(domains)}")
        elif not token:
            message = "Missing authorization token in request headers"
            troubleshooting.append("Ensure you're accessing the app through Saleor Dashboard")
            troubleshooting.append("Check that the AppBridge connection is established")
            troubleshooting.append("Try refreshing the page or logging out/in to Saleor")

        data["troubleshooting"] = troubleshooting
        logger.error(f"Enhanced auth error analysis: {message} (reason={error.reason})")

        enhanced = UnauthorizedError(message, reason=error.reason, hint=error.hint, data=data)
        enhanced.__cause__ = error
        return enhanced
