"""
Auth debug endpoint for operators.

GET only. Reports what the APL holds for the calling Saleor instance, the
result of an APL round-trip health check, and relevant environment flags.

The health check writes and deletes a throwaway record, so a legacy
single-domain auth file is left in the multi-domain layout afterwards.
"""

import logging
from datetime import UTC, datetime

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse

from .models import DebugAuthResponse, DebugErrorResponse
from ..debug.auth_debugger import SALEOR_API_URL_HEADER, AuthDebugger
from ...config.provider import ConfigProvider

logger = logging.getLogger(__name__)

ALL_METHODS = ["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS", "HEAD"]


def create_debug_router(debugger: AuthDebugger, config_provider: ConfigProvider) -> APIRouter:
    """
    Create auth debug router with injected dependencies.

    Args:
        debugger: Diagnostic facade bound to the process APL
        config_provider: Configuration provider instance

    Returns:
        FastAPI router with the debug endpoint
    """
    router = APIRouter(tags=["debug"])

    @router.api_route("/api/debug/auth", methods=ALL_METHODS)
    async def debug_auth(request: Request):
        if request.method != "GET":
            return JSONResponse(status_code=405, content={"error": "Method not allowed"})

        try:
            saleor_api_url = request.headers.get(SALEOR_API_URL_HEADER)
            logger.info(
                f"Debug auth endpoint called for {saleor_api_url}, "
                f"headers: {sorted(request.headers.keys())}"
            )

            auth_debug_info = await debugger.debug_auth_state(saleor_api_url, request.headers)
            apl_health = await debugger.check_apl_health()

            apl_config = config_provider.get_apl_config()
            app_config = config_provider.get_app_config()

            response = DebugAuthResponse(
                timestamp=datetime.now(UTC).isoformat(),
                request_info={
                    "method": request.method,
                    "url": str(request.url),
                    "user_agent": request.headers.get("user-agent"),
                    "origin": request.headers.get("origin"),
                },
                auth_debug_info=auth_debug_info,
                apl_health=apl_health,
                environment={
                    "app_env": app_config.app_env,
                    "apl_type": apl_config.backend,
                    "has_secret_key": app_config.has_secret_key,
                    "allowed_domain_pattern": app_config.allowed_domain_pattern,
                },
            )

            logger.info(
                f"Debug auth response prepared: exists={auth_debug_info['auth_data_exists']}, "
                f"apl_healthy={apl_health['is_healthy']}, "
                f"total_entries={auth_debug_info['apl_stats']['total_entries']}"
            )
            return response.model_dump()

        except Exception as e:
            logger.error(f"Error in debug auth endpoint: {e}")
            body = DebugErrorResponse(
                error="Internal server error",
                message=str(e) or "Unknown error",
                timestamp=datetime.now(UTC).isoformat(),
            )
            return JSONResponse(status_code=500, content=body.model_dump())

    return router
