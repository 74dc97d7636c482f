"""
Saleor Auth Middleware Module - Black Box Interface

Purpose: Attach an authenticated tenant context to protected HTTP requests
Interface: SaleorAuthMiddleware, create_saleor_auth_middleware()
Hidden: Header extraction, error formatting, troubleshooting enrichment

Works with any FastAPI/Starlette app via app.middleware("http").
"""

import logging
from typing import Any, Dict, List, Optional, Sequence, Tuple

from fastapi import Request
from fastapi.responses import JSONResponse

from ..auth.errors import AuthError
from ..auth.service import AuthPipeline
from ..auth.token import strip_bearer

logger = logging.getLogger(__name__)

SALEOR_API_URL_HEADER = "saleor-api-url"
SALEOR_AUTHORIZATION_BEARER_HEADER = "authorization-bearer"


class SaleorAuthMiddleware:
    """
    Authentication middleware for Saleor dashboard requests.

    Requests under a protected prefix must carry the saleor-api-url header
    and a dashboard token. HTTP requests are never treated as server-rendered.
    """

    def __init__(
        self,
        pipeline: AuthPipeline,
        protected_prefixes: Sequence[str] = ("/api/",),
        skip_paths: Optional[Dict[str, list]] = None,
        route_permissions: Optional[Dict[str, List[str]]] = None,
        debugger: Optional[Any] = None,
        log_attempts: bool = True,
    ):
        """
        Initialize Saleor auth middleware.

        Args:
            pipeline: Auth pipeline (resolver + validator)
            protected_prefixes: Path prefixes that require authentication
            skip_paths: Dict of {path: [methods]} to skip authentication
            route_permissions: Dict of {path: [permissions]} added to the baseline
            debugger: Optional AuthDebugger used to enrich Unauthorized errors
            log_attempts: Whether to log authentication attempts
        """
        self.pipeline = pipeline
        self.protected_prefixes = tuple(protected_prefixes)
        self.skip_paths = skip_paths or {}
        self.route_permissions = route_permissions or {}
        self.debugger = debugger
        self.log_attempts = log_attempts

    def should_skip_auth(self, request: Request) -> bool:
        """Check if authentication should be skipped for this request."""
        path = str(request.url.path)
        method = request.method.upper()

        if path in self.skip_paths:
            allowed_methods = self.skip_paths[path]
            if "*" in allowed_methods or method in allowed_methods:
                return True

        return not path.startswith(self.protected_prefixes)

    def extract_credentials(self, request: Request) -> Tuple[Optional[str], Optional[str]]:
        """
        Extract tenant claim and dashboard token from request.

        Returns:
            Tuple of (saleor_api_url, token)
        """
        saleor_api_url = request.headers.get(SALEOR_API_URL_HEADER) or None

        token = request.headers.get(SALEOR_AUTHORIZATION_BEARER_HEADER)
        if not token:
            auth_header = request.headers.get("authorization")
            if auth_header and auth_header.startswith("Bearer "):
                token = auth_header
        if token:
            token = strip_bearer(token) or None

        return saleor_api_url, token

    def format_error(self, error: AuthError) -> Dict[str, Any]:
        """Format error response body."""
        return {
            "error": error.to_dict(),
            "status": error.status_code,
        }

    async def __call__(self, request: Request, call_next):
        """Process the request through Saleor authentication."""
        if self.should_skip_auth(request):
            return await call_next(request)

        saleor_api_url, token = self.extract_credentials(request)
        path = str(request.url.path)

        try:
            ctx = await self.pipeline.authenticate(
                saleor_api_url,
                token,
                ssr=False,
                extra_permissions=self.route_permissions.get(path),
            )
        except AuthError as e:
            error = e
            if self.debugger is not None:
                error = await self.debugger.explain_unauthorized(e, saleor_api_url, token)
            if self.log_attempts:
                logger.warning(
                    f"Rejected {request.method} {path}: {error.code} {error.reason} ({error.message})"
                )
            return JSONResponse(status_code=error.status_code, content=self.format_error(error))
        except Exception as e:
            logger.error(f"Error during authentication: {e}")
            return JSONResponse(
                status_code=500,
                content={
                    "error": {
                        "code": "INTERNAL_SERVER_ERROR",
                        "reason": "internal_error",
                        "message": "Internal error during authentication",
                        "hint": "Try again later. If the problem persists, contact the app administrator.",
                        "data": {},
                    },
                    "status": 500,
                },
            )

        if self.log_attempts:
            logger.info(f"Request authenticated for {ctx.saleor_api_url} ({ctx.state.value})")

        # Store authentication info for downstream use
        request.state.auth_context = ctx

        return await call_next(request)


def create_saleor_auth_middleware(
    pipeline: AuthPipeline,
    debugger: Optional[Any] = None,
    skip_paths: Optional[Dict[str, list]] = None,
    route_permissions: Optional[Dict[str, List[str]]] = None,
) -> SaleorAuthMiddleware:
    """
    Factory function to create Saleor auth middleware.

    Args:
        pipeline: Auth pipeline
        debugger: Optional AuthDebugger for error enrichment
        skip_paths: Paths to skip authentication {"/path": ["GET", "POST"]}
        route_permissions: Extra permissions per path

    Returns:
        Configured SaleorAuthMiddleware instance
    """
    default_skip_paths = {
        "/health": ["GET"],
        "/api/debug/auth": ["*"],
        "/api/manifest": ["GET"],
        "/api/register": ["POST"],
    }

    if skip_paths:
        default_skip_paths.update(skip_paths)

    return SaleorAuthMiddleware(
        pipeline=pipeline,
        skip_paths=default_skip_paths,
        route_permissions=route_permissions,
        debugger=debugger,
    )
