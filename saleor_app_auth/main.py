#!/usr/bin/env python3
"""
Saleor App Auth - Main Entry Point

This is the thin orchestration layer that:
1. Loads configuration
2. Builds the APL, verifier, resolver, validator and diagnostics once
3. Serves the health check, debug endpoint and protected routes

All business logic is in the modules, following black box principles.
"""

import logging
import logging.config as log_config
from contextlib import asynccontextmanager
from datetime import UTC, datetime
from typing import Optional

import uvicorn
from fastapi import FastAPI, HTTPException, Request

from saleor_app_auth.config.provider import ConfigProvider, EnvConfigProvider
from saleor_app_auth.logging_config import get_logging_config
from saleor_app_auth.modules.api import AuthContextResponse, HealthResponse, create_debug_router
from saleor_app_auth.modules.apl import APL, APLFactory, RedisAPL
from saleor_app_auth.modules.auth import (
    AuthPipeline,
    ClientTokenValidator,
    CredentialResolver,
    JWKSVerifier,
)
from saleor_app_auth.modules.auth.interfaces import TokenVerifier
from saleor_app_auth.modules.debug import AuthDebugger
from saleor_app_auth.modules.middleware import create_saleor_auth_middleware

logger = logging.getLogger(__name__)


def create_app(
    config_provider: Optional[ConfigProvider] = None,
    apl: Optional[APL] = None,
    verifier: Optional[TokenVerifier] = None,
) -> FastAPI:
    """
    Build the application and its auth stack.

    Args:
        config_provider: Configuration provider (defaults to environment)
        apl: Pre-built APL (defaults to the configured backend)
        verifier: Token verifier (defaults to JWKS verification)

    Returns:
        Configured FastAPI application
    """
    config_provider = config_provider or EnvConfigProvider()
    app_config = config_provider.get_app_config()
    jwt_config = config_provider.get_jwt_config()

    # One APL per process, injected everywhere
    apl = apl or APLFactory.build(config_provider.get_apl_config())
    verifier = verifier or JWKSVerifier(jwt_config)

    debugger = AuthDebugger(apl)
    pipeline = AuthPipeline(
        resolver=CredentialResolver(apl),
        validator=ClientTokenValidator(verifier, jwt_config.required_permissions),
        debugger=debugger,
    )

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info(f"Starting Saleor App Auth with {apl.name} APL...")
        if not await apl.is_ready():
            logger.error(f"{apl.name} APL is not ready")
        yield
        logger.info("Shutting down Saleor App Auth...")
        if isinstance(apl, RedisAPL):
            await apl.redis.aclose()
        logger.info("Saleor App Auth shutdown complete")

    app = FastAPI(
        title="Saleor App Auth",
        description="Tenant credential persistence and dashboard token verification",
        version="1.0.0",
        lifespan=lifespan,
    )
    app.state.apl = apl
    app.state.pipeline = pipeline
    app.state.debugger = debugger

    app.middleware("http")(create_saleor_auth_middleware(pipeline, debugger=debugger))

    if app_config.debug_endpoint_enabled:
        app.include_router(create_debug_router(debugger, config_provider))
        logger.warning("Auth debug endpoint enabled at /api/debug/auth")

    @app.get("/health", response_model=HealthResponse)
    async def health() -> HealthResponse:
        ready = await apl.is_ready()
        return HealthResponse(
            status="ok" if ready else "degraded",
            apl_type=apl.name,
            apl_ready=ready,
            timestamp=datetime.now(UTC).isoformat(),
        )

    @app.get("/api/auth/context", response_model=AuthContextResponse)
    async def auth_context(request: Request) -> AuthContextResponse:
        """Return the authenticated context attached by the middleware."""
        ctx = getattr(request.state, "auth_context", None)
        if ctx is None:
            raise HTTPException(500, "Auth context missing: middleware not installed")
        return AuthContextResponse.from_context(ctx)

    return app


def main() -> None:
    """Run the API server."""
    config_provider = EnvConfigProvider()
    app_config = config_provider.get_app_config()

    log_config.dictConfig(get_logging_config())

    uvicorn.run(
        create_app(config_provider),
        host=app_config.host,
        port=app_config.port,
        log_config=get_logging_config(),
    )


if __name__ == "__main__":
    main()
