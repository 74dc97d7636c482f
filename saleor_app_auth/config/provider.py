"""Configuration provider following Black Box Design principles."""
import os
from dataclasses import dataclass, field
from typing import List, Optional, Protocol


def _env_flag(name: str, default: str = "false") -> bool:
    return os.getenv(name, default).lower() == "true"


@dataclass
class APLConfig:
    """Auth Persistence Layer configuration."""
    backend: str = "file"
    file_path: str = ".saleor-app-auth.json"
    redis_url: Optional[str] = None
    redis_hash_key: str = "saleor_app_auth:apl"

    @property
    def is_redis(self) -> bool:
        """Check if the Redis backend is selected."""
        return self.backend == "redis"


@dataclass
class JWTConfig:
    """Dashboard token verification configuration."""
    jwks_cache_lifespan: int = 3600
    audience: Optional[str] = None
    verify_issuer: bool = False
    leeway: int = 0
    required_permissions: List[str] = field(default_factory=lambda: ["MANAGE_APPS"])


@dataclass
class AppConfig:
    """Application configuration."""
    app_env: str = "production"
    host: str = "0.0.0.0"
    port: int = 3000
    secret_key: Optional[str] = None
    allowed_domain_pattern: Optional[str] = None
    debug_endpoint_enabled: bool = False

    @property
    def has_secret_key(self) -> bool:
        return bool(self.secret_key)


class ConfigProvider(Protocol):
    """Protocol for configuration providers."""

    def get_apl_config(self) -> APLConfig:
        """Get APL configuration."""
        ...

    def get_jwt_config(self) -> JWTConfig:
        """Get token verification configuration."""
        ...

    def get_app_config(self) -> AppConfig:
        """Get application configuration."""
        ...


class EnvConfigProvider:
    """Environment-based configuration provider."""

    def get_apl_config(self) -> APLConfig:
        """Get APL configuration from environment variables."""
        backend = os.getenv("APL", "file").strip().lower() or "file"

        return APLConfig(
            backend=backend,
            file_path=os.getenv("FILE_APL_PATH", ".saleor-app-auth.json"),
            redis_url=os.getenv("REDIS_URL"),
            redis_hash_key=os.getenv("REDIS_APL_HASH_KEY", "saleor_app_auth:apl"),
        )

    def get_jwt_config(self) -> JWTConfig:
        """Get token verification configuration from environment variables."""
        return JWTConfig(
            jwks_cache_lifespan=int(os.getenv("JWKS_CACHE_LIFESPAN", "3600")),
            audience=os.getenv("JWT_AUDIENCE") or None,
            verify_issuer=_env_flag("JWT_VERIFY_ISSUER"),
            leeway=int(os.getenv("JWT_LEEWAY", "0")),
        )

    def get_app_config(self) -> AppConfig:
        """Get application configuration from environment variables."""
        app_env = os.getenv("APP_ENV", "production")

        return AppConfig(
            app_env=app_env,
            host=os.getenv("API_HOST", "0.0.0.0"),
            port=int(os.getenv("API_PORT", "3000")),
            secret_key=os.getenv("SECRET_KEY"),
            allowed_domain_pattern=os.getenv("ALLOWED_DOMAIN_PATTERN"),
            # Debug endpoint exposes tenant metadata, off unless asked for
            debug_endpoint_enabled=_env_flag(
                "DEBUG_ENDPOINT_ENABLED", "true" if app_env == "development" else "false"
            ),
        )
