from .provider import (
    APLConfig,
    AppConfig,
    ConfigProvider,
    EnvConfigProvider,
    JWTConfig,
)

__all__ = ["APLConfig", "AppConfig", "ConfigProvider", "EnvConfigProvider", "JWTConfig"]
