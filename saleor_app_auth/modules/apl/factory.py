"""
APL Factory following Black Box Design principles.

Builds the single store instance shared by the resolver, validator and
diagnostics for the lifetime of the process.
"""

import logging
from typing import Any, Optional

import redis.asyncio as redis

from .file_apl import MultiDomainFileAPL
from .interfaces import APL
from .redis_apl import RedisAPL
from ...config.provider import APLConfig

logger = logging.getLogger(__name__)

SUPPORTED_BACKENDS = ("file", "redis")


class APLFactory:
    """Composition root for the Auth Persistence Layer."""

    @staticmethod
    def build(config: APLConfig, redis_client: Optional[Any] = None) -> APL:
        """
        Build the APL selected by configuration.

        Args:
            config: APL configuration
            redis_client: Optional pre-built async Redis client

        Returns:
            APL implementation

        Raises:
            ValueError: If the backend is unknown or misconfigured
        """
        if config.backend == "file":
            logger.info(f"Using file APL at {config.file_path}")
            return MultiDomainFileAPL(config.file_path)

        if config.backend == "redis":
            if redis_client is None:
                if not config.redis_url:
                    raise ValueError(
                        "REDIS_URL environment variable is required when APL=redis."
                    )
                redis_client = redis.from_url(
                    config.redis_url,
                    encoding="utf-8",
                    decode_responses=True,
                )
            logger.info(f"Using Redis APL with hash {config.redis_hash_key}")
            return RedisAPL(redis_client, hash_key=config.redis_hash_key)

        raise ValueError(
            f"Unsupported APL backend '{config.backend}'. "
            f"Expected one of: {', '.join(SUPPORTED_BACKENDS)}"
        )
