"""
Redis-backed Auth Persistence Layer.

All records live in one hash, field = Saleor API URL, value = JSON record.
HSET and HDEL touch a single field atomically, so writes for different
tenants never race the way the file APL's read-modify-write does.
"""

import json
import logging
from typing import List, Optional

from redis.exceptions import RedisError

from .interfaces import AuthData
from ..auth.errors import StorageWriteError

logger = logging.getLogger(__name__)


class RedisAPL:
    """Redis hash APL keyed by Saleor API URL."""

    name = "redis"

    def __init__(self, redis_client, hash_key: str = "saleor_app_auth:apl"):
        """
        Initialize Redis APL.

        Args:
            redis_client: Async Redis client (decode_responses=True)
            hash_key: Name of the hash holding all records
        """
        self.redis = redis_client
        self.hash_key = hash_key

    async def get(self, saleor_api_url: str) -> Optional[AuthData]:
        try:
            raw = await self.redis.hget(self.hash_key, saleor_api_url)
        except RedisError as e:
            logger.error(f"Error reading auth data for {saleor_api_url}: {e}")
            return None

        if raw is None:
            logger.debug(f"No auth data found for: {saleor_api_url}")
            return None

        return self._decode(saleor_api_url, raw)

    async def set(self, auth_data: AuthData) -> None:
        try:
            await self.redis.hset(
                self.hash_key, auth_data.saleor_api_url, json.dumps(auth_data.to_dict())
            )
        except RedisError as e:
            logger.error(f"Error writing auth data for {auth_data.saleor_api_url}: {e}")
            raise StorageWriteError(
                f"Could not save auth data for {auth_data.saleor_api_url}: {e}"
            ) from e

        logger.debug(f"Auth data saved for: {auth_data.saleor_api_url}")

    async def delete(self, saleor_api_url: str) -> None:
        try:
            removed = await self.redis.hdel(self.hash_key, saleor_api_url)
        except RedisError as e:
            logger.error(f"Error deleting auth data for {saleor_api_url}: {e}")
            raise StorageWriteError(
                f"Could not delete auth data for {saleor_api_url}: {e}"
            ) from e

        if removed:
            logger.debug(f"Auth data deleted for: {saleor_api_url}")

    async def get_all(self) -> List[AuthData]:
        try:
            entries = await self.redis.hgetall(self.hash_key)
        except RedisError as e:
            logger.error(f"Error reading all auth data: {e}")
            return []

        records = []
        for key, raw in entries.items():
            record = self._decode(key, raw)
            if record is not None:
                records.append(record)
        return records

    async def is_ready(self) -> bool:
        try:
            return bool(await self.redis.ping())
        except RedisError as e:
            logger.warning(f"Redis APL not reachable: {e}")
            return False

    async def is_configured(self) -> bool:
        try:
            if not await self.redis.exists(self.hash_key):
                return True
            return await self.redis.hlen(self.hash_key) > 0
        except RedisError as e:
            logger.error(f"Error checking APL configuration: {e}")
            return False

    def _decode(self, key: str, raw) -> Optional[AuthData]:
        if isinstance(raw, bytes):
            raw = raw.decode("utf-8")
        try:
            return AuthData.from_dict(json.loads(raw))
        except (json.JSONDecodeError, ValueError) as e:
            logger.error(f"Malformed auth data stored for {key}: {e}")
            return None
