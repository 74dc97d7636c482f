"""
Shared pytest fixtures for Saleor App Auth tests.

This module provides common fixtures including:
- File and Redis APL instances
- Auth data records for several tenants
- Dashboard tokens (unsigned for structural tests, RS256-signed for JWKS tests)
"""

import base64
import json
import os
import sys
from datetime import datetime, timedelta, timezone
from unittest.mock import AsyncMock, MagicMock

import jwt
import pytest
from cryptography.hazmat.primitives.asymmetric import rsa

# Add parent directory to path for imports
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from saleor_app_auth.modules.apl.file_apl import MultiDomainFileAPL
from saleor_app_auth.modules.apl.interfaces import AuthData

SHOP_URL = "https://shop.example/graphql/"
OTHER_SHOP_URL = "https://other-shop.example/graphql/"
APP_ID = "app1"


# =============================================================================
# Token helpers
# =============================================================================

def _b64(data: dict) -> str:
    raw = json.dumps(data).encode("utf-8")
    return base64.urlsafe_b64encode(raw).rstrip(b"=").decode("ascii")


def make_unsigned_token(claims: dict) -> str:
    """Three-segment token with a fake signature, for decode-only paths."""
    return f"{_b64({'alg': 'RS256', 'typ': 'JWT'})}.{_b64(claims)}.c2lnbmF0dXJl"


def dashboard_claims(**overrides) -> dict:
    """Claims shaped like a Saleor dashboard token for APP_ID."""
    now = datetime.now(timezone.utc)
    claims = {
        "iss": SHOP_URL,
        "sub": "user-123",
        "iat": int(now.timestamp()),
        "nbf": int(now.timestamp()),
        "exp": int((now + timedelta(minutes=5)).timestamp()),
        "app": APP_ID,
        "user_id": "VXNlcjox",
        "email": "staff@shop.example",
        "type": "thirdparty",
        "user_permissions": ["MANAGE_APPS", "MANAGE_ORDERS"],
    }
    claims.update(overrides)
    return claims


# =============================================================================
# Fixtures
# =============================================================================

@pytest.fixture
def auth_file(tmp_path):
    """Path of a not-yet-existing APL file."""
    return tmp_path / ".saleor-app-auth.json"


@pytest.fixture
def file_apl(auth_file):
    """File APL backed by a temporary file."""
    return MultiDomainFileAPL(str(auth_file))


@pytest.fixture
def shop_auth_data():
    return AuthData(saleor_api_url=SHOP_URL, token="t1", app_id=APP_ID)


@pytest.fixture
def other_auth_data():
    return AuthData(
        saleor_api_url=OTHER_SHOP_URL,
        token="t2",
        app_id="app2",
        domain="other-shop.example",
    )


@pytest.fixture
def mock_redis():
    """Create a mock async Redis client."""
    redis = AsyncMock()
    redis.hget = AsyncMock(return_value=None)
    redis.hset = AsyncMock(return_value=1)
    redis.hdel = AsyncMock(return_value=1)
    redis.hgetall = AsyncMock(return_value={})
    redis.hlen = AsyncMock(return_value=0)
    redis.exists = AsyncMock(return_value=0)
    redis.ping = AsyncMock(return_value=True)
    return redis


@pytest.fixture(scope="session")
def rsa_private_key():
    """RSA key standing in for a Saleor instance's signing key."""
    return rsa.generate_private_key(public_exponent=65537, key_size=2048)


@pytest.fixture
def sign_token(rsa_private_key):
    """Factory producing RS256 dashboard tokens."""
    def _sign(claims: dict, key=None) -> str:
        return jwt.encode(
            claims, key or rsa_private_key, algorithm="RS256", headers={"kid": "saleor-key"}
        )
    return _sign


@pytest.fixture
def jwk_client_mock(rsa_private_key):
    """PyJWKClient stand-in returning the test public key."""
    signing_key = MagicMock()
    signing_key.key = rsa_private_key.public_key()
    client = MagicMock()
    client.get_signing_key_from_jwt.return_value = signing_key
    return client
