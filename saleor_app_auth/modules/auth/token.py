"""Structural decoding of compact JWTs (no signature check)."""

import base64
import binascii
import json
from typing import Any, Dict

from .errors import MalformedTokenError


def strip_bearer(token: str) -> str:
    """Remove a leading "Bearer " prefix if present."""
    if token.startswith("Bearer "):
        return token[7:].strip()
    return token.strip()


def decode_token_claims(token: str) -> Dict[str, Any]:
    """
    Decode the payload segment of a header.payload.signature token.

    Raises:
        MalformedTokenError: If the token is not a three-segment structure
            with a JSON object payload
    """
    if not token:
        raise MalformedTokenError("Token is empty")

    parts = token.split(".")
    if len(parts) != 3 or not parts[1]:
        raise MalformedTokenError(f"Token has {len(parts)} segments, expected 3")

    payload = parts[1]
    payload += "=" * (-len(payload) % 4)
    try:
        claims = json.loads(base64.urlsafe_b64decode(payload.encode("ascii")))
    except (binascii.Error, UnicodeError, ValueError) as e:
        raise MalformedTokenError(f"Could not decode token payload: {e}") from e

    if not isinstance(claims, dict):
        raise MalformedTokenError("Token payload is not a JSON object")
    return claims
