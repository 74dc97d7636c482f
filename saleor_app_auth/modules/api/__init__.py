"""
API Module - Black Box Interface

Purpose: HTTP surface of the auth plumbing (debug endpoint, response models)
Interface: create_debug_router(), response models
Hidden: Endpoint wiring, serialization details
"""

from .debug_routes import create_debug_router
from .models import AuthContextResponse, DebugAuthResponse, HealthResponse

__all__ = ["AuthContextResponse", "DebugAuthResponse", "HealthResponse", "create_debug_router"]
