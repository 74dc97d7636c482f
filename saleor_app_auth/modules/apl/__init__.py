"""
APL Module - Black Box Interface

Purpose: Persist the credentials each Saleor instance issued to this app
Interface: get(), set(), delete(), get_all(), is_ready(), is_configured()
Hidden: File shapes, Redis layout, write serialization

Any backend implementing the APL protocol can replace the built-in ones
without affecting the resolver, validator or diagnostics.
"""

from .factory import APLFactory
from .file_apl import MultiDomainFileAPL
from .interfaces import APL, AuthData
from .redis_apl import RedisAPL

__all__ = ["APL", "APLFactory", "AuthData", "MultiDomainFileAPL", "RedisAPL"]
