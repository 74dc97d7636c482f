"""APL interfaces following Black Box Design principles."""
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Protocol

# On-disk keys, shared with the Saleor app SDK
SALEOR_API_URL_KEY = "saleorApiUrl"
_KNOWN_KEYS = (SALEOR_API_URL_KEY, "token", "appId", "domain", "jwks")


@dataclass
class AuthData:
    """Credentials issued to this app by one Saleor instance."""
    saleor_api_url: str
    token: str
    app_id: str
    domain: Optional[str] = None
    jwks: Optional[str] = None
    extra: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        """Serialize using the SDK's camelCase keys."""
        data: Dict[str, Any] = dict(self.extra)
        data.update({
            SALEOR_API_URL_KEY: self.saleor_api_url,
            "token": self.token,
            "appId": self.app_id,
        })
        if self.domain is not None:
            data["domain"] = self.domain
        if self.jwks is not None:
            data["jwks"] = self.jwks
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "AuthData":
        """
        Build a record from its persisted form.

        Raises:
            ValueError: If the mapping is not a record
        """
        if not isinstance(data, dict) or not data.get(SALEOR_API_URL_KEY):
            raise ValueError(f"Not an auth data record: missing {SALEOR_API_URL_KEY}")

        return cls(
            saleor_api_url=data[SALEOR_API_URL_KEY],
            token=data.get("token") or "",
            app_id=data.get("appId") or "",
            domain=data.get("domain"),
            jwks=data.get("jwks"),
            extra={k: v for k, v in data.items() if k not in _KNOWN_KEYS},
        )


class APL(Protocol):
    """
    Protocol for Auth Persistence Layers.

    Every implementation provides the full set of operations. Reads never
    raise (failures degrade to absent/empty); writes raise StorageWriteError.
    """

    name: str

    async def get(self, saleor_api_url: str) -> Optional[AuthData]:
        """Get the record for a tenant, or None."""
        ...

    async def set(self, auth_data: AuthData) -> None:
        """Insert or replace the record for auth_data.saleor_api_url."""
        ...

    async def delete(self, saleor_api_url: str) -> None:
        """Remove the record for a tenant. Absent keys are a no-op."""
        ...

    async def get_all(self) -> List[AuthData]:
        """Get every stored record."""
        ...

    async def is_ready(self) -> bool:
        """Check the backing store can be reached."""
        ...

    async def is_configured(self) -> bool:
        """True if records exist or the backing resource was never created."""
        ...
