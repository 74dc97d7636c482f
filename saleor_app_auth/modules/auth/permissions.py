"""
Permission claim normalization.

Dashboard tokens have carried granted permissions under several claim names
over time. They are folded into one GrantedPermissions value here, before
any policy check runs.
"""

from dataclasses import dataclass
from typing import Any, Dict, FrozenSet, Iterable, List, Optional, Sequence

REQUIRED_SALEOR_PERMISSIONS = ("MANAGE_APPS",)

# Token-scoped permission claims, in lookup order
TOKEN_PERMISSION_CLAIMS = ("scope", "permissions", "perms")
USER_PERMISSION_CLAIM = "user_permissions"


@dataclass(frozen=True)
class GrantedPermissions:
    """Permissions granted by a token, split by where they came from."""
    token_permissions: FrozenSet[str] = frozenset()
    user_permissions: FrozenSet[str] = frozenset()

    @property
    def all(self) -> FrozenSet[str]:
        return self.token_permissions | self.user_permissions

    def missing(self, required: Iterable[str]) -> List[str]:
        """Required permissions not granted by any claim."""
        granted = self.all
        return [perm for perm in required if perm not in granted]

    def satisfies(self, required: Iterable[str]) -> bool:
        return not self.missing(required)

    def user_permissions_satisfy(self, required: Iterable[str]) -> bool:
        return all(perm in self.user_permissions for perm in required)


def _as_permission_set(value: Any) -> FrozenSet[str]:
    if value is None:
        return frozenset()
    if isinstance(value, str):
        # OAuth-style scope string
        return frozenset(part for part in value.split() if part)
    if isinstance(value, (list, tuple, set, frozenset)):
        return frozenset(item for item in value if isinstance(item, str) and item)
    return frozenset()


def normalize_permissions(claims: Dict[str, Any]) -> GrantedPermissions:
    """Collect granted permissions from every tolerated claim name."""
    token_permissions: FrozenSet[str] = frozenset()
    for claim in TOKEN_PERMISSION_CLAIMS:
        token_permissions |= _as_permission_set(claims.get(claim))

    return GrantedPermissions(
        token_permissions=token_permissions,
        user_permissions=_as_permission_set(claims.get(USER_PERMISSION_CLAIM)),
    )


def build_required_permissions(
    extra: Optional[Sequence[str]] = None,
    baseline: Sequence[str] = REQUIRED_SALEOR_PERMISSIONS,
) -> List[str]:
    """Baseline plus per-route permissions, de-duplicated in order."""
    required: List[str] = []
    for perm in list(baseline) + list(extra or []):
        if perm not in required:
            required.append(perm)
    return required
