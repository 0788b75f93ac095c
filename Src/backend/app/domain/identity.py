"""Identity values handed from the identity provider to policy and services."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import FrozenSet, Tuple


@dataclass(frozen=True, slots=True)
class OrganizationScope:
    """Tenant boundary for a single request."""

    organization_id: str

    def __post_init__(self) -> None:
        if not str(self.organization_id or "").strip():
            raise ValueError("organization_id must not be blank")


@dataclass(frozen=True, slots=True)
class OrganizationMembership:
    """An identity's role and extra capability tags inside one organization."""

    organization_id: str
    role: str = "team_member"
    permissions: FrozenSet[str] = field(default_factory=frozenset)
    is_active: bool = True

    @property
    def scope(self) -> OrganizationScope:
        return OrganizationScope(self.organization_id)


@dataclass(frozen=True, slots=True)
class Identity:
    """Authenticated caller, independent of any specific organization."""

    id: str
    name: str | None = None
    email: str | None = None
    memberships: Tuple[OrganizationMembership, ...] = ()

    def membership_for(self, scope: OrganizationScope) -> OrganizationMembership | None:
        """Return the active membership matching *scope*, if any."""

        for membership in self.memberships:
            if membership.is_active and membership.organization_id == scope.organization_id:
                return membership
        return None

    @property
    def active_memberships(self) -> Tuple[OrganizationMembership, ...]:
        return tuple(m for m in self.memberships if m.is_active)
