"""Identity provider interface shared by the API and the route guard."""

from __future__ import annotations

from typing import List, Protocol

from app.domain.identity import Identity, OrganizationScope


class IdentityProvider(Protocol):
    """Minimal capability set required from an authentication provider."""

    async def get_current_identity(self) -> Identity | None:
        """Return the caller's identity, or ``None`` for anonymous sessions."""

    def get_organization_memberships(self, identity: Identity) -> List[OrganizationScope]:
        """Return the organizations *identity* is an active member of."""


def active_scopes(identity: Identity) -> List[OrganizationScope]:
    """Default membership projection used by the bundled providers."""

    return [membership.scope for membership in identity.active_memberships]
