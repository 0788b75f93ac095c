"""In-process identity provider for tests and local previews."""

from __future__ import annotations

import asyncio
from typing import List

from app.domain.identity import Identity, OrganizationScope
from app.ports.identity import active_scopes


class StaticIdentityProvider:
    """Serve a fixed identity, optionally after a simulated provider delay."""

    def __init__(self, identity: Identity | None, *, delay: float = 0.0) -> None:
        self._identity = identity
        self._delay = delay
        self.calls = 0

    async def get_current_identity(self) -> Identity | None:
        self.calls += 1
        if self._delay:
            await asyncio.sleep(self._delay)
        return self._identity

    def get_organization_memberships(self, identity: Identity) -> List[OrganizationScope]:
        return active_scopes(identity)
