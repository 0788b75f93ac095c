"""Navigation gate deciding whether a protected view may be shown.

A guard starts in ``UNKNOWN`` and resolves exactly once against the identity
provider. While unresolved it only ever yields :class:`Loading`, so protected
content cannot be shown before the provider has answered.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Generic, TypeVar, Union

from loguru import logger

from app.config import settings
from app.domain.identity import Identity, OrganizationScope
from app.policy.evaluator import Verdict, evaluate_access
from app.policy.permissions import CLIENT, TEAM_MEMBER, required_for_route
from app.ports.identity import IdentityProvider

T = TypeVar("T")

# Where a caller lacking the required role lands instead.
ROLE_HOME = {CLIENT: "/client-dashboard", TEAM_MEMBER: "/projects"}


class GuardState(str, Enum):
    UNKNOWN = "unknown"
    UNAUTHENTICATED = "unauthenticated"
    AUTHENTICATED_NO_ORG = "authenticated_no_org"
    AUTHENTICATED_IN_ORG = "authenticated_in_org"


@dataclass(frozen=True, slots=True)
class Allow:
    decision: str = "allow"


@dataclass(frozen=True, slots=True)
class Redirect:
    target: str
    decision: str = "redirect"


@dataclass(frozen=True, slots=True)
class Loading:
    decision: str = "loading"


GuardOutcome = Union[Allow, Redirect, Loading]


@dataclass(frozen=True, slots=True)
class Rendered(Generic[T]):
    """What a view should display after consulting the guard."""

    outcome: GuardOutcome
    content: T | None = None


class RouteGuard:
    """Compose an identity provider with the policy evaluator for one navigation."""

    def __init__(
        self,
        provider: IdentityProvider,
        organization_id: str | None = None,
        *,
        sign_in_path: str | None = None,
        organization_setup_path: str | None = None,
        unauthorized_path: str | None = None,
    ) -> None:
        self._provider = provider
        self._requested_org = (organization_id or "").strip() or None
        self._sign_in_path = sign_in_path or settings.sign_in_path
        self._organization_setup_path = organization_setup_path or settings.organization_setup_path
        self._unauthorized_path = unauthorized_path or settings.unauthorized_path
        self._state = GuardState.UNKNOWN
        self._identity: Identity | None = None
        self._scope: OrganizationScope | None = None

    @property
    def state(self) -> GuardState:
        return self._state

    @property
    def identity(self) -> Identity | None:
        return self._identity

    async def resolve(self) -> GuardState:
        """Ask the provider for the caller once; later calls return the cached state."""

        if self._state is not GuardState.UNKNOWN:
            return self._state

        try:
            identity = await self._provider.get_current_identity()
            scopes = self._provider.get_organization_memberships(identity) if identity is not None else []
        except Exception as exc:
            logger.warning("Identity provider failed during route guard resolution: {}", exc)
            identity, scopes = None, []

        self._identity = identity
        self._scope = OrganizationScope(self._requested_org) if self._requested_org else None
        if identity is None:
            self._state = GuardState.UNAUTHENTICATED
        elif self._scope is not None and self._scope in scopes:
            self._state = GuardState.AUTHENTICATED_IN_ORG
        else:
            self._state = GuardState.AUTHENTICATED_NO_ORG
        return self._state

    @property
    def current_role(self) -> str | None:
        """Role held in the requested organization, if the caller is a member."""

        if self._identity is None or self._scope is None:
            return None
        membership = self._identity.membership_for(self._scope)
        return membership.role if membership is not None else None

    def evaluate(
        self,
        require_auth: bool = True,
        require_organization: bool = False,
        required_permission: str | None = None,
        required_role: str | None = None,
    ) -> GuardOutcome:
        """Return the navigation outcome for the current state; never raises."""

        if self._state is GuardState.UNKNOWN:
            return Loading()

        if self._state is GuardState.UNAUTHENTICATED:
            return Redirect(self._sign_in_path) if require_auth else Allow()

        if require_organization and self._state is GuardState.AUTHENTICATED_NO_ORG:
            return Redirect(self._organization_setup_path)

        if required_role is not None:
            role = self.current_role
            if role != required_role:
                logger.info("Route guard requires role {}, caller has {}", required_role, role or "none")
                return Redirect(ROLE_HOME.get(role or "", self._unauthorized_path))

        decision = evaluate_access(
            self._identity,
            self._scope,
            required_permission,
            require_organization=require_organization,
        )
        if decision.allowed:
            return Allow()
        if decision.verdict is Verdict.UNAUTHENTICATED:
            return Redirect(self._sign_in_path)
        if decision.verdict is Verdict.ORGANIZATION_REQUIRED:
            return Redirect(self._organization_setup_path)
        logger.info("Route guard denied {}: {}", required_permission or "scope", decision.reason)
        return Redirect(self._unauthorized_path)

    def evaluate_route(
        self,
        path: str,
        require_auth: bool = True,
        require_organization: bool = False,
        required_role: str | None = None,
    ) -> GuardOutcome:
        """Evaluate a UI path; any one of the path's guarding permissions opens it."""

        required = sorted(required_for_route(path))
        if not required:
            return self.evaluate(require_auth, require_organization, None, required_role)

        outcome: GuardOutcome = Loading()
        for permission in required:
            outcome = self.evaluate(require_auth, require_organization, permission, required_role)
            if not isinstance(outcome, Redirect):
                return outcome
        return outcome

    def render(
        self,
        content: T,
        *,
        loading: T | None = None,
        require_auth: bool = True,
        require_organization: bool = False,
        required_role: str | None = None,
        required_permission: str | None = None,
    ) -> Rendered[T]:
        """Pair the outcome with what may be shown: *content* only when allowed."""

        outcome = self.evaluate(require_auth, require_organization, required_permission, required_role)
        if isinstance(outcome, Allow):
            return Rendered(outcome, content)
        if isinstance(outcome, Loading):
            return Rendered(outcome, loading)
        return Rendered(outcome)
