"""Authorization policy evaluation for organization-scoped requests.

The evaluator is a pure decision function: it looks only at the identity,
the requested organization scope and an optional permission tag. It never
touches the database or the request.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from app.domain.errors import AppError, Forbidden, OrganizationRequired, Unauthenticated
from app.domain.identity import Identity, OrganizationMembership, OrganizationScope
from app.policy.permissions import is_granted


class Verdict(str, Enum):
    ALLOW = "allow"
    UNAUTHENTICATED = "unauthenticated"
    FORBIDDEN = "forbidden"
    ORGANIZATION_REQUIRED = "organization_required"


@dataclass(frozen=True, slots=True)
class AccessDecision:
    """Outcome of a policy evaluation."""

    verdict: Verdict
    reason: str = ""
    membership: OrganizationMembership | None = None

    @property
    def allowed(self) -> bool:
        return self.verdict is Verdict.ALLOW

    def to_error(self) -> AppError | None:
        """Return the taxonomy error for a denial, ``None`` when allowed."""

        if self.verdict is Verdict.UNAUTHENTICATED:
            return Unauthenticated(self.reason or None)
        if self.verdict is Verdict.ORGANIZATION_REQUIRED:
            return OrganizationRequired(self.reason or None)
        if self.verdict is Verdict.FORBIDDEN:
            return Forbidden(self.reason or None)
        return None


def evaluate_access(
    identity: Identity | None,
    scope: OrganizationScope | None,
    required_permission: str | None = None,
    *,
    require_organization: bool = False,
) -> AccessDecision:
    """Decide whether *identity* may act within *scope*; never raises."""

    if identity is None:
        return AccessDecision(Verdict.UNAUTHENTICATED, "Authentication required")

    if scope is None:
        if require_organization:
            return AccessDecision(
                Verdict.ORGANIZATION_REQUIRED,
                "An organization must be selected for this action",
            )
        # Personal workspace: the caller owns everything outside an organization.
        return AccessDecision(Verdict.ALLOW)

    membership = identity.membership_for(scope)
    if membership is None:
        return AccessDecision(Verdict.FORBIDDEN, "You are not a member of this organization")

    if required_permission and not is_granted(membership, required_permission):
        return AccessDecision(
            Verdict.FORBIDDEN,
            f"Missing permission {required_permission}",
            membership=membership,
        )

    return AccessDecision(Verdict.ALLOW, membership=membership)


def can_access(
    identity: Identity | None,
    scope: OrganizationScope | None,
    required_permission: str | None = None,
    *,
    require_organization: bool = False,
) -> bool:
    """Return ``True`` when access is granted, otherwise raise the matching error.

    Raises:
        Unauthenticated: no identity was supplied.
        OrganizationRequired: *require_organization* is set and *scope* is ``None``.
        Forbidden: *scope* is not one of the identity's organizations, or the
            membership lacks *required_permission*.
    """

    decision = evaluate_access(
        identity,
        scope,
        required_permission,
        require_organization=require_organization,
    )
    error = decision.to_error()
    if error is not None:
        raise error
    return True
