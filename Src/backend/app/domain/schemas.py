"""Pydantic schemas for API requests and responses."""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal, InvalidOperation
from typing import Any, List, Literal

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_serializer, field_validator
from pydantic.alias_generators import to_camel

Priority = Literal["low", "medium", "high"]
ProjectStatus = Literal["active", "completed", "paused", "cancelled"]

_BUDGET_QUANTUM = Decimal("0.01")
# Matches the Numeric(12, 2) budget column: ten integer digits.
_BUDGET_LIMIT = Decimal(10) ** 10


class _WireModel(BaseModel):
    """Base for camelCase wire payloads."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, str_strip_whitespace=True)


def _require_text(value: Any) -> str:
    if value is None or not isinstance(value, str):
        raise ValueError("must be a string")
    if not value.strip():
        raise ValueError("must not be blank")
    return value.strip()


def _optional_text(value: Any) -> str | None:
    return None if value is None else _require_text(value)


def parse_budget(value: Any) -> Decimal:
    """Parse *value* into a non-negative two-decimal amount or raise ``ValueError``."""

    if value is None or isinstance(value, bool):
        raise ValueError("budget must be a non-negative decimal")
    if isinstance(value, float):
        value = repr(value)
    try:
        amount = Decimal(str(value).strip())
    except (InvalidOperation, ValueError) as exc:
        raise ValueError("budget must be a non-negative decimal") from exc
    if not amount.is_finite():
        raise ValueError("budget must be a non-negative decimal")
    if amount < 0:
        raise ValueError("budget must not be negative")
    if amount >= _BUDGET_LIMIT:
        raise ValueError("budget must be below 10000000000")
    try:
        return amount.quantize(_BUDGET_QUANTUM)
    except InvalidOperation as exc:
        raise ValueError("budget must be a non-negative decimal") from exc


class ClientCreate(_WireModel):
    """Fully validated client creation input."""

    name: str
    email: EmailStr
    notes: str | None = None

    @field_validator("name", mode="before")
    @classmethod
    def _name(cls, value: Any) -> str:
        return _require_text(value)

    @field_validator("email", mode="before")
    @classmethod
    def _email_text(cls, value: Any) -> str:
        return _require_text(value)

    @field_validator("email")
    @classmethod
    def _email_lower(cls, value: str) -> str:
        return value.lower()


class ClientUpdate(_WireModel):
    """Partial client update; omitted fields are left untouched."""

    name: str | None = None
    email: EmailStr | None = None
    notes: str | None = None

    @field_validator("name", "email", mode="before")
    @classmethod
    def _text(cls, value: Any) -> str | None:
        return _optional_text(value)

    @field_validator("email")
    @classmethod
    def _email_lower(cls, value: str | None) -> str | None:
        return value.lower() if value is not None else None


def _client_reference(value: Any) -> str:
    # Legacy clients post numeric ids.
    if isinstance(value, int) and not isinstance(value, bool):
        value = str(value)
    return _require_text(value)


def _owner_reference(value: Any) -> str | None:
    if value is None or value == "":
        return None
    return str(value).strip() or None


class ProjectCreate(_WireModel):
    """Fully validated project creation input."""

    title: str
    description: str | None = None
    client_id: str
    owner_id: str | None = None
    budget: Decimal
    priority: Priority
    status: ProjectStatus = "active"

    @field_validator("title", mode="before")
    @classmethod
    def _title(cls, value: Any) -> str:
        return _require_text(value)

    @field_validator("client_id", mode="before")
    @classmethod
    def _client_id(cls, value: Any) -> str:
        return _client_reference(value)

    @field_validator("owner_id", mode="before")
    @classmethod
    def _owner(cls, value: Any) -> str | None:
        return _owner_reference(value)

    @field_validator("budget", mode="before")
    @classmethod
    def _budget(cls, value: Any) -> Decimal:
        return parse_budget(value)


class ProjectUpdate(_WireModel):
    """Partial project update; only ``description`` may be cleared."""

    title: str | None = None
    description: str | None = None
    client_id: str | None = None
    owner_id: str | None = None
    budget: Decimal | None = None
    priority: Priority | None = None
    status: ProjectStatus | None = None

    @field_validator("title", mode="before")
    @classmethod
    def _title(cls, value: Any) -> str | None:
        return _optional_text(value)

    @field_validator("client_id", mode="before")
    @classmethod
    def _client_id(cls, value: Any) -> str | None:
        return None if value is None else _client_reference(value)

    @field_validator("owner_id", mode="before")
    @classmethod
    def _owner(cls, value: Any) -> str | None:
        return _owner_reference(value)

    @field_validator("budget", mode="before")
    @classmethod
    def _budget(cls, value: Any) -> Decimal | None:
        return None if value is None else parse_budget(value)


class ClientResp(_WireModel):
    """Client as returned to API callers."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)

    id: str
    name: str
    email: str
    notes: str | None = None
    created_by: str
    organization_id: str
    created_at: datetime | None = None


class ProjectResp(_WireModel):
    """Project as returned to API callers."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)

    id: str
    title: str
    description: str | None = None
    client_id: str
    owner_id: str
    budget: Decimal
    priority: Priority
    status: ProjectStatus
    created_by: str
    organization_id: str
    created_at: datetime | None = None

    @field_serializer("budget")
    def _serialize_budget(self, value: Decimal) -> str:
        return f"{value.quantize(_BUDGET_QUANTUM)}"


class TeamMemberResp(_WireModel):
    """Organization member listed on the team page."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)

    user_id: str
    name: str | None = None
    email: str | None = None
    role: str
    is_active: bool
    joined_at: datetime | None = None


class GuardDecisionResp(_WireModel):
    """Route guard verdict for a UI navigation."""

    path: str
    decision: Literal["allow", "redirect", "loading"]
    target: str | None = None
    state: str
    required_permissions: List[str] = Field(default_factory=list)
