"""Typed hotel settings.

Each stored settings document carries a ``kind`` tag and is decoded once,
through a discriminated union, into one of the variants below. Unknown kinds
and malformed documents are rejected instead of being probed field by field.
"""

from datetime import time
from typing import Annotated, Literal
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pydantic import BaseModel, Field, TypeAdapter, ValidationError, field_validator

from staydesk.models.user import STAFF_ROLES


class SettingDecodeError(ValueError):
    """A stored settings document does not match any known variant."""


class CheckInPolicy(BaseModel):
    """When a room is released on its checkout date."""

    kind: Literal["check_in"] = "check_in"
    checkout_cutoff: time = time(9, 30)
    timezone: str = "Africa/Lubumbashi"

    @field_validator("timezone")
    @classmethod
    def check_timezone(cls, value: str) -> str:
        try:
            ZoneInfo(value)
        except (ZoneInfoNotFoundError, ValueError):
            raise ValueError(f"Unknown timezone: {value}") from None
        return value


class PaymentPolicy(BaseModel):
    """Which staff roles may record cash as paid without verification."""

    kind: Literal["payment"] = "payment"
    trusted_cash_roles: list[str] = Field(default_factory=lambda: sorted(STAFF_ROLES))

    @field_validator("trusted_cash_roles")
    @classmethod
    def check_roles(cls, value: list[str]) -> list[str]:
        unknown = set(value) - STAFF_ROLES
        if unknown:
            raise ValueError(f"Only staff roles can be trusted with cash: {sorted(unknown)}")
        return value


SettingValue = Annotated[CheckInPolicy | PaymentPolicy, Field(discriminator="kind")]

_setting_adapter: TypeAdapter[CheckInPolicy | PaymentPolicy] = TypeAdapter(SettingValue)

SETTING_KEYS: tuple[str, ...] = ("check_in", "payment")


def decode_setting(key: str, raw: object) -> CheckInPolicy | PaymentPolicy:
    """Decode a stored document, checking that its kind matches ``key``.

    Raises:
        SettingDecodeError: If the document is malformed or of another kind.
    """
    try:
        value = _setting_adapter.validate_python(raw)
    except ValidationError as exc:
        raise SettingDecodeError(f"Invalid settings document for {key!r}: {exc.error_count()} error(s)") from exc
    if value.kind != key:
        raise SettingDecodeError(f"Settings document for {key!r} has kind {value.kind!r}")
    return value


class SettingResponse(BaseModel):
    """A stored (or default) settings document."""

    key: str
    value: SettingValue
    is_default: bool


class SettingUpdate(BaseModel):
    """Request body for replacing a settings document."""

    value: SettingValue
