"""
citizen_registry.services.validation

Field-level validation shared by the citizen and user services.
"""

from __future__ import annotations

import enum
import re
from datetime import date
from typing import TypeVar

from citizen_registry.errors import ValidationError

E = TypeVar("E", bound=enum.Enum)

MAX_AGE_YEARS = 100
PHONE_RE = re.compile(r"^[+]?[0-9]{8,15}$")


def parse_choice(enum_cls: type[E], raw: str | E, field: str) -> E:
    if isinstance(raw, enum_cls):
        return raw
    value = str(raw).strip().upper()
    try:
        return enum_cls(value)
    except ValueError:
        allowed = ", ".join(str(m.value) for m in enum_cls)
        raise ValidationError(f"{field} must be one of: {allowed}") from None


def require_text(raw: str | None, field: str, *, max_length: int) -> str:
    value = (raw or "").strip()
    if not value:
        raise ValidationError(f"Field '{field}' is required")
    if len(value) > max_length:
        raise ValidationError(f"Field '{field}' cannot exceed {max_length} characters")
    return value


def optional_text(raw: str | None, field: str, *, max_length: int) -> str | None:
    value = (raw or "").strip()
    if not value:
        return None
    if len(value) > max_length:
        raise ValidationError(f"Field '{field}' cannot exceed {max_length} characters")
    return value


def validate_birth_date(value: date, *, today: date | None = None) -> date:
    today = today or date.today()
    if value > today:
        raise ValidationError("Date of birth cannot be in the future")
    if value < _years_before(today, MAX_AGE_YEARS):
        raise ValidationError(f"Date of birth cannot be more than {MAX_AGE_YEARS} years ago")
    return value


def validate_phone(raw: str | None) -> str | None:
    value = (raw or "").strip()
    if not value:
        return None
    if not PHONE_RE.match(value):
        raise ValidationError(
            "Invalid phone number format. Use 8-15 digits with optional country code"
        )
    return value


def validate_username(raw: str | None) -> str:
    value = (raw or "").strip()
    if not value:
        raise ValidationError("Username is required")
    if len(value) < 3 or len(value) > 100:
        raise ValidationError("Username must be between 3 and 100 characters")
    return value


def _years_before(day: date, years: int) -> date:
    try:
        return day.replace(year=day.year - years)
    except ValueError:
        # Feb 29 in a year that has none.
        return day.replace(year=day.year - years, day=28)
