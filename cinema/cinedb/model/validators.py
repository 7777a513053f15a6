"""
Field validators for CineDB entities.

Each function checks one scalar rule and raises ValidationError naming the
field. The link protocol never calls these; entity constructors and
from_record() do.
"""

from __future__ import annotations

import base64
import hashlib
import re
from datetime import date, datetime
from decimal import Decimal
from typing import Any

from ..errors import ValidationError

_EMAIL_RE = re.compile(r"^[A-Za-z0-9.!#$%&'*+/=?^_`{|}~-]+@[A-Za-z0-9-]+(\.[A-Za-z0-9-]+)*\.[A-Za-z]{2,}$")
_DEGREE_RE = re.compile(r"^[A-Za-z\s-]+$")

MAX_AGE_YEARS = 120


def require_text(value: Any, field_name: str, min_length: int = 1) -> str:
    """Non-blank string of at least min_length characters."""
    if not isinstance(value, str) or not value.strip():
        raise ValidationError(f"{field_name} cannot be empty", field_name=field_name)
    if len(value) < min_length:
        raise ValidationError(
            f"{field_name} must be at least {min_length} characters long",
            field_name=field_name,
        )
    return value


def require_range(value: Any, field_name: str, low: Any = None, high: Any = None) -> Any:
    if value is None:
        raise ValidationError(f"{field_name} is required", field_name=field_name)
    if low is not None and value < low:
        raise ValidationError(f"{field_name} must be at least {low}, got {value}", field_name=field_name)
    if high is not None and value > high:
        raise ValidationError(f"{field_name} cannot exceed {high}, got {value}", field_name=field_name)
    return value


def require_not_future(value: date | datetime, field_name: str) -> date | datetime:
    if value is None:
        raise ValidationError(f"{field_name} is required", field_name=field_name)
    now = datetime.now() if isinstance(value, datetime) else date.today()
    if value > now:
        raise ValidationError(f"{field_name} cannot be in the future", field_name=field_name)
    return value


def require_birth_date(value: date, field_name: str = "date_of_birth") -> date:
    require_not_future(value, field_name)
    today = date.today()
    try:
        oldest = today.replace(year=today.year - MAX_AGE_YEARS)
    except ValueError:
        # 29 February
        oldest = today.replace(year=today.year - MAX_AGE_YEARS, day=28)
    if value < oldest:
        raise ValidationError(
            f"Age must be between 0 and {MAX_AGE_YEARS} years",
            field_name=field_name,
        )
    return value


def require_email(value: Any, field_name: str = "email") -> str:
    require_text(value, field_name)
    if not _EMAIL_RE.match(value):
        raise ValidationError("Invalid email format", field_name=field_name)
    return value


def require_money(value: Any, field_name: str, low: Decimal | None = None, high: Decimal | None = None) -> Decimal:
    """Decimal with at most two decimal places, within bounds."""
    if not isinstance(value, Decimal):
        raise ValidationError(f"{field_name} must be a Decimal", field_name=field_name)
    require_range(value, field_name, low, high)
    if value != value.quantize(Decimal("0.01")):
        raise ValidationError(f"{field_name} must have at most two decimal places", field_name=field_name)
    return value


def require_password(raw: Any, field_name: str = "password", min_length: int = 6) -> str:
    if not isinstance(raw, str) or not raw.strip():
        raise ValidationError(f"{field_name} cannot be empty", field_name=field_name)
    if len(raw) < min_length:
        raise ValidationError(
            f"{field_name} must be at least {min_length} characters long",
            field_name=field_name,
        )
    return raw


def require_pos_login(value: Any, field_name: str = "pos_login") -> str:
    require_text(value, field_name, min_length=3)
    if not value.isalnum():
        raise ValidationError(f"{field_name} must contain only letters or digits", field_name=field_name)
    return value


def require_pos_password(value: Any, field_name: str = "pos_password") -> str:
    require_password(value, field_name)
    if not any(c.isupper() for c in value):
        raise ValidationError(f"{field_name} must contain at least one uppercase letter", field_name=field_name)
    if not any(c.isdigit() for c in value):
        raise ValidationError(f"{field_name} must contain at least one number", field_name=field_name)
    return value


def require_degree(value: Any, field_name: str = "degree") -> str:
    require_text(value, field_name, min_length=2)
    if not _DEGREE_RE.match(value):
        raise ValidationError(f"{field_name} can only contain letters, spaces, or hyphens", field_name=field_name)
    return value


def require_choice(value: Any, field_name: str, choices: type) -> Any:
    if not isinstance(value, choices):
        raise ValidationError(f"{field_name} must be a {choices.__name__}", field_name=field_name)
    return value


def hash_password(raw: str) -> str:
    """Base64 SHA-256 digest of a raw password."""
    return base64.b64encode(hashlib.sha256(raw.encode("utf-8")).digest()).decode("ascii")
