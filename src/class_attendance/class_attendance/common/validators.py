from __future__ import annotations

import re
from typing import Any

from ..core.constants import MAX_YEAR, MIN_YEAR
from ..core.enums import Department
from ..core.exceptions import ValidationError

_EMAIL_RE = re.compile(r"^\w+([.\-+]?\w+)*@\w+([.\-]?\w+)*(\.\w{2,})+$")


def require_non_empty(value: Any, field_name: str) -> str:
    if value is None or not str(value).strip():
        raise ValidationError(f"{field_name} is required")
    return str(value).strip()


def require_min_length(value: str, field_name: str, min_len: int) -> str:
    if value is None or len(value) < min_len:
        raise ValidationError(f"{field_name} must be at least {min_len} characters")
    return value


def require_email(value: Any) -> str:
    email = require_non_empty(value, "Email").lower()
    if not _EMAIL_RE.match(email):
        raise ValidationError("Please add a valid email")
    return email


def require_year(value: Any) -> int:
    try:
        year = int(str(value).strip())
    except (TypeError, ValueError):
        raise ValidationError("Year must be a number")
    if year < MIN_YEAR or year > MAX_YEAR:
        raise ValidationError(f"Year must be between {MIN_YEAR} and {MAX_YEAR}")
    return year


def require_department(value: Any) -> Department:
    code = require_non_empty(value, "Department").upper()
    try:
        return Department(code)
    except ValueError:
        allowed = ", ".join(d.value for d in Department)
        raise ValidationError(f"Department must be one of: {allowed}")


def require_int(value: Any, field_name: str) -> int:
    """Accept an integer, an integral float or a string of digits."""
    if isinstance(value, bool):
        raise ValidationError(f"{field_name} must be an integer")
    if isinstance(value, int):
        return value
    if isinstance(value, float) and value.is_integer():
        return int(value)
    if isinstance(value, str) and value.strip().isdigit():
        return int(value.strip())
    raise ValidationError(f"{field_name} must be an integer")
