from __future__ import annotations

import re
from datetime import date, datetime
from typing import Any

from ..core.exceptions import ValidationError

_DAY_RE = re.compile(r"^\d{4}-\d{2}-\d{2}")


def parse_iso_date(value: Any) -> date:
    """Parse YYYY-MM-DD (or a full ISO timestamp) into a calendar day.

    Timestamps are truncated to the day, the time part is dropped. Anything
    that is not a string is rejected.
    """
    if value is None or (isinstance(value, str) and not value.strip()):
        raise ValidationError("Date is required (YYYY-MM-DD)")
    if not isinstance(value, str):
        raise ValidationError("Date is invalid (YYYY-MM-DD)")

    v = value.strip()
    try:
        if not _DAY_RE.match(v):
            raise ValueError(v)
        day = datetime.strptime(v[:10], "%Y-%m-%d").date()
        if len(v) > 10:
            if v[10] not in "T ":
                raise ValueError(v)
            datetime.fromisoformat(v[:-1] + "+00:00" if v.endswith("Z") else v)
    except ValueError:
        raise ValidationError("Date is invalid (YYYY-MM-DD)")
    return day
