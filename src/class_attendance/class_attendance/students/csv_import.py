from __future__ import annotations

import csv
import io
from typing import Union

from ..core.exceptions import ValidationError

REQUIRED_COLUMNS = ("name", "email", "rollno", "year", "department")


def parse_roster_csv(data: Union[bytes, str]) -> list[dict[str, str]]:
    """Read an uploaded roster CSV into rows keyed by normalized header.

    Header names are trimmed and lower-cased (``Roll No`` stays ``roll no``,
    ``rollNo`` becomes ``rollno``); cell values are trimmed. A UTF-8 BOM is
    accepted.
    """
    if isinstance(data, bytes):
        try:
            text = data.decode("utf-8-sig")
        except UnicodeDecodeError:
            raise ValidationError("CSV file must be UTF-8 encoded")
    else:
        text = data.lstrip("\ufeff")

    reader = csv.DictReader(io.StringIO(text, newline=""))
    rows: list[dict[str, str]] = []
    for raw in reader:
        row = {}
        for key, value in raw.items():
            if key is None:
                continue
            row[key.strip().lower()] = (value or "").strip() if isinstance(value, str) else ""
        rows.append(row)
    return rows
