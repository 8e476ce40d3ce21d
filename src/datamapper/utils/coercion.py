"""
Lenient scalar conversions for values read from rows.
"""

from __future__ import annotations

from typing import Any, List


def to_int(value: Any) -> int:
    if value is None or isinstance(value, bool):
        return int(bool(value))
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(value)
    try:
        return int(str(value).strip())
    except ValueError:
        return 0


def to_bool(value: Any) -> bool:
    if isinstance(value, str):
        return value.strip() not in ("", "0")
    return bool(value)


def int_explode(value: Any, delimiter: str = ",") -> List[int]:
    """
    Split a delimited list into integers, dropping empty entries.

    Entries that are not numbers come back as 0.
    """
    if value is None:
        return []
    return [to_int(part) for part in str(value).split(delimiter) if part.strip() != ""]
