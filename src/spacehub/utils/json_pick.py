"""Candidate-field probing over loosely structured upstream documents.

Upstream catalogs are inconsistent about field names, so each logical field is
described by an ordered list of candidate keys. The first candidate that yields
a usable value wins.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Callable, Mapping, Optional, Sequence, Tuple, TypeVar

T = TypeVar("T")

ALT_DATETIME_FORMAT = "%Y-%m-%d %H:%M:%S"


@dataclass(frozen=True)
class DatasetFieldConfig:
    """Candidate key lists for osdr_items columns."""

    business_key: Tuple[str, ...] = ("dataset_id", "id", "uuid", "studyId", "accession", "osdr_id")
    title: Tuple[str, ...] = ("title", "name", "label")
    status: Tuple[str, ...] = ("status", "state", "lifecycle")
    updated_at: Tuple[str, ...] = ("updated", "updated_at", "modified", "lastUpdated", "timestamp")


def num(value: Any) -> Optional[float]:
    """Number or numeric string -> float; anything else -> None."""
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return float(value)
    if isinstance(value, str):
        try:
            return float(value.strip())
        except ValueError:
            return None
    return None


def as_str(value: Any) -> Optional[str]:
    if isinstance(value, str):
        value = value.strip()
        return value or None
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return str(value)
    return None


def as_datetime(value: Any) -> Optional[datetime]:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        try:
            return datetime.fromtimestamp(value, tz=timezone.utc)
        except (OverflowError, OSError, ValueError):
            return None
    if not isinstance(value, str) or not value.strip():
        return None

    text = value.strip()
    parsed: Optional[datetime] = None
    try:
        # fromisoformat() only accepts a trailing "Z" from 3.11 on
        parsed = datetime.fromisoformat(text.replace("Z", "+00:00") if text.endswith("Z") else text)
    except ValueError:
        try:
            parsed = datetime.strptime(text, ALT_DATETIME_FORMAT)
        except ValueError:
            return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def pick(doc: Mapping[str, Any], keys: Sequence[str], convert: Callable[[Any], Optional[T]]) -> Optional[T]:
    for key in keys:
        if key not in doc:
            continue
        converted = convert(doc[key])
        if converted is not None:
            return converted
    return None


def s_pick(doc: Mapping[str, Any], keys: Sequence[str]) -> Optional[str]:
    return pick(doc, keys, as_str)


def t_pick(doc: Mapping[str, Any], keys: Sequence[str]) -> Optional[datetime]:
    return pick(doc, keys, as_datetime)
