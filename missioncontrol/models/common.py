"""Shared pydantic field types for records read from the backing store.

Rows arrive from Supabase REST (JSON) or from SQLAlchemy (native types), and
either can be missing fields. These annotated types coerce what they can and
fall back to neutral defaults instead of failing the whole record.
"""

from __future__ import annotations

import math
from datetime import datetime
from typing import Annotated, Any

from pydantic import BaseModel, BeforeValidator

from missioncontrol.utils.time import parse_timestamp


def _to_str(value: Any) -> str:
    return "" if value is None else str(value)


def _to_optional_str(value: Any) -> str | None:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def _to_float_or_none(value: Any) -> float | None:
    if value is None or isinstance(value, bool):
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    # PostgREST serializes float8 NaN and Infinity as strings.
    return number if math.isfinite(number) else None


def _to_int(value: Any) -> int:
    number = _to_float_or_none(value)
    return int(number) if number is not None else 0


def _to_float_list(value: Any) -> list[float] | None:
    if not isinstance(value, (list, tuple)):
        return None
    samples = [_to_float_or_none(item) for item in value]
    return [sample for sample in samples if sample is not None]


def _to_str_list(value: Any) -> list[str]:
    if not isinstance(value, (list, tuple)):
        return []
    return [str(item) for item in value if item is not None]


def _bool_or(default: bool):
    def coerce(value: Any) -> bool:
        if value is None:
            return default
        if isinstance(value, str):
            return value.strip().lower() in {"true", "t", "1", "yes"}
        return bool(value)

    return coerce


def _label(allowed: set[str], fallback: str):
    def coerce(value: Any) -> str:
        label = _to_str(value).strip().lower()
        return label if label in allowed else fallback

    return coerce


def _lower_or_none(value: Any) -> str | None:
    text = _to_optional_str(value)
    return text.lower() if text else None


RecordId = Annotated[str, BeforeValidator(_to_str)]
Text = Annotated[str, BeforeValidator(_to_str)]
OptionalText = Annotated[str | None, BeforeValidator(_to_optional_str)]
LowerText = Annotated[str | None, BeforeValidator(_lower_or_none)]
Timestamp = Annotated[datetime | None, BeforeValidator(parse_timestamp)]
Score = Annotated[float | None, BeforeValidator(_to_float_or_none)]
Count = Annotated[int, BeforeValidator(_to_int)]
FloatHistory = Annotated[list[float] | None, BeforeValidator(_to_float_list)]
Names = Annotated[list[str], BeforeValidator(_to_str_list)]
FlagDefaultFalse = Annotated[bool, BeforeValidator(_bool_or(False))]
FlagDefaultTrue = Annotated[bool, BeforeValidator(_bool_or(True))]

SEVERITIES = ("critical", "high", "medium", "low")
EMAIL_PRIORITIES = ("urgent", "high", "normal", "low")

Severity = Annotated[str, BeforeValidator(_label(set(SEVERITIES), "low"))]
EmailPriority = Annotated[str, BeforeValidator(_label(set(EMAIL_PRIORITIES), "normal"))]


class StoreRecord(BaseModel):
    """Base for records fetched verbatim from a collection."""

    model_config = {"extra": "ignore", "populate_by_name": True, "from_attributes": True}
