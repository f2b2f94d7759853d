"""
Relative date specifications for search windows.

Analysts give windows as ``now-3d/h`` (three days ago, rounded to the hour),
``now``, or an absolute date. Window starts round down and window ends round
up so the edges of a histogram never show partial buckets.

Design:
- Grammar: ``now``, ``now-<n><unit>``, optional ``/<unit>`` rounding; units are
  ``s m h d w M y`` (``w`` weeks start on Sunday).
- All arithmetic is done in UTC with pandas offsets so month and year steps
  follow the calendar.
- Unparseable input returns ``None``; callers decide which error to raise.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Optional, Tuple

import pandas as pd

RELATIVE_DATE_RE = re.compile(r"^now(?:-(\d+)([smhdwMy]))?(?:/([smhdwMy]))?$")

ABSOLUTE_FORMATS = (
    "%Y-%m-%d %H:%M:%S.%f",
    "%Y-%m-%d %H:%M:%S",
    "%Y-%m-%d %H:%M",
    "%Y-%m-%d",
    "%m-%d-%Y",
    "%m/%d/%Y",
)

_FIXED_UNITS = {"s": "s", "m": "min", "h": "h", "d": "D"}


@dataclass(frozen=True)
class RelativeDate:
    """Parsed form of a date specification."""

    date: Optional[datetime] = None
    offset: Optional[Tuple[int, str]] = None
    rounding: Optional[str] = None

    @property
    def is_absolute(self) -> bool:
        return self.date is not None


def _as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def _parse_absolute(text: str) -> Optional[datetime]:
    for fmt in ABSOLUTE_FORMATS:
        try:
            return _as_utc(datetime.strptime(text, fmt))
        except ValueError:
            continue
    try:
        return _as_utc(datetime.fromisoformat(text.replace("Z", "+00:00")))
    except ValueError:
        return None


def parse_relative_date(text: str) -> Optional[RelativeDate]:
    """Parse a date expression; ``None`` when it matches no supported form."""
    if not text:
        return None
    text = text.strip()

    if text == "now":
        return RelativeDate()

    absolute = _parse_absolute(text)
    if absolute is not None:
        return RelativeDate(date=absolute)

    match = RELATIVE_DATE_RE.match(text)
    if not match:
        return None

    amount, unit, rounding = match.groups()
    offset = (-int(amount), unit) if amount else None
    return RelativeDate(offset=offset, rounding=rounding)


def _shift(ts: pd.Timestamp, amount: int, unit: str) -> pd.Timestamp:
    if unit in _FIXED_UNITS:
        return ts + pd.Timedelta(amount, unit=_FIXED_UNITS[unit])
    if unit == "w":
        return ts + pd.Timedelta(weeks=amount)
    if unit == "M":
        return ts + pd.DateOffset(months=amount)
    return ts + pd.DateOffset(years=amount)


def _floor(ts: pd.Timestamp, unit: str) -> pd.Timestamp:
    if unit in _FIXED_UNITS:
        return ts.floor(_FIXED_UNITS[unit])
    day = ts.normalize()
    if unit == "w":
        return day - pd.Timedelta(days=(day.dayofweek + 1) % 7)
    if unit == "M":
        return day.replace(day=1)
    return day.replace(month=1, day=1)


def _ceil(ts: pd.Timestamp, unit: str) -> pd.Timestamp:
    if unit in _FIXED_UNITS:
        return ts.ceil(_FIXED_UNITS[unit])
    floor = _floor(ts, unit)
    if floor == ts:
        return ts
    return _shift(floor, 1, unit)


def floor_date(value: datetime, unit: str) -> datetime:
    """Round a datetime down to the start of its enclosing ``unit``."""
    return _floor(pd.Timestamp(_as_utc(value)), unit).to_pydatetime()


def ceil_date(value: datetime, unit: str) -> datetime:
    """Round a datetime up to a ``unit`` boundary (unchanged if already on one)."""
    return _ceil(pd.Timestamp(_as_utc(value)), unit).to_pydatetime()


def create_relative_date(
    text: str, round_up: bool, now: Optional[datetime] = None
) -> Optional[datetime]:
    """
    Resolve a date expression to a UTC datetime.

    Args:
        text: Expression such as ``now-1d/h`` or ``2017-03-01``
        round_up: Round up (window end) instead of down (window start)
        now: Reference time; defaults to the current time

    Returns:
        Timezone-aware UTC datetime, or None when ``text`` is invalid
    """
    rel = parse_relative_date(text)
    if rel is None:
        return None
    if rel.date is not None:
        return rel.date

    ts = pd.Timestamp(_as_utc(now) if now is not None else datetime.now(timezone.utc))

    if rel.offset is not None:
        ts = _shift(ts, *rel.offset)

    if rel.rounding is not None:
        ts = _ceil(ts, rel.rounding) if round_up else _floor(ts, rel.rounding)

    return ts.to_pydatetime()
