"""
payroll_deductions/timestamps.py

Parsing and display of report timestamps.

A report timestamp is either the storage form "YYYY-MM-DD HH:MM" (local time,
sometimes with seconds) or a full ISO-8601 timestamp. Both go through one
parser that returns a tagged result, so display code never has to guess.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from zoneinfo import ZoneInfo

from babel.core import UnknownLocaleError
from babel.dates import format_datetime

INVALID_TIMESTAMP_LABEL = "تاريخ غير صالح"

STORAGE_FORMATS = ("%Y-%m-%d %H:%M", "%Y-%m-%d %H:%M:%S")
DISPLAY_PATTERN = "d MMMM y h:mm a"


@dataclass(frozen=True)
class ParsedTimestamp:
    """Either a parsed local datetime or the raw input plus a fallback label."""

    raw: str
    value: datetime | None = None
    fallback_label: str = INVALID_TIMESTAMP_LABEL

    @property
    def is_parsed(self) -> bool:
        return self.value is not None


def parse_timestamp(raw: object, tz_name: str = "Africa/Cairo") -> ParsedTimestamp:
    """
    Parse a storage or ISO timestamp into an aware datetime in ``tz_name``.

    Storage timestamps are already local. ISO timestamps without an offset are
    treated as local too; ones with an offset are converted.
    """
    text = str(raw if raw is not None else "").strip()
    if not text:
        return ParsedTimestamp(raw=text)

    try:
        zone = ZoneInfo(tz_name)
    except (KeyError, ValueError):
        return ParsedTimestamp(raw=text)

    for fmt in STORAGE_FORMATS:
        try:
            return ParsedTimestamp(raw=text, value=datetime.strptime(text, fmt).replace(tzinfo=zone))
        except ValueError:
            continue

    try:
        # "Z" suffix is not accepted by fromisoformat before 3.11
        parsed = datetime.fromisoformat(text.replace("Z", "+00:00"))
    except ValueError:
        return ParsedTimestamp(raw=text)

    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=zone)
    try:
        local = parsed.astimezone(zone)
    except (OverflowError, ValueError):
        # offsets at the ends of the date range cannot be converted
        return ParsedTimestamp(raw=text)
    return ParsedTimestamp(raw=text, value=local)


def format_timestamp(raw: object, locale: str = "ar_EG", tz_name: str = "Africa/Cairo") -> str:
    """Human-readable, locale-formatted timestamp. Never raises."""
    parsed = parse_timestamp(raw, tz_name)
    if not parsed.is_parsed:
        return parsed.fallback_label

    for display_locale in (locale, "en"):
        try:
            return format_datetime(parsed.value, DISPLAY_PATTERN, locale=display_locale)
        except (UnknownLocaleError, ValueError, OverflowError):
            continue
    return parsed.fallback_label
