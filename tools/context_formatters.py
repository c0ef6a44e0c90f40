"""Context formatters: domain records to short prompt lines.

Every function here is pure and never raises. Missing or malformed input
degrades to a labeled placeholder so a bad record can't stop a chat from
opening.
"""
import logging
import re
from datetime import date, datetime
from typing import Any, List, Optional, Sequence

from config.settings import MEMORY_EXCERPT_CHARS, MEMORY_EXCERPT_LIMIT
from models.context import Appointment, ReadingKind

logger = logging.getLogger(__name__)

UNKNOWN_DATE = "unknown date"
INVALID_DATE = "invalid date"

NO_APPOINTMENTS = "No upcoming appointments logged."
NO_RECENT_TOPICS = "No recent conversation topics available."

_READING_LABELS = {
    ReadingKind.BLOOD_PRESSURE: "BP",
    ReadingKind.BLOOD_SUGAR: "Sugar",
    ReadingKind.WEIGHT: "Weight",
}

_TIME_PATTERN = re.compile(r"(\d{1,2}):(\d{2})\s*(AM|PM)?", re.IGNORECASE)


def parse_timestamp(value: Any) -> Optional[datetime]:
    """
    Parse an ISO datetime or bare YYYY-MM-DD string.

    Returns:
        datetime or None if the value is missing or unparsable.
    """
    if isinstance(value, datetime):
        return value
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day)
    if not isinstance(value, str) or not value.strip():
        return None

    s = value.strip()
    if "T" not in s:
        s = f"{s}T00:00:00"
    if s.endswith("Z"):
        s = s[:-1] + "+00:00"
    try:
        return datetime.fromisoformat(s)
    except ValueError:
        return None


def _format_date(d: datetime) -> str:
    return f"{d:%b} {d.day}, {d.year}"


def _format_date_time(d: datetime) -> str:
    hour = d.hour % 12 or 12
    return f"{_format_date(d)} {hour}:{d:%M} {'AM' if d.hour < 12 else 'PM'}"


def format_date_safe(value: Any) -> str:
    """Format a timestamp as 'MMM d, yyyy', or a marker if it can't be read."""
    if value is None or (isinstance(value, str) and not value.strip()):
        return UNKNOWN_DATE
    parsed = parse_timestamp(value)
    if parsed is None:
        return INVALID_DATE
    return _format_date(parsed)


def _describe_reading(reading: Any, kind: ReadingKind) -> Optional[str]:
    if kind == ReadingKind.BLOOD_PRESSURE:
        systolic = getattr(reading, "systolic", None)
        diastolic = getattr(reading, "diastolic", None)
        if systolic is None or diastolic is None:
            return None
        return f"BP: {systolic}/{diastolic} mmHg"

    if kind == ReadingKind.BLOOD_SUGAR:
        level = getattr(reading, "level", None)
        if level is None:
            return None
        measurement = str(getattr(reading, "measurement_type", None) or "unspecified")
        return f"Blood Sugar: {level} mg/dL ({measurement.replace('_', ' ')})"

    if kind == ReadingKind.WEIGHT:
        weight = getattr(reading, "weight", None)
        if weight is None:
            return None
        return f"Weight: {weight} {getattr(reading, 'unit', None) or 'units'}"

    return None


def format_reading_for_context(reading: Any, kind: ReadingKind) -> str:
    """
    One-line summary of the latest reading of a vital.

    Example:
        'BP: 118/76 mmHg (Logged on Mar 3, 2025. For context only, do not interpret medically.)'
    """
    label = _READING_LABELS.get(kind, str(kind))
    if reading is None:
        return f"No recent {label} reading available."

    described = _describe_reading(reading, kind)
    if not described:
        logger.warning(f"Could not format {label} reading: missing fields")
        return f"Could not format {label} reading."

    date_str = format_date_safe(getattr(reading, "recorded_at", None))
    return f"{described} (Logged on {date_str}. For context only, do not interpret medically.)"


def parse_appointment_datetime(appointment: Appointment) -> Optional[datetime]:
    """
    Combine an appointment's date and free-text time ('10:00 AM', '14:30').

    Returns:
        datetime or None if either part is missing or invalid.
    """
    if not appointment.date or not appointment.time:
        return None

    base = parse_timestamp(str(appointment.date).split("T")[0])
    if base is None:
        return None

    match = _TIME_PATTERN.search(str(appointment.time))
    if not match:
        return None

    hours = int(match.group(1))
    minutes = int(match.group(2))
    period = (match.group(3) or "").upper()
    if minutes > 59:
        return None

    if period:
        if hours < 1 or hours > 12:
            return None
        if period == "PM" and hours != 12:
            hours += 12
        if period == "AM" and hours == 12:
            hours = 0
    elif hours > 23:
        return None

    return datetime(base.year, base.month, base.day, hours, minutes)


def format_appointments_for_context(appointments: Optional[Sequence[Appointment]]) -> str:
    """Render upcoming appointments as a '- <type> on <date[, time]>' list."""
    if not appointments or isinstance(appointments, str):
        return NO_APPOINTMENTS
    try:
        appointments = list(appointments)
    except TypeError:
        logger.warning(f"Could not format appointments: {type(appointments).__name__}")
        return NO_APPOINTMENTS

    lines = []
    for app in appointments:
        date_time = getattr(app, "date_time", None)
        if isinstance(date_time, datetime):
            date_str = _format_date_time(date_time)
        else:
            date_str = format_date_safe(getattr(app, "date", None))
        app_type = str(getattr(app, "appointment_type", None) or "appointment").replace("_", " ")
        lines.append(f"- {app_type} on {date_str}")

    return "Upcoming Appointments:\n" + "\n".join(lines)


def _truncate(text: str, max_chars: int) -> str:
    text = " ".join(text.split())
    if len(text) <= max_chars:
        return text
    return text[:max_chars].rstrip() + "..."


def format_memory_for_context(excerpts: Optional[Sequence[Any]],
                              limit: int = MEMORY_EXCERPT_LIMIT,
                              max_chars: int = MEMORY_EXCERPT_CHARS) -> str:
    """
    Render the most recent user message excerpts (oldest first in input).

    Only the last ``limit`` entries are kept, each cut to ``max_chars``.
    """
    if isinstance(excerpts, str):
        excerpts = [excerpts]
    try:
        cleaned: List[str] = [str(e).strip() for e in (excerpts or []) if e is not None and str(e).strip()]
    except TypeError:
        logger.warning(f"Could not format conversation memory: {type(excerpts).__name__}")
        return NO_RECENT_TOPICS
    if not cleaned:
        return NO_RECENT_TOPICS

    recent = cleaned[-limit:] if limit > 0 else []
    if not recent:
        return NO_RECENT_TOPICS
    lines = [f'- "{_truncate(e, max_chars)}"' for e in recent]
    return "Recent Conversation Topics:\n" + "\n".join(lines)
