from __future__ import annotations

from datetime import time

DEFAULT_TIME_SLOTS: tuple[str, ...] = (
    "9:00 AM", "9:30 AM", "10:00 AM", "10:30 AM", "11:00 AM", "11:30 AM",
    "12:00 PM", "12:30 PM", "1:00 PM", "1:30 PM", "2:00 PM", "2:30 PM",
    "3:00 PM", "3:30 PM", "4:00 PM", "4:30 PM", "5:00 PM", "5:30 PM",
)


def parse_time_slot(value: str) -> time:
    """Parse "9:30 AM" (12h) or "09:30" (24h). Raises ValueError if neither."""
    text = value.strip().upper()
    period = None
    if text.endswith(("AM", "PM")):
        period = text[-2:]
        text = text[:-2].strip()

    try:
        hours_str, minutes_str = text.split(":")
        hours, minutes = int(hours_str), int(minutes_str)
    except ValueError:
        raise ValueError(f"Unrecognised time slot: {value!r}") from None

    if period is not None:
        if not 1 <= hours <= 12:
            raise ValueError(f"Unrecognised time slot: {value!r}")
        if period == "PM" and hours != 12:
            hours += 12
        elif period == "AM" and hours == 12:
            hours = 0

    if not (0 <= hours <= 23 and 0 <= minutes <= 59):
        raise ValueError(f"Unrecognised time slot: {value!r}")
    return time(hours, minutes)


def calculate_end_time(start_time: str, duration_minutes: int) -> str:
    """End of an appointment as 24h "HH:MM". Wraps past midnight."""
    start = parse_time_slot(start_time)
    total = (start.hour * 60 + start.minute + duration_minutes) % (24 * 60)
    return f"{total // 60:02d}:{total % 60:02d}"


def format_time_12h(value: str) -> str:
    if not value:
        return ""
    # Already 12h
    if " " in value.strip():
        return value.strip()
    parsed = parse_time_slot(value)
    period = "PM" if parsed.hour >= 12 else "AM"
    display_hours = parsed.hour % 12 or 12
    return f"{display_hours}:{parsed.minute:02d} {period}"
