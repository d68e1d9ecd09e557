"""
Pure functions for bookable time-of-day slots.

Times are "HH:MM" strings on a 24-hour clock. Nothing here touches
Django or holds state.
"""


def to_minutes(value: str) -> int:
    """
    Convert "HH:MM" to minutes since midnight.

    Raises:
        ValueError: If value is not a valid "HH:MM" string
    """
    try:
        hours_text, minutes_text = value.split(":")
        hours, minutes = int(hours_text), int(minutes_text)
    except (AttributeError, ValueError):
        raise ValueError(f"Invalid time '{value}', expected HH:MM")

    if not (0 <= hours < 24 and 0 <= minutes < 60):
        raise ValueError(f"Invalid time '{value}', expected HH:MM")
    return hours * 60 + minutes


def from_minutes(total: int) -> str:
    """Convert minutes since midnight back to "HH:MM"."""
    return f"{total // 60:02d}:{total % 60:02d}"


def generate_time_slots(
    start_time: str = "06:00",
    end_time: str = "20:00",
    interval_minutes: int = 30,
) -> list[str]:
    """
    Generate the ordered list of bookable slots.

    Both bounds are included when they fall on the interval. The result is a
    pure function of the arguments, so callers may regenerate it freely.

    Args:
        start_time: First slot ("HH:MM")
        end_time: Last permissible slot ("HH:MM")
        interval_minutes: Step between slots

    Returns:
        List of "HH:MM" strings (empty if start_time is after end_time)
    """
    if interval_minutes <= 0:
        raise ValueError("interval_minutes must be positive")

    start = to_minutes(start_time)
    end = to_minutes(end_time)
    return [from_minutes(m) for m in range(start, end + 1, interval_minutes)]


def format_time_display(value: str) -> str:
    """Format "HH:MM" as "hh:mm AM/PM" (e.g. "13:30" -> "01:30 PM")."""
    if not value:
        return ""

    minutes = to_minutes(value)
    hours, mins = divmod(minutes, 60)
    period = "AM" if hours < 12 else "PM"
    display_hours = hours % 12 or 12
    return f"{display_hours:02d}:{mins:02d} {period}"


def end_time_options(
    time_from: str,
    slots: list[str] = None,
    min_gap_minutes: int = 60,
) -> list[str]:
    """
    Slots that may be picked as an end time for the given start time.

    Only times at least min_gap_minutes after time_from are offered.
    """
    if slots is None:
        slots = generate_time_slots()
    if not time_from:
        return list(slots)

    earliest = to_minutes(time_from) + min_gap_minutes
    return [slot for slot in slots if to_minutes(slot) >= earliest]
