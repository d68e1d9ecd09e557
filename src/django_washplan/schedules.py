"""
Wash-schedule generation and validation.

Two ways to fill the schedule:
- Manual: allocate empty slots for the operator to fill in
- Rule-based: walk the calendar from the start date using a weekly or
  every-N-weeks rule until the required count or the end date is reached

Weekdays use Sunday=0 .. Saturday=6 throughout this module.
"""

from dataclasses import dataclass, field, replace
from datetime import date, timedelta
from typing import Iterable, Optional

from dateutil.relativedelta import relativedelta

from .choices import ScheduleRuleType
from .draft import PackageLineItem, WashSlot
from .exceptions import ScheduleRuleError
from .records import Package
from .timeslots import to_minutes


@dataclass
class ScheduleRule:
    type: str = ScheduleRuleType.WEEKLY
    weekdays: list[int] = field(default_factory=list)
    interval_weeks: int = 1
    interval_day: Optional[int] = None
    default_time_from: str = "09:00"
    default_time_to: str = "11:00"


@dataclass(frozen=True)
class GenerationResult:
    """Slots produced by a rule, plus how many were required."""

    slots: list
    required: int

    @property
    def shortfall(self) -> int:
        return max(0, self.required - len(self.slots))

    @property
    def warning(self) -> Optional[str]:
        if not self.shortfall:
            return None
        return (
            f"Only generated {len(self.slots)} out of {self.required} washes. "
            "Consider extending the duration or adjusting the rule."
        )


def sunday_weekday(day: date) -> int:
    """Weekday index with Sunday=0 (date.weekday() has Monday=0)."""
    return (day.weekday() + 1) % 7


def calculate_total_washes(
    package_items: Iterable[PackageLineItem],
    packages: Iterable[Package],
    months_duration: int,
) -> int:
    """Sum of max washes per month x duration over the selected packages."""
    by_id = {str(p.id): p for p in packages}
    total = 0
    for item in package_items:
        package = by_id.get(str(item.package_id))
        if package is not None:
            total += package.max_washes_per_month * months_duration
    return total


def allocate_manual_slots(existing: list[WashSlot], total_washes: int) -> list[WashSlot]:
    """
    Allocate blank slots for manual entry.

    A schedule that already has the required length is returned untouched so
    edits to individual slots survive unrelated changes.
    """
    if len(existing) == total_washes:
        return existing
    return [WashSlot() for _ in range(total_washes)]


def calculate_end_date(start_date: date, months_duration: int) -> date:
    """Exclusive end of the subscription period."""
    return start_date + relativedelta(months=months_duration)


def _check_rule(rule: ScheduleRule) -> None:
    if rule.type == ScheduleRuleType.WEEKLY:
        if not rule.weekdays:
            raise ScheduleRuleError("Please select at least one day of the week")
        if any(day not in range(7) for day in rule.weekdays):
            raise ScheduleRuleError("Weekdays must be between 0 (Sunday) and 6 (Saturday)")
    elif rule.type == ScheduleRuleType.INTERVAL:
        if rule.interval_day is None:
            raise ScheduleRuleError("Please select a day for the interval")
        if rule.interval_day not in range(7):
            raise ScheduleRuleError("Interval day must be between 0 (Sunday) and 6 (Saturday)")
        if not 1 <= rule.interval_weeks <= 4:
            raise ScheduleRuleError("Interval must be between 1 and 4 weeks")
    else:
        raise ScheduleRuleError(f"Unknown schedule rule type '{rule.type}'")

    try:
        valid_window = to_minutes(rule.default_time_to) > to_minutes(rule.default_time_from)
    except ValueError as e:
        raise ScheduleRuleError(str(e))
    if not valid_window:
        raise ScheduleRuleError("Default end time must be after start time")


def generate_from_rule(
    rule: ScheduleRule,
    start_date: Optional[date],
    months_duration: int,
    total_washes: int,
) -> GenerationResult:
    """
    Generate auto slots from a recurrence rule.

    Stops at total_washes slots or at the exclusive end date, whichever
    comes first. Producing fewer than total_washes is not an error; the
    result carries the shortfall for the caller to report.

    Raises:
        ScheduleRuleError: If the rule or its inputs cannot be used
    """
    if start_date is None:
        raise ScheduleRuleError("Please select a start date first")
    if total_washes <= 0:
        raise ScheduleRuleError("Please add packages first")
    _check_rule(rule)

    end_date = calculate_end_date(start_date, months_duration)
    slots = []

    def emit(day: date):
        slots.append(WashSlot(
            date=day,
            time_from=rule.default_time_from,
            time_to=rule.default_time_to,
            is_auto_generated=True,
        ))

    current = start_date
    if rule.type == ScheduleRuleType.WEEKLY:
        weekdays = set(rule.weekdays)
        while len(slots) < total_washes and current < end_date:
            if sunday_weekday(current) in weekdays:
                emit(current)
            current += timedelta(days=1)
    else:
        while sunday_weekday(current) != rule.interval_day and current < end_date:
            current += timedelta(days=1)
        step = timedelta(weeks=rule.interval_weeks)
        while len(slots) < total_washes and current < end_date:
            emit(current)
            current += step

    return GenerationResult(slots=slots, required=total_washes)


def edit_slot(slot: WashSlot, field_name: str, value) -> WashSlot:
    """Return an edited copy; any edit marks the slot as manually confirmed."""
    if field_name not in ("date", "time_from", "time_to"):
        raise ValueError(f"Cannot edit wash slot field '{field_name}'")
    return replace(slot, **{field_name: value, "is_auto_generated": False})


def validate_schedules(
    slots: list[WashSlot],
    required_count: Optional[int] = None,
    locked: bool = False,
) -> dict[str, str]:
    """
    Validate a schedule before leaving the schedules step.

    Returns a dict of field key -> message (empty = valid). Locked
    schedules always pass.
    """
    if locked:
        return {}

    errors = {}
    for index, slot in enumerate(slots):
        if not slot.date:
            errors[f"date_{index}"] = "Required"
        if not slot.time_from:
            errors[f"time_from_{index}"] = "Required"
        if not slot.time_to:
            errors[f"time_to_{index}"] = "Required"
        if slot.time_from and slot.time_to:
            try:
                ordered = to_minutes(slot.time_to) > to_minutes(slot.time_from)
            except ValueError:
                ordered = False
            if not ordered:
                errors[f"time_{index}"] = "End time must be after start time"

    # Both occurrences of a duplicate are flagged
    first_seen = {}
    for index, slot in enumerate(slots):
        if not slot.date:
            continue
        if slot.date in first_seen:
            errors[f"date_{index}"] = "Duplicate date"
            errors[f"date_{first_seen[slot.date]}"] = "Duplicate date"
        else:
            first_seen[slot.date] = index

    if required_count is not None and len(slots) != required_count:
        errors["schedules"] = f"Expected {required_count} wash schedules, got {len(slots)}"

    return errors
