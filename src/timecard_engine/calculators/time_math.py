"""Time arithmetic primitives.

All arithmetic is done on Decimal minutes derived from whole seconds, so
punches recorded to the minute produce exact results. Rounding happens
once, at the edge, with ROUND_HALF_UP.
"""

from __future__ import annotations

from datetime import date, datetime, time
from decimal import ROUND_HALF_UP, Decimal

from timecard_engine.errors import InvalidSequence, InvalidTimeValue

HOURS_QUANTUM = Decimal("0.01")
CENTS_QUANTUM = Decimal("0.01")
DEFAULT_GRACE_MINUTES = Decimal("5")

_TIME_FORMATS = ("%H:%M", "%H:%M:%S", "%H:%M:%S.%f", "%I:%M %p", "%I:%M%p")


def _seconds_of_day(value: time) -> Decimal:
    return Decimal(value.hour * 3600 + value.minute * 60 + value.second) + (
        Decimal(value.microsecond) / Decimal(1_000_000)
    )


def minutes_between(
    start: time,
    end: time,
    *,
    work_date: date | None = None,
    field: str | None = None,
) -> Decimal:
    """Minutes from start to end on the same calendar day.

    Raises InvalidSequence if end precedes start.
    """
    if end < start:
        raise InvalidSequence(
            f"{format_time_value(end)} is before {format_time_value(start)}",
            work_date=work_date,
            field=field,
        )
    return (_seconds_of_day(end) - _seconds_of_day(start)) / Decimal(60)


def duration(
    start: time,
    end: time,
    *,
    work_date: date | None = None,
    field: str | None = None,
) -> Decimal:
    """Decimal hours between two times of day (unrounded)."""
    return minutes_between(start, end, work_date=work_date, field=field) / Decimal(60)


def apply_break_grace_period(
    actual_break_minutes: Decimal,
    configured_default_minutes: Decimal,
    grace_minutes: Decimal = DEFAULT_GRACE_MINUTES,
) -> Decimal:
    """Snap a measured break to the policy break when within the grace window.

    With a 30 minute default and 5 minute grace, 25..35 minutes all record
    as 30; anything outside that window is kept as measured.
    """
    actual = Decimal(actual_break_minutes)
    configured = Decimal(configured_default_minutes)
    if abs(actual - configured) <= Decimal(grace_minutes):
        return configured
    return actual


def round_hours(value: Decimal) -> Decimal:
    """Round hours to 2 decimal places (half-up)."""
    return value.quantize(HOURS_QUANTUM, rounding=ROUND_HALF_UP)


def round_to_cents(amount: Decimal) -> Decimal:
    """Round money to cents (half-up)."""
    return amount.quantize(CENTS_QUANTUM, rounding=ROUND_HALF_UP)


def parse_time_value(
    value: object,
    *,
    work_date: date | None = None,
    field: str | None = None,
) -> time | None:
    """Parse a proposed punch value.

    Accepts time objects, datetimes, "HH:MM", "HH:MM:SS", 12-hour clock
    strings and ISO datetimes (the time part is kept). None and blank
    strings mean the punch is cleared.
    """
    if value is None:
        return None
    if isinstance(value, datetime):
        return value.time().replace(tzinfo=None)
    if isinstance(value, time):
        return value.replace(tzinfo=None)
    if not isinstance(value, str):
        raise InvalidTimeValue(
            f"Unsupported time value {value!r}", work_date=work_date, field=field
        )

    text = value.strip()
    if not text:
        return None

    for fmt in _TIME_FORMATS:
        try:
            return datetime.strptime(text, fmt).time()
        except ValueError:
            continue

    try:
        return datetime.fromisoformat(text.replace("Z", "+00:00")).time().replace(tzinfo=None)
    except ValueError:
        raise InvalidTimeValue(
            f"Cannot parse time value {value!r}", work_date=work_date, field=field
        ) from None


def format_time_value(value: time | None) -> str | None:
    """Stringify a punch for audit storage."""
    if value is None:
        return None
    if value.second or value.microsecond:
        return value.strftime("%H:%M:%S")
    return value.strftime("%H:%M")
