"""Type definitions for the calculation pipeline."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, time
from decimal import Decimal
from enum import Enum

from timecard_engine.errors import ErrorKind


class TimeType(str, Enum):
    """How pay is derived from a day's punches."""

    HOURLY = "hourly"
    DAILY = "daily"  # flat rate per complete day


class PunchField(str, Enum):
    """Canonical punch field names, as written to the audit log."""

    CHECK_IN = "check_in"
    BREAK_START = "break_start"
    BREAK_END = "break_end"
    CHECK_OUT = "check_out"

    @property
    def column(self) -> str:
        """DailyEntry attribute holding this punch."""
        return f"{self.value}_time"


@dataclass(frozen=True)
class Punches:
    """Raw time-of-day punches for one day."""

    check_in: time | None = None
    break_start: time | None = None
    break_end: time | None = None
    check_out: time | None = None

    @property
    def is_complete(self) -> bool:
        return self.check_in is not None and self.check_out is not None

    @property
    def has_break(self) -> bool:
        return self.break_start is not None and self.break_end is not None


@dataclass(frozen=True)
class PayConfig:
    """Pay rate, time type and break policy for one header."""

    pay_rate: Decimal
    time_type: TimeType = TimeType.HOURLY
    default_break_minutes: Decimal = Decimal("30")
    grace_minutes: Decimal = Decimal("5")


@dataclass(frozen=True)
class ValidationIssue:
    """A calculation problem, reported against the punch that caused it."""

    kind: ErrorKind
    field: PunchField
    message: str


@dataclass
class DailyCalculationResult:
    """Result of calculating one day."""

    hours_worked: Decimal = Decimal("0")
    break_duration: Decimal = Decimal("0")  # hours
    daily_pay: Decimal = Decimal("0")
    is_complete: bool = False
    validation_errors: list[ValidationIssue] = field(default_factory=list)

    @property
    def is_valid(self) -> bool:
        return len(self.validation_errors) == 0


@dataclass(frozen=True)
class AggregateTotals:
    """Header-level totals derived from daily entries."""

    total_hours: Decimal = Decimal("0")
    total_break_duration: Decimal = Decimal("0")
    total_pay: Decimal = Decimal("0")


@dataclass(frozen=True)
class PeriodDays:
    """Rehearsal/show classification of a period's days."""

    rehearsal_days: list[date]
    show_day: date

    @property
    def is_multi_day(self) -> bool:
        return len(self.rehearsal_days) > 0

    @property
    def all_days(self) -> list[date]:
        return [*self.rehearsal_days, self.show_day]


@dataclass(frozen=True)
class PeriodSummary:
    """Read-only reporting view of a header."""

    totals: AggregateTotals
    days: PeriodDays
    working_days: int
    average_hours_per_day: Decimal
    average_break_per_day: Decimal
    average_pay_per_day: Decimal
