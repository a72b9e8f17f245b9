"""Daily entry calculator - hours, break and pay for one day."""

from __future__ import annotations

from decimal import Decimal

from timecard_engine.calculators.time_math import (
    apply_break_grace_period,
    format_time_value,
    minutes_between,
    round_hours,
    round_to_cents,
)
from timecard_engine.calculators.types import (
    DailyCalculationResult,
    PayConfig,
    PunchField,
    Punches,
    TimeType,
    ValidationIssue,
)
from timecard_engine.errors import ErrorKind

# Longer shifts are rejected for manual review
MAX_SHIFT_MINUTES = Decimal(20 * 60)


class DailyEntryCalculator:
    """Pure calculator for a single day's punches.

    Pipeline:
    1) Validate punch ordering (check-in <= break start <= break end <= check-out)
    2) Incomplete day (missing check-in or check-out) -> zeros, not an error
    3) Gross minutes (at most 20 hours), minus grace-normalized break minutes
    4) Reject negative net time
    5) Pay: hourly = hours x rate, daily = flat rate per complete day

    Problems are returned on the result, never raised, so batch callers
    decide whether to abort.
    """

    def __init__(self, config: PayConfig):
        self.config = config

    def calculate(self, punches: Punches) -> DailyCalculationResult:
        """Calculate hours worked, break duration and pay."""
        result = DailyCalculationResult(is_complete=punches.is_complete)

        result.validation_errors.extend(self._validate_sequence(punches))
        if not result.is_valid or not punches.is_complete:
            return result

        gross_minutes = minutes_between(punches.check_in, punches.check_out)
        if gross_minutes > MAX_SHIFT_MINUTES:
            result.validation_errors.append(
                ValidationIssue(
                    kind=ErrorKind.SHIFT_TOO_LONG,
                    field=PunchField.CHECK_OUT,
                    message=(
                        f"Shift of {gross_minutes} minutes exceeds the "
                        f"{MAX_SHIFT_MINUTES // 60}-hour limit and needs manual review"
                    ),
                )
            )
            return result

        break_minutes = Decimal("0")
        if punches.has_break:
            break_minutes = apply_break_grace_period(
                minutes_between(punches.break_start, punches.break_end),
                self.config.default_break_minutes,
                self.config.grace_minutes,
            )

        net_minutes = gross_minutes - break_minutes
        if net_minutes < 0:
            result.validation_errors.append(
                ValidationIssue(
                    kind=ErrorKind.NEGATIVE_HOURS,
                    field=PunchField.CHECK_OUT,
                    message=(
                        f"Break of {break_minutes} minutes exceeds shift of "
                        f"{gross_minutes} minutes"
                    ),
                )
            )
            return result

        result.hours_worked = round_hours(net_minutes / Decimal(60))
        result.break_duration = round_hours(break_minutes / Decimal(60))
        result.daily_pay = self._calculate_pay(result.hours_worked)
        return result

    def _calculate_pay(self, hours_worked: Decimal) -> Decimal:
        if self.config.time_type == TimeType.DAILY:
            return round_to_cents(self.config.pay_rate)
        return round_to_cents(hours_worked * self.config.pay_rate)

    @staticmethod
    def _validate_sequence(punches: Punches) -> list[ValidationIssue]:
        issues: list[ValidationIssue] = []

        def before(later, earlier, kind: ErrorKind, field: PunchField, label: str) -> None:
            if later is not None and earlier is not None and later < earlier:
                issues.append(
                    ValidationIssue(
                        kind=kind,
                        field=field,
                        message=(
                            f"{label} ({format_time_value(later)}) is before "
                            f"{format_time_value(earlier)}"
                        ),
                    )
                )

        before(
            punches.check_out, punches.check_in,
            ErrorKind.INVALID_SEQUENCE, PunchField.CHECK_OUT, "Check-out",
        )
        before(
            punches.break_end, punches.break_start,
            ErrorKind.NEGATIVE_BREAK, PunchField.BREAK_END, "Break end",
        )
        before(
            punches.break_start, punches.check_in,
            ErrorKind.INVALID_SEQUENCE, PunchField.BREAK_START, "Break start",
        )
        before(
            punches.check_out, punches.break_end,
            ErrorKind.INVALID_SEQUENCE, PunchField.BREAK_END, "Check-out",
        )
        if punches.break_end is None:
            before(
                punches.check_out, punches.break_start,
                ErrorKind.INVALID_SEQUENCE, PunchField.BREAK_START, "Check-out",
            )
        return issues


def calculate_daily_entry(
    punches: Punches,
    pay_rate: Decimal,
    time_type: TimeType | str = TimeType.HOURLY,
    *,
    default_break_minutes: Decimal = Decimal("30"),
    grace_minutes: Decimal = Decimal("5"),
) -> DailyCalculationResult:
    """Calculate one day from raw punches, a pay rate and a time type."""
    config = PayConfig(
        pay_rate=Decimal(pay_rate),
        time_type=TimeType(time_type),
        default_break_minutes=Decimal(default_break_minutes),
        grace_minutes=Decimal(grace_minutes),
    )
    return DailyEntryCalculator(config).calculate(punches)
