"""Tests for the daily entry calculator."""

from datetime import time
from decimal import Decimal

import pytest

from timecard_engine.calculators import (
    DailyEntryCalculator,
    PayConfig,
    PunchField,
    Punches,
    TimeType,
    calculate_daily_entry,
)
from timecard_engine.errors import ErrorKind


@pytest.fixture
def hourly() -> DailyEntryCalculator:
    return DailyEntryCalculator(PayConfig(pay_rate=Decimal("20"), time_type=TimeType.HOURLY))


def shift(check_in, check_out, break_start=None, break_end=None) -> Punches:
    return Punches(
        check_in=check_in,
        break_start=break_start,
        break_end=break_end,
        check_out=check_out,
    )


class TestHourlyCalculation:
    """Test hours, break and pay for hourly days."""

    def test_full_day_without_break(self, hourly):
        result = hourly.calculate(shift(time(9, 0), time(17, 0)))

        assert result.is_valid
        assert result.is_complete
        assert result.hours_worked == Decimal("8.00")
        assert result.break_duration == Decimal("0.00")
        assert result.daily_pay == Decimal("160.00")

    def test_break_within_grace_normalized(self, hourly):
        result = hourly.calculate(
            shift(time(8, 0), time(17, 0), time(12, 0), time(12, 32))
        )

        assert result.break_duration == Decimal("0.50")
        assert result.hours_worked == Decimal("8.50")
        assert result.daily_pay == Decimal("170.00")

    def test_break_at_grace_boundary(self, hourly):
        result = hourly.calculate(
            shift(time(9, 0), time(17, 0), time(12, 0), time(12, 34))
        )

        assert result.break_duration == Decimal("0.50")
        assert result.hours_worked == Decimal("7.50")

    def test_break_beyond_grace_kept(self, hourly):
        result = hourly.calculate(
            shift(time(9, 0), time(17, 0), time(12, 0), time(12, 36))
        )

        assert result.break_duration == Decimal("0.60")
        assert result.hours_worked == Decimal("7.40")
        assert result.daily_pay == Decimal("148.00")

    def test_break_start_without_end_ignored(self, hourly):
        result = hourly.calculate(
            shift(time(9, 0), time(17, 0), break_start=time(12, 0))
        )

        assert result.is_valid
        assert result.break_duration == Decimal("0.00")
        assert result.hours_worked == Decimal("8.00")

    def test_pay_rounded_to_cents(self):
        calculator = DailyEntryCalculator(PayConfig(pay_rate=Decimal("17.333")))
        result = calculator.calculate(shift(time(9, 0), time(10, 0)))

        assert result.daily_pay == Decimal("17.33")


class TestDailyRate:
    """Test flat daily pay."""

    def test_complete_day_earns_flat_rate(self):
        result = calculate_daily_entry(
            shift(time(9, 0), time(11, 0)), Decimal("250"), TimeType.DAILY
        )

        assert result.hours_worked == Decimal("2.00")
        assert result.daily_pay == Decimal("250.00")

    def test_incomplete_day_earns_nothing(self):
        result = calculate_daily_entry(Punches(check_in=time(9, 0)), Decimal("250"), "daily")

        assert result.is_valid
        assert result.is_complete is False
        assert result.daily_pay == Decimal("0")


class TestIncompleteDay:
    def test_missing_check_out_yields_zeros(self, hourly):
        result = hourly.calculate(Punches(check_in=time(9, 0)))

        assert result.is_valid
        assert result.is_complete is False
        assert result.hours_worked == Decimal("0")
        assert result.break_duration == Decimal("0")
        assert result.daily_pay == Decimal("0")

    def test_empty_day(self, hourly):
        result = hourly.calculate(Punches())

        assert result.is_valid
        assert result.hours_worked == Decimal("0")


class TestSequenceValidation:
    """Test punch ordering checks."""

    def test_check_out_before_check_in(self, hourly):
        result = hourly.calculate(shift(time(17, 0), time(9, 0)))

        assert not result.is_valid
        issue = result.validation_errors[0]
        assert issue.kind == ErrorKind.INVALID_SEQUENCE
        assert issue.field == PunchField.CHECK_OUT
        assert result.hours_worked == Decimal("0")

    def test_break_end_before_break_start(self, hourly):
        result = hourly.calculate(
            shift(time(9, 0), time(17, 0), time(12, 30), time(12, 0))
        )

        assert [i.kind for i in result.validation_errors] == [ErrorKind.NEGATIVE_BREAK]
        assert result.validation_errors[0].field == PunchField.BREAK_END

    def test_break_before_check_in(self, hourly):
        result = hourly.calculate(
            shift(time(9, 0), time(17, 0), time(8, 30), time(9, 30))
        )

        assert result.validation_errors[0].kind == ErrorKind.INVALID_SEQUENCE
        assert result.validation_errors[0].field == PunchField.BREAK_START

    def test_break_after_check_out(self, hourly):
        result = hourly.calculate(
            shift(time(9, 0), time(17, 0), time(16, 45), time(17, 15))
        )

        assert result.validation_errors[0].kind == ErrorKind.INVALID_SEQUENCE
        assert result.validation_errors[0].field == PunchField.BREAK_END

    def test_open_break_after_check_out(self, hourly):
        result = hourly.calculate(
            shift(time(9, 0), time(17, 0), break_start=time(17, 30))
        )

        assert result.validation_errors[0].field == PunchField.BREAK_START

    def test_incomplete_day_still_validated(self, hourly):
        result = hourly.calculate(
            Punches(check_in=time(9, 0), break_start=time(8, 0))
        )

        assert not result.is_valid

    def test_snapped_break_longer_than_shift(self, hourly):
        # 26 minute break snaps to 30, shift is only 27 minutes
        result = hourly.calculate(
            shift(time(9, 0), time(9, 27), time(9, 0), time(9, 26))
        )

        assert result.validation_errors[0].kind == ErrorKind.NEGATIVE_HOURS
        assert result.validation_errors[0].field == PunchField.CHECK_OUT
        assert result.hours_worked == Decimal("0")


class TestShiftLength:
    def test_shift_over_twenty_hours_rejected(self, hourly):
        result = hourly.calculate(shift(time(2, 0), time(22, 1)))

        assert not result.is_valid
        assert result.validation_errors[0].kind == ErrorKind.SHIFT_TOO_LONG
        assert result.validation_errors[0].field == PunchField.CHECK_OUT
        assert result.hours_worked == Decimal("0")
        assert result.daily_pay == Decimal("0")

    def test_twenty_hour_shift_allowed(self, hourly):
        result = hourly.calculate(
            shift(time(2, 0), time(22, 0), time(12, 0), time(13, 0))
        )

        assert result.is_valid
        assert result.hours_worked == Decimal("19.00")
        assert result.daily_pay == Decimal("380.00")
