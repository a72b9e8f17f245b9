"""Tests for the period aggregator."""

from datetime import date
from decimal import Decimal
from types import SimpleNamespace

import pytest

from timecard_engine.calculators import PeriodAggregator
from timecard_engine.models import DailyEntry


def entry(work_date: date, hours: str, break_hours: str, pay: str) -> DailyEntry:
    return DailyEntry(
        work_date=work_date,
        hours_worked=Decimal(hours),
        break_duration=Decimal(break_hours),
        daily_pay=Decimal(pay),
    )


@pytest.fixture
def entries() -> list[DailyEntry]:
    return [
        entry(date(2024, 3, 4), "7.50", "0.50", "150.00"),
        entry(date(2024, 3, 5), "8.00", "0.00", "160.00"),
        entry(date(2024, 3, 6), "0.00", "0.00", "0.00"),
    ]


class TestAggregate:
    def test_sums_every_entry(self, entries):
        totals = PeriodAggregator.aggregate(entries)

        assert totals.total_hours == Decimal("15.50")
        assert totals.total_break_duration == Decimal("0.50")
        assert totals.total_pay == Decimal("310.00")

    def test_no_entries(self):
        totals = PeriodAggregator.aggregate([])

        assert totals.total_hours == Decimal("0")
        assert totals.total_pay == Decimal("0")

    def test_apply_overwrites_stale_totals(self, entries):
        header = SimpleNamespace(
            total_hours=Decimal("99"),
            total_break_duration=Decimal("99"),
            total_pay=Decimal("99"),
        )

        PeriodAggregator.apply(header, PeriodAggregator.aggregate(entries))

        assert header.total_hours == Decimal("15.50")
        assert header.total_break_duration == Decimal("0.50")
        assert header.total_pay == Decimal("310.00")


class TestVerifyTotals:
    def test_matching_totals(self, entries):
        header = SimpleNamespace(
            total_hours=Decimal("15.50"),
            total_break_duration=Decimal("0.50"),
            total_pay=Decimal("310.00"),
        )

        is_valid, errors = PeriodAggregator.verify_totals(header, entries)

        assert is_valid is True
        assert errors == []

    def test_drifted_totals_reported(self, entries):
        header = SimpleNamespace(
            total_hours=Decimal("15.50"),
            total_break_duration=Decimal("0.50"),
            total_pay=Decimal("300.00"),
        )

        is_valid, errors = PeriodAggregator.verify_totals(header, entries)

        assert is_valid is False
        assert len(errors) == 1
        assert "total_pay" in errors[0]


class TestClassifyPeriodDays:
    """Test rehearsal/show day classification."""

    def test_multi_day_period(self):
        days = PeriodAggregator.classify_period_days(date(2024, 3, 4), date(2024, 3, 6))

        assert days.rehearsal_days == [date(2024, 3, 4), date(2024, 3, 5)]
        assert days.show_day == date(2024, 3, 6)
        assert days.is_multi_day is True
        assert days.all_days == [date(2024, 3, 4), date(2024, 3, 5), date(2024, 3, 6)]

    def test_single_day_period(self):
        days = PeriodAggregator.classify_period_days(date(2024, 3, 4), date(2024, 3, 4))

        assert days.rehearsal_days == []
        assert days.show_day == date(2024, 3, 4)
        assert days.is_multi_day is False

    def test_reversed_period_rejected(self):
        with pytest.raises(ValueError):
            PeriodAggregator.classify_period_days(date(2024, 3, 6), date(2024, 3, 4))


class TestSummarizePeriod:
    def test_averages_over_recorded_days(self, entries):
        header = SimpleNamespace(
            period_start_date=date(2024, 3, 4),
            period_end_date=date(2024, 3, 6),
        )

        summary = PeriodAggregator.summarize_period(header, entries)

        assert summary.working_days == 3
        assert summary.average_hours_per_day == Decimal("5.17")
        assert summary.average_break_per_day == Decimal("0.17")
        assert summary.average_pay_per_day == Decimal("103.33")
        assert summary.days.show_day == date(2024, 3, 6)

    def test_empty_period_does_not_divide_by_zero(self):
        header = SimpleNamespace(
            period_start_date=date(2024, 3, 4),
            period_end_date=date(2024, 3, 4),
        )

        summary = PeriodAggregator.summarize_period(header, [])

        assert summary.working_days == 1
        assert summary.average_hours_per_day == Decimal("0.00")
