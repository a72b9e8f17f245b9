"""Period aggregator - header totals and multi-day reporting views."""

from __future__ import annotations

from collections.abc import Iterable
from datetime import date, timedelta
from decimal import Decimal
from typing import TYPE_CHECKING

from timecard_engine.calculators.time_math import round_hours, round_to_cents
from timecard_engine.calculators.types import AggregateTotals, PeriodDays, PeriodSummary

if TYPE_CHECKING:
    from timecard_engine.models import DailyEntry, TimecardHeader


class PeriodAggregator:
    """Derives header totals from the complete set of daily entries.

    Totals are always a fresh sum over every entry. Nothing here reads the
    header's previous totals.
    """

    @staticmethod
    def aggregate(entries: Iterable[DailyEntry]) -> AggregateTotals:
        """Exact Decimal sums over the given entries."""
        total_hours = Decimal("0")
        total_break = Decimal("0")
        total_pay = Decimal("0")
        for entry in entries:
            total_hours += entry.hours_worked
            total_break += entry.break_duration
            total_pay += entry.daily_pay
        return AggregateTotals(
            total_hours=total_hours,
            total_break_duration=total_break,
            total_pay=total_pay,
        )

    @staticmethod
    def apply(header: TimecardHeader, totals: AggregateTotals) -> None:
        """Overwrite the header's aggregate columns."""
        header.total_hours = totals.total_hours
        header.total_break_duration = totals.total_break_duration
        header.total_pay = totals.total_pay

    @classmethod
    def verify_totals(
        cls, header: TimecardHeader, entries: Iterable[DailyEntry]
    ) -> tuple[bool, list[str]]:
        """Check that header totals match the sum of its entries.

        Returns (is_valid, list_of_errors).
        """
        expected = cls.aggregate(entries)
        errors: list[str] = []
        for name in ("total_hours", "total_break_duration", "total_pay"):
            stored = getattr(header, name)
            computed = getattr(expected, name)
            if stored != computed:
                errors.append(f"{name} mismatch: header shows {stored}, entries sum to {computed}")
        return len(errors) == 0, errors

    @staticmethod
    def classify_period_days(period_start: date, period_end: date) -> PeriodDays:
        """Split a period into rehearsal days and the show day.

        The last day of the period is always the show day; a single-day
        period has no rehearsal days.
        """
        if period_end < period_start:
            raise ValueError(f"Period ends ({period_end}) before it starts ({period_start})")
        rehearsal_days = [
            period_start + timedelta(days=offset)
            for offset in range((period_end - period_start).days)
        ]
        return PeriodDays(rehearsal_days=rehearsal_days, show_day=period_end)

    @classmethod
    def summarize_period(
        cls, header: TimecardHeader, entries: Iterable[DailyEntry]
    ) -> PeriodSummary:
        """Totals, day classification and per-working-day averages."""
        entries = list(entries)
        totals = cls.aggregate(entries)
        working_days = max(len(entries), 1)
        divisor = Decimal(working_days)
        return PeriodSummary(
            totals=totals,
            days=cls.classify_period_days(header.period_start_date, header.period_end_date),
            working_days=working_days,
            average_hours_per_day=round_hours(totals.total_hours / divisor),
            average_break_per_day=round_hours(totals.total_break_duration / divisor),
            average_pay_per_day=round_to_cents(totals.total_pay / divisor),
        )
