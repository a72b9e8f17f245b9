"""Timecard calculation engine."""

from timecard_engine.calculators.aggregator import PeriodAggregator
from timecard_engine.calculators.daily import DailyEntryCalculator, calculate_daily_entry
from timecard_engine.calculators.time_math import apply_break_grace_period, duration
from timecard_engine.calculators.types import (
    AggregateTotals,
    DailyCalculationResult,
    PayConfig,
    PunchField,
    Punches,
    TimeType,
)

__all__ = [
    "PeriodAggregator",
    "DailyEntryCalculator",
    "calculate_daily_entry",
    "apply_break_grace_period",
    "duration",
    "AggregateTotals",
    "DailyCalculationResult",
    "PayConfig",
    "PunchField",
    "Punches",
    "TimeType",
]
