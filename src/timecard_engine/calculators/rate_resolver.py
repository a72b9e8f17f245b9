"""Pay configuration resolution for a timecard header."""

from __future__ import annotations

from decimal import Decimal
from typing import TYPE_CHECKING, Protocol, runtime_checkable

from timecard_engine.calculators.types import PayConfig, TimeType
from timecard_engine.config import get_settings

if TYPE_CHECKING:
    from timecard_engine.config import Settings
    from timecard_engine.models import TimecardHeader


@runtime_checkable
class PayConfigResolver(Protocol):
    """Supplies pay rate, time type and break policy for a header.

    Projects with their own break policy plug in here; the engine never
    looks up project or role configuration itself.
    """

    def resolve(self, header: TimecardHeader) -> PayConfig:
        """Return the pay configuration to calculate this header's days with."""
        ...


class HeaderPayConfigResolver:
    """Default resolver.

    Rate selection:
    1. pay_rate and time_type come from the header's own snapshot
    2. Break default and grace window come from settings, unless overridden
    """

    def __init__(
        self,
        settings: Settings | None = None,
        default_break_minutes: Decimal | None = None,
        grace_minutes: Decimal | None = None,
    ):
        settings = settings or get_settings()
        self.default_break_minutes = (
            default_break_minutes
            if default_break_minutes is not None
            else Decimal(settings.default_break_minutes)
        )
        self.grace_minutes = (
            grace_minutes if grace_minutes is not None else Decimal(settings.break_grace_minutes)
        )

    def resolve(self, header: TimecardHeader) -> PayConfig:
        return PayConfig(
            pay_rate=Decimal(header.pay_rate),
            time_type=TimeType(header.time_type),
            default_break_minutes=self.default_break_minutes,
            grace_minutes=self.grace_minutes,
        )
