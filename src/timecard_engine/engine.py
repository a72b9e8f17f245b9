"""Timecard engine - the library entry point used by the invoking layer."""

from __future__ import annotations

from collections.abc import Mapping
from decimal import Decimal
from typing import Any
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from timecard_engine.calculators.daily import calculate_daily_entry
from timecard_engine.calculators.rate_resolver import PayConfigResolver
from timecard_engine.calculators.types import (
    AggregateTotals,
    DailyCalculationResult,
    PeriodSummary,
    Punches,
    TimeType,
)
from timecard_engine.config import Settings, get_settings
from timecard_engine.models import TimecardHeader
from timecard_engine.services.audit_service import AuditTrailService
from timecard_engine.services.state_machine import AuditActionType, TimecardStatus
from timecard_engine.services.timecard_service import TimecardService
from timecard_engine.services.types import Actor, EditResult


class TimecardEngine:
    """Facade over the calculation, lifecycle and audit services.

    The session's transaction is owned by the caller: a failed operation
    leaves nothing staged, a successful one is visible once the caller
    commits.
    """

    def __init__(
        self,
        session: AsyncSession,
        settings: Settings | None = None,
        pay_config_resolver: PayConfigResolver | None = None,
    ):
        self.session = session
        self.settings = settings or get_settings()
        self.timecards = TimecardService(
            session, settings=self.settings, pay_config_resolver=pay_config_resolver
        )
        self.audit = AuditTrailService(session, timecard_service=self.timecards)

    def calculate_daily_entry(
        self,
        punches: Punches,
        pay_rate: Decimal,
        time_type: TimeType | str = TimeType.HOURLY,
    ) -> DailyCalculationResult:
        """Pure daily calculation with the configured break policy."""
        return calculate_daily_entry(
            punches,
            pay_rate,
            time_type,
            default_break_minutes=Decimal(self.settings.default_break_minutes),
            grace_minutes=Decimal(self.settings.break_grace_minutes),
        )

    async def recompute_header_totals(self, timecard_header_id: UUID) -> AggregateTotals:
        return await self.timecards.recompute_header_totals(timecard_header_id)

    async def apply_edit(
        self,
        timecard_header_id: UUID,
        edit_request: Mapping[str, Any],
        actor: Actor,
        action_type: AuditActionType | str | None = None,
        reason: str | None = None,
        admin_note: str | None = None,
    ) -> EditResult:
        return await self.audit.apply_edit(
            timecard_header_id,
            edit_request,
            actor,
            action_type=action_type,
            reason=reason,
            admin_note=admin_note,
        )

    async def transition_status(
        self,
        timecard_header_id: UUID,
        target_status: TimecardStatus | str,
        actor: Actor,
        reason: str | None = None,
    ) -> TimecardHeader:
        return await self.timecards.transition_status(
            timecard_header_id, target_status, actor, reason
        )

    async def return_to_draft(
        self,
        timecard_header_id: UUID,
        edit_request: Mapping[str, Any],
        actor: Actor,
        reason: str,
        admin_note: str | None = None,
    ) -> EditResult:
        return await self.audit.return_to_draft(
            timecard_header_id, edit_request, actor, reason, admin_note=admin_note
        )

    async def summarize(self, timecard_header_id: UUID) -> PeriodSummary:
        return await self.timecards.summarize(timecard_header_id)
