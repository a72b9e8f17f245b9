"""Timecard service - header lifecycle, daily entries and totals."""

from __future__ import annotations

import logging
from datetime import date
from decimal import Decimal
from uuid import UUID, uuid4

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from timecard_engine.calculators.aggregator import PeriodAggregator
from timecard_engine.calculators.daily import DailyEntryCalculator
from timecard_engine.calculators.rate_resolver import HeaderPayConfigResolver, PayConfigResolver
from timecard_engine.calculators.types import (
    AggregateTotals,
    DailyCalculationResult,
    PeriodSummary,
    Punches,
    TimeType,
)
from timecard_engine.config import Settings, get_settings
from timecard_engine.errors import (
    DayOutOfRange,
    DuplicateDay,
    ImmutableState,
    InvalidTransition,
    PersistenceFailure,
    TimecardNotFound,
    error_for_kind,
)
from timecard_engine.models import AuditLogEntry, DailyEntry, TimecardHeader
from timecard_engine.services.audit_batch import AuditBatch
from timecard_engine.services.state_machine import TimecardStateMachine, TimecardStatus
from timecard_engine.services.types import Actor

logger = logging.getLogger(__name__)


def punches_from_entry(entry: DailyEntry | None) -> Punches:
    """Current punches of an entry (all empty for a day not yet recorded)."""
    if entry is None:
        return Punches()
    return Punches(
        check_in=entry.check_in_time,
        break_start=entry.break_start_time,
        break_end=entry.break_end_time,
        check_out=entry.check_out_time,
    )


def apply_calculation(entry: DailyEntry, result: DailyCalculationResult) -> None:
    """Write calculated values onto an entry."""
    entry.hours_worked = result.hours_worked
    entry.break_duration = result.break_duration
    entry.daily_pay = result.daily_pay


class TimecardService:
    """Service for managing timecard lifecycle.

    Operations:
    - start_period: Create a draft header for a worker/project period
    - record_daily_entry: Add a day's punches to a draft header
    - recompute_header_totals: Rebuild header totals from every daily entry
    - transition_status: Move a header through the status graph
    - summarize: Rehearsal/show classification and per-day averages
    """

    def __init__(
        self,
        session: AsyncSession,
        settings: Settings | None = None,
        pay_config_resolver: PayConfigResolver | None = None,
    ):
        self.session = session
        self.settings = settings or get_settings()
        self.pay_config_resolver = pay_config_resolver or HeaderPayConfigResolver(self.settings)
        self.state_machine = TimecardStateMachine(
            allow_approved_reopen=self.settings.allow_approved_reopen
        )

    # ----- Loading -----

    async def get_header(
        self, timecard_header_id: UUID, for_update: bool = False
    ) -> TimecardHeader:
        """Load a header, optionally locking its row for the transaction.

        Raises TimecardNotFound if it does not exist.
        """
        query = select(TimecardHeader).where(
            TimecardHeader.timecard_header_id == timecard_header_id
        )
        if for_update:
            query = query.with_for_update()
        result = await self.session.execute(query)
        header = result.scalar_one_or_none()
        if header is None:
            raise TimecardNotFound(f"Timecard {timecard_header_id} not found")
        return header

    async def get_daily_entries(self, timecard_header_id: UUID) -> list[DailyEntry]:
        """All daily entries of a header, ordered by work date."""
        result = await self.session.execute(
            select(DailyEntry)
            .where(DailyEntry.timecard_header_id == timecard_header_id)
            .order_by(DailyEntry.work_date)
        )
        return list(result.scalars().all())

    def calculator_for(self, header: TimecardHeader) -> DailyEntryCalculator:
        return DailyEntryCalculator(self.pay_config_resolver.resolve(header))

    # ----- Headers and days -----

    async def start_period(
        self,
        worker_id: UUID,
        project_id: UUID,
        period_start_date: date,
        period_end_date: date,
        pay_rate: Decimal,
        time_type: TimeType | str = TimeType.HOURLY,
    ) -> TimecardHeader:
        """Create a draft header with zero totals."""
        if period_end_date < period_start_date:
            raise ValueError(
                f"Period ends ({period_end_date}) before it starts ({period_start_date})"
            )
        header = TimecardHeader(
            timecard_header_id=uuid4(),
            worker_id=worker_id,
            project_id=project_id,
            period_start_date=period_start_date,
            period_end_date=period_end_date,
            status=TimecardStatus.DRAFT.value,
            pay_rate=Decimal(pay_rate),
            time_type=TimeType(time_type).value,
            total_hours=Decimal("0"),
            total_break_duration=Decimal("0"),
            total_pay=Decimal("0"),
            admin_edited=False,
        )
        self.session.add(header)
        await self.flush()
        logger.info(
            "Started timecard period",
            extra={
                "timecard_header_id": str(header.timecard_header_id),
                "worker_id": str(worker_id),
                "period_start_date": period_start_date.isoformat(),
                "period_end_date": period_end_date.isoformat(),
            },
        )
        return header

    async def record_daily_entry(
        self,
        timecard_header_id: UUID,
        work_date: date,
        punches: Punches,
        notes: str | None = None,
        location: str | None = None,
    ) -> DailyEntry:
        """Record a new day on a draft header and refresh its totals.

        Raises DuplicateDay if the date already has an entry; corrections to
        existing days go through the audited edit path.
        """
        header = await self.get_header(timecard_header_id, for_update=True)
        if header.status != TimecardStatus.DRAFT:
            raise ImmutableState(
                f"Timecard {timecard_header_id} is {header.status}; "
                "days can only be recorded directly on draft timecards",
                work_date=work_date,
            )
        if not header.contains_date(work_date):
            raise DayOutOfRange(
                f"{work_date} is outside the period "
                f"{header.period_start_date}..{header.period_end_date}",
                work_date=work_date,
            )

        entries = await self.get_daily_entries(timecard_header_id)
        if any(entry.work_date == work_date for entry in entries):
            raise DuplicateDay(
                f"Timecard {timecard_header_id} already has an entry for {work_date}",
                work_date=work_date,
            )

        result = self.calculator_for(header).calculate(punches)
        if not result.is_valid:
            issue = result.validation_errors[0]
            raise error_for_kind(
                issue.kind, issue.message, work_date=work_date, field=issue.field.value
            )

        entry = DailyEntry(
            daily_entry_id=uuid4(),
            timecard_header_id=timecard_header_id,
            work_date=work_date,
            check_in_time=punches.check_in,
            break_start_time=punches.break_start,
            break_end_time=punches.break_end,
            check_out_time=punches.check_out,
            notes=notes,
            location=location,
        )
        apply_calculation(entry, result)
        self.session.add(entry)

        self.refresh_totals(header, [*entries, entry])
        await self.flush()
        return entry

    def refresh_totals(self, header: TimecardHeader, entries: list[DailyEntry]) -> AggregateTotals:
        """Recompute totals from the given full entry set and store them."""
        totals = PeriodAggregator.aggregate(entries)
        PeriodAggregator.apply(header, totals)
        return totals

    async def recompute_header_totals(self, timecard_header_id: UUID) -> AggregateTotals:
        """Rebuild a header's totals from all of its daily entries."""
        header = await self.get_header(timecard_header_id, for_update=True)
        entries = await self.get_daily_entries(timecard_header_id)
        totals = self.refresh_totals(header, entries)
        await self.flush()
        return totals

    async def verify_totals(self, timecard_header_id: UUID) -> tuple[bool, list[str]]:
        """Check stored totals against the daily entries without changing them."""
        header = await self.get_header(timecard_header_id)
        entries = await self.get_daily_entries(timecard_header_id)
        return PeriodAggregator.verify_totals(header, entries)

    async def summarize(self, timecard_header_id: UUID) -> PeriodSummary:
        """Reporting view of a header; computed on demand, never stored."""
        header = await self.get_header(timecard_header_id)
        entries = await self.get_daily_entries(timecard_header_id)
        return PeriodAggregator.summarize_period(header, entries)

    # ----- Status lifecycle -----

    async def transition_status(
        self,
        timecard_header_id: UUID,
        to_status: TimecardStatus | str,
        actor: Actor,
        reason: str | None = None,
    ) -> TimecardHeader:
        """Transition a header to a new status.

        Stamps lifecycle metadata and writes one status_change audit entry.
        Raises InvalidTransition if the transition is not allowed.
        """
        header = await self.get_header(timecard_header_id, for_update=True)
        entries = await self.get_daily_entries(timecard_header_id)

        batch = AuditBatch(header.timecard_header_id, actor.user_id)
        self.apply_transition(header, entries, to_status, actor, reason, batch)
        self.session.add_all(batch.entries)
        await self.flush()

        logger.info(
            "Timecard status changed",
            extra={
                "timecard_header_id": str(header.timecard_header_id),
                "to_status": header.status,
                "actor_id": str(actor.user_id),
                "change_id": str(batch.change_id),
            },
        )
        return header

    async def submit(self, timecard_header_id: UUID, actor: Actor) -> TimecardHeader:
        return await self.transition_status(timecard_header_id, TimecardStatus.SUBMITTED, actor)

    async def approve(self, timecard_header_id: UUID, actor: Actor) -> TimecardHeader:
        return await self.transition_status(timecard_header_id, TimecardStatus.APPROVED, actor)

    async def reject(self, timecard_header_id: UUID, actor: Actor, reason: str) -> TimecardHeader:
        return await self.transition_status(
            timecard_header_id, TimecardStatus.REJECTED, actor, reason
        )

    def apply_transition(
        self,
        header: TimecardHeader,
        entries: list[DailyEntry],
        to_status: TimecardStatus | str,
        actor: Actor,
        reason: str | None,
        batch: AuditBatch,
    ) -> AuditLogEntry | None:
        """Validate and apply a transition in memory, staging its audit entry.

        Nothing is flushed here, so callers can combine the transition with
        punch edits in a single batch.
        """
        to_status = TimecardStatus(to_status)
        from_status = header.status

        errors = self.state_machine.validate_header_for_transition(
            header, entries, to_status, reason
        )
        if errors:
            raise InvalidTransition(from_status, to_status.value, "; ".join(errors))

        now = batch.changed_at
        if to_status == TimecardStatus.SUBMITTED:
            header.submitted_at = now

        elif to_status == TimecardStatus.APPROVED:
            header.approved_at = now
            header.approved_by = actor.user_id

        elif to_status == TimecardStatus.REJECTED:
            header.rejection_reason = reason

        elif to_status == TimecardStatus.DRAFT:
            # Edit & return, or reopen of an approved card
            header.submitted_at = None
            if self.state_machine.is_reopen(from_status, to_status):
                header.approved_at = None
                header.approved_by = None
            header.edit_comments = reason
            header.last_edited_by = actor.user_id
            if actor.user_id != header.worker_id:
                header.admin_edited = True

        header.status = to_status.value
        return batch.record_status_change(from_status, to_status, header.period_start_date)

    async def flush(self) -> None:
        """Flush pending changes; on failure roll the whole transaction back."""
        try:
            await self.session.flush()
        except SQLAlchemyError as exc:
            await self.session.rollback()
            logger.exception("Timecard flush failed; transaction rolled back")
            raise PersistenceFailure(f"Could not persist timecard changes: {exc}") from exc
