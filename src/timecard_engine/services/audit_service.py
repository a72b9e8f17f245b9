"""Audit trail service - audited punch edits and audit log queries.

An edit request runs in three phases:

1. normalize + diff: map the request onto (work_date, field, value) and
   drop everything that already matches the stored punch
2. validate + compute: recalculate every touched day; the first invalid
   day aborts the batch before anything is mutated
3. stage + commit: write punches, derived values, header totals, header
   metadata and audit entries, then flush them together
"""

from __future__ import annotations

import logging
import re
from collections.abc import Mapping
from dataclasses import replace
from datetime import date
from typing import Any
from uuid import UUID, uuid4

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from timecard_engine.calculators.time_math import format_time_value
from timecard_engine.calculators.types import DailyCalculationResult
from timecard_engine.calculators.rate_resolver import PayConfigResolver
from timecard_engine.config import Settings
from timecard_engine.errors import InvalidActionType, InvalidTransition, error_for_kind
from timecard_engine.models import AuditLogEntry, DailyEntry, TimecardHeader
from timecard_engine.services.audit_batch import AuditBatch
from timecard_engine.services.edit_normalizer import FieldChange, normalize_edit_request
from timecard_engine.services.state_machine import (
    AuditActionType,
    TimecardStateMachine,
    TimecardStatus,
)
from timecard_engine.services.timecard_service import (
    TimecardService,
    apply_calculation,
    punches_from_entry,
)
from timecard_engine.services.types import (
    Actor,
    AuditLogFilter,
    AuditStatistics,
    EditResult,
    GroupedAuditEntry,
)

logger = logging.getLogger(__name__)

# Display labels for audit fields
FIELD_LABELS: dict[str, str] = {
    "check_in": "Check In",
    "break_start": "Break Start",
    "break_end": "Break End",
    "check_out": "Check Out",
    "status": "Status",
}

_SUFFIXED_FIELD = re.compile(r"^(?P<field>[a-z_]+?)(?:_time)?_day_(?P<index>\d+)$")


def format_field_name(field_name: str, day_index: int | None = None) -> str:
    """Human-readable label, e.g. "Check In (Day 1)".

    Accepts canonical names, request names ("check_in_time") and suffixed
    request names ("check_in_time_day_0").
    """
    match = _SUFFIXED_FIELD.match(field_name)
    if match and day_index is None:
        field_name = match.group("field")
        day_index = int(match.group("index"))
    base = field_name.removesuffix("_time")
    label = FIELD_LABELS.get(base, field_name)
    if day_index is not None:
        return f"{label} (Day {day_index + 1})"
    return label


class AuditTrailService:
    """Service for audited timecard edits.

    Key invariants:
    1. An audit entry exists only for a (work_date, field) whose value changed
    2. All entries from one request share one change_id and one changed_at
    3. Punches, derived values, totals and audit entries are flushed together,
       or not at all
    4. Header totals are recomputed from the full set of daily entries
    """

    def __init__(
        self,
        session: AsyncSession,
        settings: Settings | None = None,
        pay_config_resolver: PayConfigResolver | None = None,
        timecard_service: TimecardService | None = None,
    ):
        self.session = session
        self.timecard_service = timecard_service or TimecardService(
            session, settings=settings, pay_config_resolver=pay_config_resolver
        )

    # ----- Edits -----

    async def apply_edit(
        self,
        timecard_header_id: UUID,
        edit_request: Mapping[str, Any],
        actor: Actor,
        action_type: AuditActionType | str | None = None,
        reason: str | None = None,
        admin_note: str | None = None,
    ) -> EditResult:
        """Apply an edit request as one audited batch.

        Edits on draft headers default to self_edit; edits on submitted or
        rejected headers are always rejection_edit. Approved headers raise
        ImmutableState. A request whose values all match returns an empty
        result and changes nothing.
        """
        return await self._run_edit(
            timecard_header_id,
            edit_request,
            actor,
            action_type=action_type,
            reason=reason,
            admin_note=admin_note,
            return_to_draft=False,
        )

    async def return_to_draft(
        self,
        timecard_header_id: UUID,
        edit_request: Mapping[str, Any],
        actor: Actor,
        reason: str,
        admin_note: str | None = None,
    ) -> EditResult:
        """Edit & return: correct a rejected timecard and send it back to draft.

        The punch edits and the status change share one change_id.
        """
        return await self._run_edit(
            timecard_header_id,
            edit_request,
            actor,
            action_type=AuditActionType.REJECTION_EDIT,
            reason=reason,
            admin_note=admin_note,
            return_to_draft=True,
        )

    async def _run_edit(
        self,
        timecard_header_id: UUID,
        edit_request: Mapping[str, Any],
        actor: Actor,
        *,
        action_type: AuditActionType | str | None,
        reason: str | None,
        admin_note: str | None,
        return_to_draft: bool,
    ) -> EditResult:
        service = self.timecard_service
        header = await service.get_header(timecard_header_id, for_update=True)
        TimecardStateMachine.ensure_editable(header)
        effective_action = self._resolve_action_type(header, action_type)

        # Phase 1: normalize + diff
        changes = normalize_edit_request(
            edit_request, header.period_start_date, header.period_end_date
        )
        entries = await service.get_daily_entries(timecard_header_id)
        entries_by_date = {entry.work_date: entry for entry in entries}
        diffs = self._diff(changes, entries_by_date)

        if return_to_draft:
            errors = service.state_machine.validate_header_for_transition(
                header, entries, TimecardStatus.DRAFT, reason
            )
            if errors:
                raise InvalidTransition(header.status, TimecardStatus.DRAFT.value, "; ".join(errors))

        if not diffs and not return_to_draft:
            logger.debug(
                "Edit request produced no changes",
                extra={"timecard_header_id": str(timecard_header_id)},
            )
            return EditResult(header=header, daily_entries=entries)

        # Phase 2: validate + compute (no mutation yet)
        computed = self._compute_days(header, diffs, entries_by_date)

        # Phase 3: stage + commit
        batch = AuditBatch(header.timecard_header_id, actor.user_id)
        for work_date, result in computed.items():
            entry = entries_by_date.get(work_date)
            if entry is None:
                entry = DailyEntry(
                    daily_entry_id=uuid4(),
                    timecard_header_id=header.timecard_header_id,
                    work_date=work_date,
                )
                self.session.add(entry)
                entries_by_date[work_date] = entry
            for change in diffs[work_date]:
                old_value = getattr(entry, change.field.column)
                setattr(entry, change.field.column, change.new_value)
                batch.record(
                    change.field.value,
                    format_time_value(old_value),
                    format_time_value(change.new_value),
                    effective_action,
                    work_date,
                )
            apply_calculation(entry, result)

        all_entries = sorted(entries_by_date.values(), key=lambda e: e.work_date)
        service.refresh_totals(header, all_entries)
        self._stamp_edit(header, actor, reason, admin_note)

        if return_to_draft:
            service.apply_transition(
                header, all_entries, TimecardStatus.DRAFT, actor, reason, batch
            )

        self.session.add_all(batch.entries)
        await service.flush()

        logger.info(
            "Applied timecard edit batch",
            extra={
                "timecard_header_id": str(header.timecard_header_id),
                "change_id": str(batch.change_id),
                "action_type": effective_action.value,
                "audit_entries": len(batch),
                "actor_id": str(actor.user_id),
            },
        )
        return EditResult(
            header=header,
            daily_entries=all_entries,
            audit_entries=list(batch.entries),
            change_id=batch.change_id,
        )

    @staticmethod
    def _resolve_action_type(
        header: TimecardHeader, requested: AuditActionType | str | None
    ) -> AuditActionType:
        if requested is not None:
            try:
                requested = AuditActionType(requested)
            except ValueError as exc:
                raise InvalidActionType(f"Unknown action type '{requested}'") from exc
            if requested == AuditActionType.STATUS_CHANGE:
                raise InvalidActionType(
                    "status_change entries are only written by status transitions"
                )
        if header.status != TimecardStatus.DRAFT:
            return AuditActionType.REJECTION_EDIT
        if requested is None:
            return TimecardStateMachine.edit_action_type(header.status)
        return AuditActionType(requested)

    @staticmethod
    def _diff(
        changes: list[FieldChange], entries_by_date: dict[date, DailyEntry]
    ) -> dict[date, list[FieldChange]]:
        """Keep only changes whose value differs from the stored punch."""
        diffs: dict[date, list[FieldChange]] = {}
        for change in changes:
            entry = entries_by_date.get(change.work_date)
            current = getattr(entry, change.field.column) if entry is not None else None
            if current == change.new_value:
                continue
            diffs.setdefault(change.work_date, []).append(change)
        return diffs

    def _compute_days(
        self,
        header: TimecardHeader,
        diffs: dict[date, list[FieldChange]],
        entries_by_date: dict[date, DailyEntry],
    ) -> dict[date, DailyCalculationResult]:
        """Recalculate every touched day; raise on the first invalid one."""
        calculator = self.timecard_service.calculator_for(header)
        computed: dict[date, DailyCalculationResult] = {}
        for work_date in sorted(diffs):
            punches = punches_from_entry(entries_by_date.get(work_date))
            overrides = {change.field.value: change.new_value for change in diffs[work_date]}
            proposed = replace(punches, **overrides)

            result = calculator.calculate(proposed)
            if not result.is_valid:
                issue = result.validation_errors[0]
                logger.warning(
                    "Edit batch aborted",
                    extra={
                        "timecard_header_id": str(header.timecard_header_id),
                        "work_date": work_date.isoformat(),
                        "field": issue.field.value,
                        "kind": issue.kind.value,
                    },
                )
                raise error_for_kind(
                    issue.kind, issue.message, work_date=work_date, field=issue.field.value
                )
            computed[work_date] = result
        return computed

    @staticmethod
    def _stamp_edit(
        header: TimecardHeader,
        actor: Actor,
        reason: str | None,
        admin_note: str | None,
    ) -> None:
        header.last_edited_by = actor.user_id
        if actor.user_id != header.worker_id:
            header.admin_edited = True
            header.edit_type = "admin_adjustment"
        else:
            header.edit_type = "user_correction"
        if reason:
            header.edit_comments = reason
        if admin_note:
            header.admin_notes = admin_note

    # ----- Queries -----

    async def get_audit_logs(
        self,
        timecard_header_id: UUID,
        filter: AuditLogFilter | None = None,
    ) -> list[AuditLogEntry]:
        """Audit entries for a timecard, most recent first."""
        query = select(AuditLogEntry).where(
            AuditLogEntry.timecard_header_id == timecard_header_id
        )

        if filter is not None:
            if filter.action_types:
                query = query.where(AuditLogEntry.action_type.in_(filter.action_types))
            if filter.field_names:
                query = query.where(AuditLogEntry.field_name.in_(filter.field_names))
            if filter.date_from is not None:
                query = query.where(AuditLogEntry.changed_at >= filter.date_from)
            if filter.date_to is not None:
                query = query.where(AuditLogEntry.changed_at <= filter.date_to)

        query = query.order_by(
            AuditLogEntry.changed_at.desc(),
            AuditLogEntry.work_date,
            AuditLogEntry.field_name,
        )

        if filter is not None:
            if filter.offset:
                query = query.offset(filter.offset)
            if filter.limit is not None:
                query = query.limit(filter.limit)

        result = await self.session.execute(query)
        return list(result.scalars().all())

    async def get_grouped_audit_logs(
        self,
        timecard_header_id: UUID,
        filter: AuditLogFilter | None = None,
    ) -> list[GroupedAuditEntry]:
        """Audit entries grouped by change_id, most recent group first."""
        groups: dict[UUID, GroupedAuditEntry] = {}
        for entry in await self.get_audit_logs(timecard_header_id, filter):
            group = groups.get(entry.change_id)
            if group is None:
                group = GroupedAuditEntry(
                    change_id=entry.change_id,
                    changed_at=entry.changed_at,
                    changed_by=entry.changed_by,
                    action_type=entry.action_type,
                )
                groups[entry.change_id] = group
            elif group.action_type == AuditActionType.STATUS_CHANGE:
                # A batch mixing edits with a status change is labelled by its edits
                group.action_type = entry.action_type
            group.changes.append(entry)

        return sorted(groups.values(), key=lambda g: g.changed_at, reverse=True)

    async def get_audit_statistics(self, timecard_header_id: UUID) -> AuditStatistics:
        entries = await self.get_audit_logs(timecard_header_id)
        stats = AuditStatistics(total_changes=len(entries))
        for entry in entries:
            if entry.action_type == AuditActionType.SELF_EDIT:
                stats.self_edits += 1
            elif entry.action_type == AuditActionType.REJECTION_EDIT:
                stats.rejection_edits += 1
            elif entry.action_type == AuditActionType.STATUS_CHANGE:
                stats.status_changes += 1
        if entries:
            stats.last_modified = entries[0].changed_at
            stats.last_modified_by = entries[0].changed_by
        return stats

    async def get_rejected_fields(self, timecard_header_id: UUID) -> list[str]:
        """Fields touched by rejection edits, most recently changed first."""
        entries = await self.get_audit_logs(
            timecard_header_id,
            AuditLogFilter(action_types=[AuditActionType.REJECTION_EDIT.value]),
        )
        seen: list[str] = []
        for entry in entries:
            if entry.field_name not in seen:
                seen.append(entry.field_name)
        return seen

