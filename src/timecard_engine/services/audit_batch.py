"""Audit batch - entries staged for one user action."""

from __future__ import annotations

from datetime import date, datetime
from uuid import UUID, uuid4

from timecard_engine.models import AuditLogEntry
from timecard_engine.models.base import utcnow
from timecard_engine.services.state_machine import AuditActionType, TimecardStatus


class AuditBatch:
    """Collects the audit entries for one user action.

    Every entry gets the same change_id and changed_at. Entries are only
    held in memory here; the caller adds them to the session together
    with the data they describe.
    """

    def __init__(
        self,
        timecard_header_id: UUID,
        changed_by: UUID,
        change_id: UUID | None = None,
        changed_at: datetime | None = None,
    ):
        self.timecard_header_id = timecard_header_id
        self.changed_by = changed_by
        self.change_id = change_id or uuid4()
        self.changed_at = changed_at or utcnow()
        self.entries: list[AuditLogEntry] = []

    def __len__(self) -> int:
        return len(self.entries)

    def record(
        self,
        field_name: str,
        old_value: str | None,
        new_value: str | None,
        action_type: AuditActionType,
        work_date: date | None,
    ) -> AuditLogEntry | None:
        """Stage one entry; unchanged values are skipped and return None."""
        if old_value == new_value:
            return None
        entry = AuditLogEntry(
            audit_log_id=uuid4(),
            timecard_header_id=self.timecard_header_id,
            change_id=self.change_id,
            field_name=field_name,
            old_value=old_value,
            new_value=new_value,
            changed_by=self.changed_by,
            changed_at=self.changed_at,
            action_type=action_type.value,
            work_date=work_date,
        )
        self.entries.append(entry)
        return entry

    def record_status_change(
        self, from_status: str, to_status: str, work_date: date | None
    ) -> AuditLogEntry | None:
        return self.record(
            "status",
            TimecardStatus(from_status).value,
            TimecardStatus(to_status).value,
            AuditActionType.STATUS_CHANGE,
            work_date,
        )
