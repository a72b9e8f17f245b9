"""Value types shared by timecard services."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from uuid import UUID

from timecard_engine.models import AuditLogEntry, DailyEntry, TimecardHeader


@dataclass(frozen=True)
class Actor:
    """The user performing an action.

    Authorization is decided before the engine is called; role is carried
    for logging only.
    """

    user_id: UUID
    role: str | None = None


@dataclass
class EditResult:
    """Outcome of one edit request."""

    header: TimecardHeader
    daily_entries: list[DailyEntry]
    audit_entries: list[AuditLogEntry] = field(default_factory=list)
    change_id: UUID | None = None

    @property
    def is_empty_batch(self) -> bool:
        """True when every requested value already matched (a no-op success)."""
        return len(self.audit_entries) == 0


@dataclass
class AuditLogFilter:
    """Filters for audit log queries."""

    action_types: list[str] | None = None
    field_names: list[str] | None = None
    date_from: datetime | None = None
    date_to: datetime | None = None
    limit: int | None = None
    offset: int = 0


@dataclass
class GroupedAuditEntry:
    """All audit entries produced by one user action."""

    change_id: UUID
    changed_at: datetime
    changed_by: UUID
    action_type: str
    changes: list[AuditLogEntry] = field(default_factory=list)

    @property
    def work_dates(self) -> list[date]:
        return sorted({c.work_date for c in self.changes if c.work_date is not None})


@dataclass
class AuditStatistics:
    """Counts of audit entries on one timecard."""

    total_changes: int = 0
    self_edits: int = 0
    rejection_edits: int = 0
    status_changes: int = 0
    last_modified: datetime | None = None
    last_modified_by: UUID | None = None
