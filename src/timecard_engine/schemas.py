"""Pydantic views of engine results for the invoking layer."""

from datetime import date, datetime, time
from decimal import Decimal
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from timecard_engine.calculators.types import PunchField
from timecard_engine.errors import ErrorKind
from timecard_engine.services.audit_service import format_field_name


# ============================================================================
# Timecard schemas
# ============================================================================


class DailyEntryView(BaseModel):
    """One day of a timecard."""

    model_config = ConfigDict(from_attributes=True)

    daily_entry_id: UUID
    work_date: date
    check_in_time: time | None = None
    break_start_time: time | None = None
    break_end_time: time | None = None
    check_out_time: time | None = None
    hours_worked: Decimal
    break_duration: Decimal
    daily_pay: Decimal
    notes: str | None = None
    location: str | None = None


class TimecardHeaderView(BaseModel):
    """A timecard header with its stored totals."""

    model_config = ConfigDict(from_attributes=True)

    timecard_header_id: UUID
    worker_id: UUID
    project_id: UUID
    period_start_date: date
    period_end_date: date
    status: str
    pay_rate: Decimal
    time_type: str
    total_hours: Decimal
    total_break_duration: Decimal
    total_pay: Decimal
    admin_edited: bool = False
    last_edited_by: UUID | None = None
    edit_type: str | None = None
    edit_comments: str | None = None
    admin_notes: str | None = None
    submitted_at: datetime | None = None
    approved_at: datetime | None = None
    approved_by: UUID | None = None
    rejection_reason: str | None = None


class ValidationIssueView(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    kind: ErrorKind
    field: PunchField
    message: str


class CalculationView(BaseModel):
    """Result of a single-day calculation."""

    model_config = ConfigDict(from_attributes=True)

    hours_worked: Decimal
    break_duration: Decimal
    daily_pay: Decimal
    is_complete: bool
    validation_errors: list[ValidationIssueView] = Field(default_factory=list)


# ============================================================================
# Audit schemas
# ============================================================================


class AuditLogEntryView(BaseModel):
    """One field change."""

    model_config = ConfigDict(from_attributes=True)

    audit_log_id: UUID
    change_id: UUID
    field_name: str
    old_value: str | None = None
    new_value: str | None = None
    changed_by: UUID
    changed_at: datetime
    action_type: str
    work_date: date | None = None

    @property
    def field_label(self) -> str:
        return format_field_name(self.field_name)


class GroupedAuditEntryView(BaseModel):
    """All changes made by one user action."""

    model_config = ConfigDict(from_attributes=True)

    change_id: UUID
    changed_at: datetime
    changed_by: UUID
    action_type: str
    changes: list[AuditLogEntryView]


class AuditStatisticsView(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    total_changes: int
    self_edits: int
    rejection_edits: int
    status_changes: int
    last_modified: datetime | None = None
    last_modified_by: UUID | None = None


class EditResultView(BaseModel):
    """Outcome of an edit request."""

    model_config = ConfigDict(from_attributes=True)

    header: TimecardHeaderView
    daily_entries: list[DailyEntryView]
    audit_entries: list[AuditLogEntryView] = Field(default_factory=list)
    change_id: UUID | None = None
    is_empty_batch: bool = False
