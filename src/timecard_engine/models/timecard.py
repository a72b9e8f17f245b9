"""Timecard header, daily entry, and audit log models."""

from __future__ import annotations

from datetime import date, datetime, time
from decimal import Decimal
from uuid import UUID, uuid4

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Date,
    DateTime,
    ForeignKey,
    Index,
    Numeric,
    String,
    Text,
    Time,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column

from timecard_engine.models.base import Base, TimestampMixin


# ===== Timecard Headers =====


class TimecardHeader(Base, TimestampMixin):
    """One pay-period record for one worker on one project.

    The total_* columns are a projection of the daily entries and are
    rewritten wholesale after every mutation.
    """

    __tablename__ = "timecard_header"

    timecard_header_id: Mapped[UUID] = mapped_column(primary_key=True, default=uuid4)
    worker_id: Mapped[UUID] = mapped_column(nullable=False, index=True)
    project_id: Mapped[UUID] = mapped_column(nullable=False, index=True)
    period_start_date: Mapped[date] = mapped_column(Date, nullable=False)
    period_end_date: Mapped[date] = mapped_column(Date, nullable=False)
    status: Mapped[str] = mapped_column(String, nullable=False, default="draft")

    # Pay configuration snapshot
    pay_rate: Mapped[Decimal] = mapped_column(Numeric(12, 4), nullable=False, default=Decimal("0"))
    time_type: Mapped[str] = mapped_column(String, nullable=False, default="hourly")

    # Derived aggregates
    total_hours: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False, default=Decimal("0"))
    total_break_duration: Mapped[Decimal] = mapped_column(
        Numeric(10, 2), nullable=False, default=Decimal("0")
    )
    total_pay: Mapped[Decimal] = mapped_column(Numeric(14, 2), nullable=False, default=Decimal("0"))

    # Notes
    admin_notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    edit_comments: Mapped[str | None] = mapped_column(Text, nullable=True)

    # Lifecycle stamps
    submitted_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    approved_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    approved_by: Mapped[UUID | None] = mapped_column(nullable=True)
    rejection_reason: Mapped[str | None] = mapped_column(Text, nullable=True)

    # Edit tracking
    admin_edited: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    last_edited_by: Mapped[UUID | None] = mapped_column(nullable=True)
    edit_type: Mapped[str | None] = mapped_column(String, nullable=True)

    __table_args__ = (
        CheckConstraint(
            "status IN ('draft', 'submitted', 'approved', 'rejected')",
            name="timecard_header_status_check",
        ),
        CheckConstraint(
            "time_type IN ('hourly', 'daily')",
            name="timecard_header_time_type_check",
        ),
        CheckConstraint(
            "period_end_date >= period_start_date",
            name="timecard_header_period_check",
        ),
        CheckConstraint(
            "total_hours >= 0 AND total_break_duration >= 0 AND total_pay >= 0",
            name="timecard_header_totals_nonnegative",
        ),
    )

    @property
    def period_days(self) -> int:
        """Number of calendar days in the (inclusive) period."""
        return (self.period_end_date - self.period_start_date).days + 1

    def contains_date(self, work_date: date) -> bool:
        """Check if a date falls inside the header's period."""
        return self.period_start_date <= work_date <= self.period_end_date


# ===== Daily Entries =====


class DailyEntry(Base, TimestampMixin):
    """One calendar day's punches within a header's period."""

    __tablename__ = "timecard_daily_entry"

    daily_entry_id: Mapped[UUID] = mapped_column(primary_key=True, default=uuid4)
    timecard_header_id: Mapped[UUID] = mapped_column(
        ForeignKey("timecard_header.timecard_header_id", ondelete="CASCADE"),
        nullable=False,
    )
    work_date: Mapped[date] = mapped_column(Date, nullable=False)

    # Raw punches
    check_in_time: Mapped[time | None] = mapped_column(Time, nullable=True)
    break_start_time: Mapped[time | None] = mapped_column(Time, nullable=True)
    break_end_time: Mapped[time | None] = mapped_column(Time, nullable=True)
    check_out_time: Mapped[time | None] = mapped_column(Time, nullable=True)

    # Derived values
    hours_worked: Mapped[Decimal] = mapped_column(Numeric(8, 2), nullable=False, default=Decimal("0"))
    break_duration: Mapped[Decimal] = mapped_column(Numeric(8, 2), nullable=False, default=Decimal("0"))
    daily_pay: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False, default=Decimal("0"))

    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    location: Mapped[str | None] = mapped_column(String, nullable=True)

    __table_args__ = (
        UniqueConstraint(
            "timecard_header_id",
            "work_date",
            name="timecard_daily_entry_header_date_unique",
        ),
        CheckConstraint(
            "hours_worked >= 0 AND break_duration >= 0 AND daily_pay >= 0",
            name="timecard_daily_entry_nonnegative",
        ),
    )

    @property
    def is_complete(self) -> bool:
        """A day is complete once both check-in and check-out are recorded."""
        return self.check_in_time is not None and self.check_out_time is not None


# ===== Audit Log =====


class AuditLogEntry(Base):
    """One field-level change record (append-only)."""

    __tablename__ = "timecard_audit_log"

    audit_log_id: Mapped[UUID] = mapped_column(primary_key=True, default=uuid4)
    timecard_header_id: Mapped[UUID] = mapped_column(
        ForeignKey("timecard_header.timecard_header_id", ondelete="CASCADE"),
        nullable=False,
    )
    change_id: Mapped[UUID] = mapped_column(nullable=False)
    field_name: Mapped[str] = mapped_column(String, nullable=False)
    old_value: Mapped[str | None] = mapped_column(String, nullable=True)
    new_value: Mapped[str | None] = mapped_column(String, nullable=True)
    changed_by: Mapped[UUID] = mapped_column(nullable=False)
    changed_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    action_type: Mapped[str] = mapped_column(String, nullable=False)
    work_date: Mapped[date | None] = mapped_column(Date, nullable=True)

    __table_args__ = (
        CheckConstraint(
            "action_type IN ('self_edit', 'rejection_edit', 'status_change')",
            name="timecard_audit_log_action_type_check",
        ),
        CheckConstraint(
            "field_name IN ('check_in', 'break_start', 'break_end', 'check_out', 'status')",
            name="timecard_audit_log_field_name_check",
        ),
        Index("ix_timecard_audit_log_header_changed_at", "timecard_header_id", "changed_at"),
        Index("ix_timecard_audit_log_change_id", "change_id"),
    )
