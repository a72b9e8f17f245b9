"""Timecard state machine with transition validation."""

from __future__ import annotations

from datetime import date
from decimal import Decimal
from enum import Enum
from typing import TYPE_CHECKING

from timecard_engine.calculators.time_math import minutes_between
from timecard_engine.errors import ImmutableState, InvalidTransition

if TYPE_CHECKING:
    from timecard_engine.models import DailyEntry, TimecardHeader


class TimecardStatus(str, Enum):
    """Timecard status values."""

    DRAFT = "draft"
    SUBMITTED = "submitted"
    APPROVED = "approved"
    REJECTED = "rejected"


class AuditActionType(str, Enum):
    """How a change came about, as recorded on audit entries."""

    SELF_EDIT = "self_edit"
    REJECTION_EDIT = "rejection_edit"
    STATUS_CHANGE = "status_change"


# Complete shifts longer than this need break punches before submission
BREAK_REQUIRED_AFTER_MINUTES = Decimal(6 * 60)


class TimecardStateMachine:
    """State machine for timecard status transitions.

    Allowed transitions:
    - draft → submitted (needs at least one complete day, and a break on
      every shift over six hours)
    - submitted → approved
    - submitted → rejected (reason required)
    - rejected → draft (edit & return, reason required)
    - approved → draft (reopen, only when enabled; reason required)
    """

    VALID_TRANSITIONS: dict[str, list[str]] = {
        TimecardStatus.DRAFT: [TimecardStatus.SUBMITTED],
        TimecardStatus.SUBMITTED: [TimecardStatus.APPROVED, TimecardStatus.REJECTED],
        TimecardStatus.REJECTED: [TimecardStatus.DRAFT],
        TimecardStatus.APPROVED: [],  # Terminal unless reopen is enabled
    }

    REOPEN_TRANSITIONS: dict[str, list[str]] = {
        TimecardStatus.APPROVED: [TimecardStatus.DRAFT],
    }

    # Transitions that must carry a reason
    REASON_REQUIRED = {
        (TimecardStatus.SUBMITTED, TimecardStatus.REJECTED),
        (TimecardStatus.REJECTED, TimecardStatus.DRAFT),
        (TimecardStatus.APPROVED, TimecardStatus.DRAFT),
    }

    # Statuses where punches can be edited at all
    EDITABLE = {
        TimecardStatus.DRAFT,
        TimecardStatus.SUBMITTED,
        TimecardStatus.REJECTED,
    }

    def __init__(self, allow_approved_reopen: bool = False):
        self.allow_approved_reopen = allow_approved_reopen

    def get_next_statuses(self, current_status: str) -> list[str]:
        """Get list of valid next statuses from current status."""
        allowed = list(self.VALID_TRANSITIONS.get(current_status, []))
        if self.allow_approved_reopen:
            allowed.extend(self.REOPEN_TRANSITIONS.get(current_status, []))
        return allowed

    def can_transition(self, from_status: str, to_status: str) -> bool:
        """Check if a transition is valid."""
        return to_status in self.get_next_statuses(from_status)

    def validate_transition(self, from_status: str, to_status: str) -> None:
        """Validate a transition, raising InvalidTransition if invalid."""
        if not self.can_transition(from_status, to_status):
            raise InvalidTransition(from_status, to_status)

    @classmethod
    def requires_reason(cls, from_status: str, to_status: str) -> bool:
        return (from_status, to_status) in cls.REASON_REQUIRED

    @staticmethod
    def is_reopen(from_status: str, to_status: str) -> bool:
        """Check if this transition is a reopen (approved → draft)."""
        return from_status == TimecardStatus.APPROVED and to_status == TimecardStatus.DRAFT

    @classmethod
    def can_edit(cls, status: str) -> bool:
        """Check if punches can be edited in this status."""
        return status in cls.EDITABLE

    @classmethod
    def ensure_editable(cls, header: TimecardHeader) -> None:
        """Raise ImmutableState unless the header's punches may change."""
        if not cls.can_edit(header.status):
            raise ImmutableState(
                f"Timecard {header.timecard_header_id} is {header.status} and cannot be edited"
            )

    @staticmethod
    def edit_action_type(status: str) -> AuditActionType:
        """Audit action for a punch edit made while in this status.

        Draft edits are the worker's own corrections; anything after
        submission is a rejection edit.
        """
        if status == TimecardStatus.DRAFT:
            return AuditActionType.SELF_EDIT
        return AuditActionType.REJECTION_EDIT

    def validate_header_for_transition(
        self,
        header: TimecardHeader,
        entries: list[DailyEntry],
        to_status: str,
        reason: str | None = None,
    ) -> list[str]:
        """Validate a header for a specific transition, returning any errors.

        Returns list of error messages (empty if valid).
        """
        errors: list[str] = []
        from_status = header.status

        if not self.can_transition(from_status, to_status):
            errors.append(f"Cannot transition from '{from_status}' to '{to_status}'")
            return errors

        if self.requires_reason(from_status, to_status) and not (reason and reason.strip()):
            errors.append("A reason is required for this transition")

        if to_status == TimecardStatus.SUBMITTED:
            if not any(entry.is_complete for entry in entries):
                errors.append("Timecard has no complete daily entry")
            for work_date in self.missing_breaks(entries):
                errors.append(
                    f"Shift on {work_date.isoformat()} is over "
                    f"{BREAK_REQUIRED_AFTER_MINUTES // 60} hours with no break recorded"
                )

        return errors

    @staticmethod
    def missing_breaks(entries: list[DailyEntry]) -> list[date]:
        """Work dates of complete shifts long enough to need a break but without one."""
        return [
            entry.work_date
            for entry in entries
            if entry.is_complete
            and (entry.break_start_time is None or entry.break_end_time is None)
            and minutes_between(entry.check_in_time, entry.check_out_time)
            > BREAK_REQUIRED_AFTER_MINUTES
        ]
