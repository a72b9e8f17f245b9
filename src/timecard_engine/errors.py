"""Typed engine errors.

Every error carries an ErrorKind plus the (work_date, field) pair it was
detected on, so the invoking layer can report it against the exact cell
the actor touched.
"""

from __future__ import annotations

from datetime import date
from enum import Enum
from typing import Any


class ErrorKind(str, Enum):
    """Engine error kinds."""

    INVALID_SEQUENCE = "InvalidSequence"
    NEGATIVE_HOURS = "NegativeHours"
    NEGATIVE_BREAK = "NegativeBreak"
    IMMUTABLE_STATE = "ImmutableState"
    DUPLICATE_DAY = "DuplicateDay"
    UNMAPPED_FIELD = "UnmappedField"
    INVALID_TIME_VALUE = "InvalidTimeValue"
    DAY_OUT_OF_RANGE = "DayOutOfRange"
    CONFLICTING_CHANGE = "ConflictingChange"
    INVALID_TRANSITION = "InvalidTransition"
    TIMECARD_NOT_FOUND = "TimecardNotFound"
    PERSISTENCE_FAILURE = "PersistenceFailure"
    SHIFT_TOO_LONG = "ShiftTooLong"
    INVALID_ACTION_TYPE = "InvalidActionType"


class EngineError(Exception):
    """Base class for all timecard engine errors."""

    kind: ErrorKind

    def __init__(
        self,
        message: str,
        *,
        work_date: date | None = None,
        field: str | None = None,
    ):
        self.message = message
        self.work_date = work_date
        self.field = field
        super().__init__(message)

    def to_dict(self) -> dict[str, Any]:
        """Field-level payload for the invoking layer."""
        return {
            "kind": self.kind.value,
            "message": self.message,
            "work_date": self.work_date.isoformat() if self.work_date else None,
            "field": self.field,
        }


class InvalidSequence(EngineError):
    """A later punch precedes an earlier one."""

    kind = ErrorKind.INVALID_SEQUENCE


class NegativeHours(EngineError):
    """Break subtraction leaves a negative number of hours worked."""

    kind = ErrorKind.NEGATIVE_HOURS


class NegativeBreak(EngineError):
    """Break end precedes break start."""

    kind = ErrorKind.NEGATIVE_BREAK


class ImmutableState(EngineError):
    """Edit attempted on an approved timecard."""

    kind = ErrorKind.IMMUTABLE_STATE


class DuplicateDay(EngineError):
    """A second daily entry for the same header and work date."""

    kind = ErrorKind.DUPLICATE_DAY


class UnmappedField(EngineError):
    """Edit request names a field outside the four punch fields."""

    kind = ErrorKind.UNMAPPED_FIELD


class InvalidTimeValue(EngineError):
    """A proposed time value could not be parsed."""

    kind = ErrorKind.INVALID_TIME_VALUE


class DayOutOfRange(EngineError):
    """A day index or work date falls outside the header's period."""

    kind = ErrorKind.DAY_OUT_OF_RANGE


class ConflictingChange(EngineError):
    """The same day/field pair was given two different values in one request."""

    kind = ErrorKind.CONFLICTING_CHANGE


class ShiftTooLong(EngineError):
    """Check-in to check-out spans more than the maximum shift length."""

    kind = ErrorKind.SHIFT_TOO_LONG


class InvalidActionType(EngineError):
    """An edit asked to be recorded under an action type edits cannot use."""

    kind = ErrorKind.INVALID_ACTION_TYPE


class TimecardNotFound(EngineError):
    """No header with the requested id."""

    kind = ErrorKind.TIMECARD_NOT_FOUND


class PersistenceFailure(EngineError):
    """The data store rejected the batch; nothing was committed."""

    kind = ErrorKind.PERSISTENCE_FAILURE


class InvalidTransition(EngineError):
    """Raised when an invalid status transition is attempted."""

    kind = ErrorKind.INVALID_TRANSITION

    def __init__(self, from_status: str, to_status: str, reason: str | None = None):
        self.from_status = from_status
        self.to_status = to_status
        self.reason = reason
        msg = f"Invalid transition from '{from_status}' to '{to_status}'"
        if reason:
            msg += f": {reason}"
        super().__init__(msg)


_ERRORS_BY_KIND: dict[ErrorKind, type[EngineError]] = {
    ErrorKind.INVALID_SEQUENCE: InvalidSequence,
    ErrorKind.NEGATIVE_HOURS: NegativeHours,
    ErrorKind.NEGATIVE_BREAK: NegativeBreak,
    ErrorKind.INVALID_TIME_VALUE: InvalidTimeValue,
    ErrorKind.SHIFT_TOO_LONG: ShiftTooLong,
}


def error_for_kind(
    kind: ErrorKind,
    message: str,
    *,
    work_date: date | None = None,
    field: str | None = None,
) -> EngineError:
    """Build the exception matching a calculation issue kind."""
    return _ERRORS_BY_KIND[kind](message, work_date=work_date, field=field)
