"""Timecard engine services."""

from timecard_engine.services.audit_service import AuditTrailService, format_field_name
from timecard_engine.services.edit_normalizer import FieldChange, normalize_edit_request
from timecard_engine.services.state_machine import (
    AuditActionType,
    TimecardStateMachine,
    TimecardStatus,
)
from timecard_engine.services.timecard_service import TimecardService
from timecard_engine.services.types import (
    Actor,
    AuditLogFilter,
    AuditStatistics,
    EditResult,
    GroupedAuditEntry,
)

__all__ = [
    "AuditTrailService",
    "format_field_name",
    "FieldChange",
    "normalize_edit_request",
    "AuditActionType",
    "TimecardStateMachine",
    "TimecardStatus",
    "TimecardService",
    "Actor",
    "AuditLogFilter",
    "AuditStatistics",
    "EditResult",
    "GroupedAuditEntry",
]
