"""ORM models for the timecard engine."""

from timecard_engine.models.base import Base, TimestampMixin
from timecard_engine.models.timecard import AuditLogEntry, DailyEntry, TimecardHeader

__all__ = [
    "Base",
    "TimestampMixin",
    "TimecardHeader",
    "DailyEntry",
    "AuditLogEntry",
]
