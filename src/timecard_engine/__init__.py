"""Timecard calculation and audit engine."""

from timecard_engine.engine import TimecardEngine
from timecard_engine.errors import EngineError, ErrorKind

__version__ = "0.1.0"

__all__ = ["TimecardEngine", "EngineError", "ErrorKind", "__version__"]
