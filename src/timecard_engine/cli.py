"""Timecard Command Line Interface.

Provides operational tools for:
- Single-day calculation
- Header total recomputation
- Audit log inspection
- Period summaries

Usage:
    python -m timecard_engine calculate --check-in 09:00 --check-out 17:00 --rate 20
    python -m timecard_engine recompute --timecard-id X
    python -m timecard_engine audit-log --timecard-id X --grouped
    python -m timecard_engine summary --timecard-id X
"""

from __future__ import annotations

import argparse
import asyncio
import json
import sys
from datetime import time
from decimal import Decimal, InvalidOperation
from typing import Any, Callable
from uuid import UUID

from timecard_engine.calculators.daily import calculate_daily_entry
from timecard_engine.calculators.time_math import parse_time_value
from timecard_engine.calculators.types import Punches, TimeType
from timecard_engine.config import get_settings
from timecard_engine.database import dispose_db, get_session
from timecard_engine.engine import TimecardEngine
from timecard_engine.errors import EngineError
from timecard_engine.logging_config import configure_logging
from timecard_engine.schemas import (
    AuditLogEntryView,
    AuditStatisticsView,
    CalculationView,
    GroupedAuditEntryView,
)
from timecard_engine.services.types import AuditLogFilter


def parse_uuid(s: str) -> UUID:
    """Parse UUID string."""
    return UUID(s)


def parse_decimal(s: str) -> Decimal:
    """Parse a decimal amount."""
    try:
        return Decimal(s)
    except InvalidOperation as exc:
        raise argparse.ArgumentTypeError(f"Not a number: {s}") from exc


def parse_punch(s: str) -> time | None:
    """Parse a punch time like 09:00 or 9:00 AM."""
    try:
        return parse_time_value(s)
    except EngineError as exc:
        raise argparse.ArgumentTypeError(str(exc)) from exc


def _dump(payload: Any) -> None:
    print(json.dumps(payload, indent=2, default=str))


class TimecardCli:
    """Timecard Command Line Interface."""

    def __init__(self) -> None:
        self.parser = self._build_parser()

    def _build_parser(self) -> argparse.ArgumentParser:
        """Build argument parser."""
        parser = argparse.ArgumentParser(
            prog="python -m timecard_engine",
            description="Timecard calculation and audit tools",
        )
        parser.add_argument(
            "--log-level",
            type=str,
            help="Override LOG_LEVEL for this run",
        )
        subparsers = parser.add_subparsers(dest="command", help="Commands")

        # calculate command
        calculate = subparsers.add_parser(
            "calculate",
            help="Calculate hours, break and pay for one day",
        )
        calculate.add_argument("--check-in", type=parse_punch, help="Check-in time")
        calculate.add_argument("--break-start", type=parse_punch, help="Break start time")
        calculate.add_argument("--break-end", type=parse_punch, help="Break end time")
        calculate.add_argument("--check-out", type=parse_punch, help="Check-out time")
        calculate.add_argument(
            "--rate",
            type=parse_decimal,
            required=True,
            help="Hourly rate, or flat daily rate with --time-type daily",
        )
        calculate.add_argument(
            "--time-type",
            choices=[t.value for t in TimeType],
            default=TimeType.HOURLY.value,
            help="Pay basis (default: hourly)",
        )

        # recompute command
        recompute = subparsers.add_parser(
            "recompute",
            help="Rebuild a timecard's totals from its daily entries",
        )
        recompute.add_argument(
            "--timecard-id",
            type=parse_uuid,
            required=True,
            help="Timecard header ID",
        )

        # audit-log command
        audit_log = subparsers.add_parser(
            "audit-log",
            help="Show the audit trail of a timecard",
        )
        audit_log.add_argument(
            "--timecard-id",
            type=parse_uuid,
            required=True,
            help="Timecard header ID",
        )
        audit_log.add_argument(
            "--grouped",
            action="store_true",
            help="Group entries by change",
        )
        audit_log.add_argument(
            "--action-types",
            type=str,
            help="Comma-separated action types (self_edit,rejection_edit,status_change)",
        )
        audit_log.add_argument(
            "--limit",
            type=int,
            help="Maximum entries to show",
        )
        audit_log.add_argument(
            "--stats",
            action="store_true",
            help="Show audit statistics instead of entries",
        )

        # summary command
        summary = subparsers.add_parser(
            "summary",
            help="Show period classification and per-day averages",
        )
        summary.add_argument(
            "--timecard-id",
            type=parse_uuid,
            required=True,
            help="Timecard header ID",
        )

        return parser

    def run(self, args: list[str] | None = None) -> int:
        """Run the CLI with given arguments."""
        parsed = self.parser.parse_args(args)

        if not parsed.command:
            self.parser.print_help()
            return 1

        configure_logging(parsed.log_level)

        # Dispatch to command handler
        handlers: dict[str, Callable[..., int]] = {
            "calculate": self._cmd_calculate,
            "recompute": self._cmd_recompute,
            "audit-log": self._cmd_audit_log,
            "summary": self._cmd_summary,
        }

        handler = handlers.get(parsed.command)
        if handler is None:
            print(f"Unknown command: {parsed.command}", file=sys.stderr)
            return 1

        try:
            return handler(parsed)
        except EngineError as exc:
            _dump({"error": exc.to_dict()})
            return 2

    def _cmd_calculate(self, args: argparse.Namespace) -> int:
        """Pure calculation; no database access."""
        settings = get_settings()
        punches = Punches(
            check_in=args.check_in,
            break_start=args.break_start,
            break_end=args.break_end,
            check_out=args.check_out,
        )
        result = calculate_daily_entry(
            punches,
            args.rate,
            args.time_type,
            default_break_minutes=Decimal(settings.default_break_minutes),
            grace_minutes=Decimal(settings.break_grace_minutes),
        )
        payload = CalculationView.model_validate(result).model_dump(mode="json")
        payload["engine_version"] = settings.engine_version
        _dump(payload)
        return 0 if result.is_valid else 2

    def _cmd_recompute(self, args: argparse.Namespace) -> int:
        """Recompute header totals."""

        async def _run() -> dict[str, Any]:
            try:
                async with get_session() as session:
                    totals = await TimecardEngine(session).recompute_header_totals(
                        args.timecard_id
                    )
            finally:
                await dispose_db()
            return {
                "timecard_header_id": str(args.timecard_id),
                "engine_version": get_settings().engine_version,
                "total_hours": totals.total_hours,
                "total_break_duration": totals.total_break_duration,
                "total_pay": totals.total_pay,
            }

        _dump(asyncio.run(_run()))
        return 0

    def _cmd_audit_log(self, args: argparse.Namespace) -> int:
        """Show audit entries, grouped entries, or statistics."""
        action_types = (
            [t.strip() for t in args.action_types.split(",") if t.strip()]
            if args.action_types
            else None
        )
        audit_filter = AuditLogFilter(action_types=action_types, limit=args.limit)

        async def _run() -> Any:
            try:
                async with get_session() as session:
                    audit = TimecardEngine(session).audit
                    if args.stats:
                        stats = await audit.get_audit_statistics(args.timecard_id)
                        return AuditStatisticsView.model_validate(stats).model_dump(mode="json")
                    if args.grouped:
                        groups = await audit.get_grouped_audit_logs(
                            args.timecard_id, audit_filter
                        )
                        return [
                            GroupedAuditEntryView.model_validate(g).model_dump(mode="json")
                            for g in groups
                        ]
                    entries = await audit.get_audit_logs(args.timecard_id, audit_filter)
                    views = [AuditLogEntryView.model_validate(e) for e in entries]
                    return [
                        {**view.model_dump(mode="json"), "field_label": view.field_label}
                        for view in views
                    ]
            finally:
                await dispose_db()

        _dump(asyncio.run(_run()))
        return 0

    def _cmd_summary(self, args: argparse.Namespace) -> int:
        """Show a period summary."""

        async def _run() -> dict[str, Any]:
            try:
                async with get_session() as session:
                    summary = await TimecardEngine(session).summarize(args.timecard_id)
            finally:
                await dispose_db()
            return {
                "timecard_header_id": str(args.timecard_id),
                "engine_version": get_settings().engine_version,
                "total_hours": summary.totals.total_hours,
                "total_break_duration": summary.totals.total_break_duration,
                "total_pay": summary.totals.total_pay,
                "rehearsal_days": [d.isoformat() for d in summary.days.rehearsal_days],
                "show_day": summary.days.show_day.isoformat(),
                "is_multi_day": summary.days.is_multi_day,
                "working_days": summary.working_days,
                "average_hours_per_day": summary.average_hours_per_day,
                "average_break_per_day": summary.average_break_per_day,
                "average_pay_per_day": summary.average_pay_per_day,
            }

        _dump(asyncio.run(_run()))
        return 0


def main() -> int:
    """CLI entry point."""
    cli = TimecardCli()
    return cli.run()


if __name__ == "__main__":
    sys.exit(main())
