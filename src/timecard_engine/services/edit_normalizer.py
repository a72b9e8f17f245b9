"""Edit request normalization.

Edit requests arrive in two shapes:

    day-indexed:   {"day_0": {"check_in_time": "09:30"}, "day_1": {...}}
    flat suffixed: {"check_in_time_day_0": "09:30"}

Both (and a mix of the two) become one list of FieldChange values before
anything is diffed. Nothing downstream knows which shape was used.
"""

from __future__ import annotations

import re
from collections.abc import Mapping
from dataclasses import dataclass
from datetime import date, time, timedelta
from typing import Any

from timecard_engine.calculators.time_math import parse_time_value
from timecard_engine.calculators.types import PunchField
from timecard_engine.errors import ConflictingChange, DayOutOfRange, UnmappedField

# Request field name -> canonical audit field name
FIELD_ALIASES: dict[str, PunchField] = {
    "check_in_time": PunchField.CHECK_IN,
    "break_start_time": PunchField.BREAK_START,
    "break_end_time": PunchField.BREAK_END,
    "check_out_time": PunchField.CHECK_OUT,
}

_DAY_KEY = re.compile(r"^day_(\d+)$")
_SUFFIXED_KEY = re.compile(r"^(?P<field>[a-z_]+?)_day_(?P<index>\d+)$")


@dataclass(frozen=True)
class FieldChange:
    """One requested punch value for one day."""

    work_date: date
    field: PunchField
    new_value: time | None


def canonical_field(name: str, *, work_date: date | None = None) -> PunchField:
    """Map a request field name onto a punch field.

    Raises UnmappedField for anything outside the four punch fields.
    """
    punch_field = FIELD_ALIASES.get(name)
    if punch_field is None:
        raise UnmappedField(
            f"Field '{name}' is not an editable time field",
            work_date=work_date,
            field=name,
        )
    return punch_field


def day_index_to_date(
    index: int, period_start: date, period_end: date, *, field: str | None = None
) -> date:
    """Resolve a zero-based day index against a period.

    The index is bounded by the period length before any date arithmetic,
    so an arbitrarily large index is reported as out of range rather than
    overflowing the date type.
    """
    if index > (period_end - period_start).days:
        raise DayOutOfRange(
            f"day_{index} is outside the period {period_start}..{period_end}",
            field=field,
        )
    return period_start + timedelta(days=index)


def _iter_raw_changes(request: Mapping[str, Any]):
    """Yield (day_index, request_field_name, raw_value) from either shape."""
    for key, value in request.items():
        day_match = _DAY_KEY.match(key)
        if day_match:
            if not isinstance(value, Mapping):
                raise UnmappedField(f"'{key}' must map field names to values", field=key)
            index = int(day_match.group(1))
            for field_name, raw in value.items():
                yield index, field_name, raw
            continue

        suffixed = _SUFFIXED_KEY.match(key)
        if suffixed:
            yield int(suffixed.group("index")), suffixed.group("field"), value
            continue

        raise UnmappedField(f"Field '{key}' is not an editable time field", field=key)


def normalize_edit_request(
    request: Mapping[str, Any],
    period_start: date,
    period_end: date,
) -> list[FieldChange]:
    """Normalize an edit request into ordered FieldChange values.

    Output is sorted by (work_date, punch order) so batches are applied and
    audited in a stable order.
    """
    staged: dict[tuple[date, PunchField], FieldChange] = {}

    for index, field_name, raw in _iter_raw_changes(request):
        work_date = day_index_to_date(index, period_start, period_end, field=field_name)
        punch_field = canonical_field(field_name, work_date=work_date)
        new_value = parse_time_value(raw, work_date=work_date, field=punch_field.value)

        key = (work_date, punch_field)
        existing = staged.get(key)
        if existing is not None and existing.new_value != new_value:
            raise ConflictingChange(
                f"{punch_field.value} on {work_date} was given two different values",
                work_date=work_date,
                field=punch_field.value,
            )
        staged[key] = FieldChange(work_date=work_date, field=punch_field, new_value=new_value)

    field_order = list(PunchField)
    return sorted(
        staged.values(),
        key=lambda change: (change.work_date, field_order.index(change.field)),
    )
