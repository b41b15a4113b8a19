"""
Appointment timeline layout.

Turns one day's appointments into render-ready blocks: a vertical pixel
position derived from the time of day and a horizontal column derived from
overlaps with the other appointments of that day.  Appointments that overlap
in time never share a column, and every transitively overlapping cluster is
given exactly as many columns as it has appointments active at its busiest
instant.

This module has no Django imports.  Views build a :class:`TimelineConfig`
from settings and hand in the day's records; everything computed here is
local to a single call.
"""
from __future__ import annotations

import datetime as dt
import re
from dataclasses import dataclass, field
from typing import Any, Iterable, Optional, Sequence

_TIME_RE = re.compile(r"^\s*(\d{1,2}):(\d{2})\s*$")

DEFAULT_DURATION_MINUTES = 30


class TimelineError(ValueError):
    """Base class for input the layout engine refuses to place."""


class InvalidTimeFormat(TimelineError):
    """Hour outside 0-23, minute outside 0-59 or an unparsable time string."""


class InvalidDuration(TimelineError):
    """Negative or non-integer appointment duration."""


@dataclass(frozen=True)
class TimelineConfig:
    day_start_hour: int = 0
    day_end_hour: int = 23
    pixels_per_hour: float = 60
    min_block_height: float = 30
    column_gap: float = 4

    @classmethod
    def from_settings(cls, settings: Any) -> "TimelineConfig":
        return cls(
            day_start_hour=int(getattr(settings, "TIMELINE_DAY_START_HOUR", cls.day_start_hour)),
            day_end_hour=int(getattr(settings, "TIMELINE_DAY_END_HOUR", cls.day_end_hour)),
            pixels_per_hour=float(getattr(settings, "TIMELINE_PIXELS_PER_HOUR", cls.pixels_per_hour)),
            min_block_height=float(getattr(settings, "TIMELINE_MIN_BLOCK_HEIGHT", cls.min_block_height)),
            column_gap=float(getattr(settings, "TIMELINE_COLUMN_GAP", cls.column_gap)),
        )

    def as_dict(self) -> dict:
        return {
            "dayStartHour": self.day_start_hour,
            "dayEndHour": self.day_end_hour,
            "pixelsPerHour": self.pixels_per_hour,
            "minBlockHeight": self.min_block_height,
            "columnGap": self.column_gap,
        }


# ---------------------------------------------------------------------------
# Input records
# ---------------------------------------------------------------------------
def _is_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


@dataclass(frozen=True, order=True)
class TimeOfDay:
    hour: int
    minute: int = 0

    def __post_init__(self) -> None:
        if not _is_int(self.hour) or not 0 <= self.hour <= 23:
            raise InvalidTimeFormat(f"hour must be 0-23, got {self.hour!r}")
        if not _is_int(self.minute) or not 0 <= self.minute <= 59:
            raise InvalidTimeFormat(f"minute must be 0-59, got {self.minute!r}")

    @classmethod
    def parse(cls, value: Any) -> "TimeOfDay":
        """Accept ``"HH:MM"``, ``datetime.time``, ``(hour, minute)`` or a TimeOfDay."""
        if isinstance(value, TimeOfDay):
            return value
        if isinstance(value, dt.time):
            return cls(value.hour, value.minute)
        if isinstance(value, (tuple, list)) and len(value) == 2:
            return cls(value[0], value[1])
        if isinstance(value, str):
            m = _TIME_RE.match(value)
            if not m:
                raise InvalidTimeFormat(f"expected HH:MM, got {value!r}")
            return cls(int(m.group(1)), int(m.group(2)))
        raise InvalidTimeFormat(f"unsupported time value {value!r}")

    @property
    def minutes(self) -> int:
        return self.hour * 60 + self.minute

    def __str__(self) -> str:
        return f"{self.hour:02d}:{self.minute:02d}"


@dataclass(frozen=True)
class TimelineEntry:
    """One appointment as seen by the layout engine.

    ``status`` and ``label`` are carried through for display only.
    ``source`` keeps a reference to whatever record the entry was built
    from so renderers can reach the original fields.
    """
    id: Any
    start: TimeOfDay
    duration_minutes: int
    status: Optional[str] = None
    label: str = ""
    source: Any = field(default=None, compare=False, repr=False)

    def __post_init__(self) -> None:
        if not isinstance(self.start, TimeOfDay):
            object.__setattr__(self, "start", TimeOfDay.parse(self.start))
        if not _is_int(self.duration_minutes):
            raise InvalidDuration(f"duration must be an integer, got {self.duration_minutes!r}")
        if self.duration_minutes < 0:
            raise InvalidDuration(f"duration must not be negative, got {self.duration_minutes}")

    @property
    def start_minute(self) -> int:
        return self.start.minutes

    @property
    def end_minute(self) -> int:
        return self.start.minutes + self.duration_minutes


def _field(record: Any, *names: str, default: Any = None) -> Any:
    for name in names:
        if isinstance(record, dict):
            if record.get(name) is not None:
                return record[name]
        elif getattr(record, name, None) is not None:
            return getattr(record, name)
    return default


def _display_name(record: Any) -> str:
    patient = _field(record, "patient")
    if patient is None:
        return ""
    first = _field(patient, "firstName", "first_name", default="")
    last = _field(patient, "lastName", "last_name", default="")
    return f"{first} {last}".strip()


def entry_from_record(record: Any) -> TimelineEntry:
    """Build a :class:`TimelineEntry` from an API dict or a model instance.

    A missing duration falls back to the booking default of 30 minutes; a
    duration given as a digit string is converted, anything else is left for
    :class:`TimelineEntry` to reject.
    """
    if isinstance(record, TimelineEntry):
        return record
    duration = _field(record, "duration", "durationMinutes", "duration_minutes", default=DEFAULT_DURATION_MINUTES)
    if isinstance(duration, str) and duration.strip().lstrip("-").isdigit():
        duration = int(duration)
    return TimelineEntry(
        id=_field(record, "id", "pk"),
        start=_field(record, "appointmentTime", "appointment_time", "startTime", "start_time"),
        duration_minutes=duration,
        status=_field(record, "status"),
        label=_field(record, "label", default="") or _display_name(record),
        source=record,
    )


def _date_key(value: Any) -> Optional[str]:
    if value is None:
        return None
    if isinstance(value, dt.datetime):
        return value.date().isoformat()
    if isinstance(value, dt.date):
        return value.isoformat()
    return str(value).split("T")[0].strip()


def select_for_date(records: Iterable[Any], target_date: Any) -> list:
    """Keep the records whose calendar date equals ``target_date``.

    Dates may be ``date``/``datetime`` objects or ISO strings; a time suffix
    after ``T`` is ignored.  Input order is preserved.  In-memory counterpart
    of ``services.appointments.appointments_on``, which filters in the
    database; use this for records that did not come from the ORM (exported
    schedules, API payloads).
    """
    target = _date_key(target_date)
    if not target:
        return []
    return [
        r for r in records
        if _date_key(_field(r, "appointmentDate", "appointment_date", "date")) == target
    ]


# ---------------------------------------------------------------------------
# Geometry
# ---------------------------------------------------------------------------
@dataclass(frozen=True)
class Position:
    top_offset: float
    block_height: float


def position(
    entry: TimelineEntry,
    day_start_hour: int = 0,
    pixels_per_hour: float = 60,
    min_block_height: float = 30,
) -> Position:
    minutes_since_start = (entry.start.hour - day_start_hour) * 60 + entry.start.minute
    top = minutes_since_start / 60 * pixels_per_hour
    height = entry.duration_minutes / 60 * pixels_per_hour
    return Position(top_offset=top, block_height=max(height, min_block_height))


def time_at_offset(y: float, config: TimelineConfig = TimelineConfig()) -> TimeOfDay:
    """Map a click at pixel ``y`` back to the whole hour that contains it."""
    hour = config.day_start_hour + int(y // config.pixels_per_hour)
    hour = min(max(hour, config.day_start_hour), config.day_end_hour)
    return TimeOfDay(hour, 0)


def format_hour(hour: int) -> str:
    suffix = "PM" if hour >= 12 else "AM"
    return f"{hour % 12 or 12}:00 {suffix}"


def hour_slots(config: TimelineConfig = TimelineConfig()) -> list[dict]:
    return [
        {
            "hour": hour,
            "label": format_hour(hour),
            "time": f"{hour:02d}:00",
            "top": (hour - config.day_start_hour) * config.pixels_per_hour,
        }
        for hour in range(config.day_start_hour, config.day_end_hour + 1)
    ]


def now_offset(selected_date: Any, now: dt.datetime, config: TimelineConfig = TimelineConfig()) -> Optional[float]:
    """Pixel offset of the current-time marker, or None when not drawn."""
    if _date_key(selected_date) != now.date().isoformat():
        return None
    minutes = (now.hour - config.day_start_hour) * 60 + now.minute
    top = minutes / 60 * config.pixels_per_hour
    return top if top >= 0 else None


# ---------------------------------------------------------------------------
# Overlaps and columns
# ---------------------------------------------------------------------------
def overlaps(a: TimelineEntry, b: TimelineEntry) -> bool:
    """Half-open overlap: touching endpoints and empty intervals never conflict."""
    if a.duration_minutes == 0 or b.duration_minutes == 0:
        return False
    return a.start_minute < b.end_minute and b.start_minute < a.end_minute


@dataclass(frozen=True)
class ColumnSlot:
    column: int
    total_columns: int
    cluster: int


def _assign(entries: Sequence[TimelineEntry]) -> tuple[list[int], list[ColumnSlot]]:
    """Return the display order and one slot per input position.

    Entries are processed by start time (``sorted`` is stable, so equal
    starts keep input order) and each takes the lowest column not held by an
    overlapping entry placed before it.  Overlapping pairs are unioned as they
    are found; a cluster's width is the highest column used in it plus one,
    which for intervals taken in start order is the peak concurrency.
    """
    n = len(entries)
    order = sorted(range(n), key=lambda i: entries[i].start_minute)
    parent = list(range(n))

    def find(i: int) -> int:
        while parent[i] != i:
            parent[i] = parent[parent[i]]
            i = parent[i]
        return i

    columns: dict[int, int] = {}
    for i in order:
        used = set()
        for j, col in columns.items():
            if overlaps(entries[i], entries[j]):
                used.add(col)
                ri, rj = find(i), find(j)
                if ri != rj:
                    parent[ri] = rj
        col = 0
        while col in used:
            col += 1
        columns[i] = col

    width: dict[int, int] = {}
    cluster_no: dict[int, int] = {}
    for i in order:
        root = find(i)
        width[root] = max(width.get(root, 0), columns[i] + 1)
        cluster_no.setdefault(root, len(cluster_no))

    slots = [
        ColumnSlot(column=columns[i], total_columns=width[find(i)], cluster=cluster_no[find(i)])
        for i in range(n)
    ]
    return order, slots


def assign_columns(entries: Sequence[Any]) -> dict:
    """Map each appointment id to its :class:`ColumnSlot`."""
    items = [entry_from_record(e) for e in entries]
    _, slots = _assign(items)
    return {entry.id: slot for entry, slot in zip(items, slots)}


@dataclass(frozen=True)
class LayoutResult:
    entry: TimelineEntry
    top_offset: float
    block_height: float
    column: int
    total_columns: int
    cluster: int

    @property
    def id(self) -> Any:
        return self.entry.id

    @property
    def width_percent(self) -> float:
        return 100 / self.total_columns

    @property
    def left_percent(self) -> float:
        return self.column * self.width_percent

    def as_dict(self, gap: float = 4) -> dict:
        end = self.entry.end_minute
        return {
            "id": self.entry.id,
            "top": self.top_offset,
            "height": self.block_height,
            "column": self.column,
            "totalColumns": self.total_columns,
            "cluster": self.cluster,
            "left": self.left_percent,
            "width": self.width_percent,
            "style": {
                "top": f"{self.top_offset:g}px",
                "height": f"{self.block_height:g}px",
                "left": f"calc({self.left_percent:g}% + {gap:g}px)",
                "width": f"calc({self.width_percent:g}% - {gap * 2:g}px)",
            },
            "startTime": str(self.entry.start),
            "endTime": f"{end // 60:02d}:{end % 60:02d}",
            "duration": self.entry.duration_minutes,
            "status": self.entry.status,
            "label": self.entry.label,
        }


def layout_day(records: Sequence[Any], config: TimelineConfig = TimelineConfig()) -> list[LayoutResult]:
    """Lay out one day's appointments, returned in timeline (start) order."""
    entries = [entry_from_record(r) for r in records]
    order, slots = _assign(entries)
    results = []
    for i in order:
        pos = position(entries[i], config.day_start_hour, config.pixels_per_hour, config.min_block_height)
        slot = slots[i]
        results.append(LayoutResult(
            entry=entries[i],
            top_offset=pos.top_offset,
            block_height=pos.block_height,
            column=slot.column,
            total_columns=slot.total_columns,
            cluster=slot.cluster,
        ))
    return results
