"""Note event log model — timed note events, clock, and JSON wire codec.

Pure Python, no Qt dependency. All offsets and durations are integer
milliseconds. Logs are NOT guaranteed to be sorted by start offset; use
:func:`timeline` when a chronological view is needed.
"""

from __future__ import annotations

import time
from collections.abc import Iterable, Sequence
from dataclasses import dataclass

from .errors import ValidationError

# Wire field names, fixed for compatibility with stored recordings
WIRE_NOTE = "note"
WIRE_TIME = "time"
WIRE_DURATION = "duration"


def monotonic_ms() -> int:
    """Current monotonic time in whole milliseconds (perf_counter based)."""
    return int(time.perf_counter() * 1000)


@dataclass(frozen=True, slots=True)
class NoteEvent:
    """A single recorded note: pitch, start offset and held duration (ms)."""

    note: str           # pitch name, e.g. "C4"
    start_offset: int   # ms since recording start
    duration: int       # ms the note was held

    @property
    def end_offset(self) -> int:
        return self.start_offset + self.duration

    def to_dict(self) -> dict:
        return {
            WIRE_NOTE: self.note,
            WIRE_TIME: self.start_offset,
            WIRE_DURATION: self.duration,
        }

    @classmethod
    def from_dict(cls, data: dict, field: str = "notes") -> NoteEvent:
        """Decode one wire object, raising ValidationError on bad shape."""
        if not isinstance(data, dict):
            raise ValidationError("Note event must be an object", field)
        note = data.get(WIRE_NOTE)
        if not isinstance(note, str) or not note:
            raise ValidationError("Note must be a non-empty string", f"{field}.{WIRE_NOTE}")
        start = data.get(WIRE_TIME)
        if not _is_int(start) or start < 0:
            raise ValidationError("Time must be a non-negative integer", f"{field}.{WIRE_TIME}")
        duration = data.get(WIRE_DURATION)
        if not _is_int(duration) or duration < 0:
            raise ValidationError(
                "Duration must be a non-negative integer", f"{field}.{WIRE_DURATION}",
            )
        return cls(note=note, start_offset=start, duration=duration)


def _is_int(value: object) -> bool:
    # bool is an int subclass but never a valid offset
    return isinstance(value, int) and not isinstance(value, bool)


def encode_log(events: Iterable[NoteEvent]) -> list[dict]:
    """Encode a log into its wire form, preserving order."""
    return [evt.to_dict() for evt in events]


def decode_log(data: object) -> tuple[NoteEvent, ...]:
    """Decode a wire-form log.

    NoteEvent instances are checked field by field like wire objects, since
    the dataclass itself does not enforce types.
    """
    if not isinstance(data, (list, tuple)):
        raise ValidationError("Notes must be a list", "notes")
    events: list[NoteEvent] = []
    for i, item in enumerate(data):
        if isinstance(item, NoteEvent):
            item = item.to_dict()
        events.append(NoteEvent.from_dict(item, field=f"notes.{i}"))
    return tuple(events)


def log_end(events: Iterable[NoteEvent]) -> int:
    """Largest end offset in the log, or 0 when empty."""
    return max((evt.end_offset for evt in events), default=0)


def timeline(events: Sequence[NoteEvent]) -> list[tuple[int, str, str]]:
    """Chronological (offset, "note_on"/"note_off", note) calls a replay makes.

    Order within one offset is canonical (note_off first, then by pitch),
    so two logs holding the same events compare equal regardless of the
    order they were recorded in.
    """
    points: list[tuple[int, str, str]] = []
    for evt in events:
        points.append((evt.start_offset, "note_on", evt.note))
        points.append((evt.end_offset, "note_off", evt.note))
    points.sort(key=lambda p: (p[0], 0 if p[1] == "note_off" else 1, p[2]))
    return points
