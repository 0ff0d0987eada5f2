"""Note recording engine — turns live press/release notifications into a timed log.

Pure Python, no Qt dependency. Runs on the GUI thread only; the recorder is
fed from Instrument ``played``/``stopped`` notifications.
"""

from __future__ import annotations

import logging
from collections.abc import Callable

from .note_log import NoteEvent, monotonic_ms

log = logging.getLogger(__name__)


class NoteRecorder:
    """Records note presses as ``(note, start_offset, duration)`` events.

    Duplicate presses of a held note and releases without a matching press
    are input glitches (key repeat, mouse leaving a key) and are dropped
    silently rather than raised.
    """

    def __init__(self, clock: Callable[[], int] = monotonic_ms) -> None:
        self._clock = clock
        self._armed = False
        self._session_start: int = 0
        self._active: dict[str, int] = {}
        self._events: list[NoteEvent] = []

    @property
    def is_armed(self) -> bool:
        return self._armed

    @property
    def event_count(self) -> int:
        return len(self._events)

    @property
    def events(self) -> list[NoteEvent]:
        """Return a copy of the events logged so far."""
        return list(self._events)

    @property
    def active_notes(self) -> dict[str, int]:
        """Return a copy of held notes mapped to their press timestamps."""
        return dict(self._active)

    @property
    def elapsed_ms(self) -> int:
        if not self._armed:
            return 0
        return self._clock() - self._session_start

    def arm(self) -> None:
        """Start a new session, discarding any previous unsaved log."""
        self._session_start = self._clock()
        self._active.clear()
        self._events.clear()
        self._armed = True
        log.info("Recording armed")

    def note_played(self, note: str) -> None:
        if not self._armed:
            return
        if note in self._active:
            log.debug("Ignoring repeated press of %s", note)
            return
        self._active[note] = self._clock()

    def note_stopped(self, note: str) -> None:
        if not self._armed:
            return
        pressed_at = self._active.pop(note, None)
        if pressed_at is None:
            log.debug("Ignoring release of %s without a press", note)
            return
        self._emit(note, pressed_at, self._clock())

    def disarm(self) -> tuple[NoteEvent, ...]:
        """Stop recording and return the finalized log.

        Notes still held are closed at the current time and appended in
        held-set order, after everything already logged.
        """
        if self._armed:
            self._armed = False
            now = self._clock()
            for note, pressed_at in self._active.items():
                self._emit(note, pressed_at, now)
            self._active.clear()
            log.info("Recording stopped: %d notes", len(self._events))
        return tuple(self._events)

    def _emit(self, note: str, pressed_at: int, released_at: int) -> None:
        self._events.append(NoteEvent(
            note=note,
            start_offset=pressed_at - self._session_start,
            duration=released_at - pressed_at,
        ))
