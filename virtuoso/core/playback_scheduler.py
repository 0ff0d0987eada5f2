"""Timed playback of recorded note logs.

The scheduler itself is pure Python and drives any timer backend that offers
``call_later(delay_ms, callback)``/``cancel(handle)``. ``QtTimerBackend`` runs
deferred calls on the Qt event loop; the Qt-dependent controller class is
defined lazily (same pattern as the other Qt wrappers) to avoid a
module-level Qt import.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable
from functools import partial
from typing import Any, Protocol

from .constants import PLAYBACK_TRAILING_MARGIN_MS
from .note_log import NoteEvent, log_end

log = logging.getLogger(__name__)


class TimerBackend(Protocol):
    def call_later(self, delay_ms: int, callback: Callable[[], None]) -> Any: ...

    def cancel(self, handle: Any) -> None: ...


class PlaybackTarget(Protocol):
    def note_on(self, pitch: str) -> None: ...

    def note_off(self, pitch: str) -> None: ...

    def all_notes_off(self) -> None: ...


# ──────────────────────────────────────────────
# Pure Python (no Qt dependency)
# ──────────────────────────────────────────────

class PlaybackScheduler:
    """Replays a note log against an instrument with the recorded timing.

    Every event schedules its own note_on at ``start_offset`` and note_off at
    ``start_offset + duration`` from the moment ``play`` is called, so the log
    does not need to be sorted. At most one run is active: starting a new run
    cancels everything still pending from the previous one.

    ``stop`` leaves already-started notes sounding unless ``silence_on_stop``
    is set.
    """

    def __init__(
        self,
        instrument: PlaybackTarget,
        timer: TimerBackend,
        *,
        trailing_margin_ms: int = PLAYBACK_TRAILING_MARGIN_MS,
        silence_on_stop: bool = False,
        on_playing_changed: Callable[[bool], None] | None = None,
        on_finished: Callable[[], None] | None = None,
    ) -> None:
        self._instrument = instrument
        self._timer = timer
        self._margin = max(0, int(trailing_margin_ms))
        self._silence_on_stop = silence_on_stop
        self._on_playing_changed = on_playing_changed
        self._on_finished = on_finished
        self._playing = False
        self._run_id = 0
        self._pending: dict[int, list[Any]] = {}

    @property
    def is_playing(self) -> bool:
        return self._playing

    @property
    def run_id(self) -> int:
        """Id of the most recent run (0 before the first ``play``)."""
        return self._run_id

    @property
    def pending_count(self) -> int:
        return sum(len(handles) for handles in self._pending.values())

    @property
    def trailing_margin_ms(self) -> int:
        return self._margin

    def play(self, events: Iterable[NoteEvent]) -> int:
        """Start a new run for ``events``. Returns the run id."""
        events = list(events)
        self._cancel_pending()
        self._run_id += 1
        run_id = self._run_id

        if not events:
            log.info("Playback run %d: empty log, nothing to play", run_id)
            self._set_playing(False)
            self._notify_finished()
            return run_id

        handles: list[Any] = []
        self._pending[run_id] = handles
        for evt in events:
            handles.append(self._timer.call_later(
                evt.start_offset, partial(self._fire, run_id, self._instrument.note_on, evt.note),
            ))
            handles.append(self._timer.call_later(
                evt.end_offset, partial(self._fire, run_id, self._instrument.note_off, evt.note),
            ))
        finish_at = log_end(events) + self._margin
        handles.append(self._timer.call_later(finish_at, partial(self._finish, run_id)))

        log.info(
            "Playback run %d started: %d notes, finishes in %d ms",
            run_id, len(events), finish_at,
        )
        self._set_playing(True)
        return run_id

    def stop(self) -> bool:
        """Cancel the active run. Returns True if a run was cancelled."""
        cancelled = self._cancel_pending()
        if cancelled:
            log.info("Playback run %d stopped", self._run_id)
            if self._silence_on_stop:
                self._instrument.all_notes_off()
        self._set_playing(False)
        return cancelled

    def _cancel_pending(self) -> bool:
        if not self._pending:
            return False
        pending, self._pending = self._pending, {}
        for handles in pending.values():
            for handle in handles:
                self._timer.cancel(handle)
        return True

    def _is_current(self, run_id: int) -> bool:
        return run_id == self._run_id and run_id in self._pending

    def _fire(self, run_id: int, action: Callable[[str], None], pitch: str) -> None:
        if not self._is_current(run_id):
            return
        action(pitch)

    def _finish(self, run_id: int) -> None:
        if not self._is_current(run_id):
            return
        del self._pending[run_id]
        log.info("Playback run %d finished", run_id)
        self._set_playing(False)
        self._notify_finished()

    def _set_playing(self, playing: bool) -> None:
        if playing == self._playing:
            return
        self._playing = playing
        if self._on_playing_changed is not None:
            self._on_playing_changed(playing)

    def _notify_finished(self) -> None:
        if self._on_finished is not None:
            self._on_finished()


# ──────────────────────────────────────────────
# Qt-dependent (requires running QApplication)
# ──────────────────────────────────────────────

class QtTimerBackend:
    """Single-shot ``QTimer`` per deferred call, on the Qt event loop."""

    def __init__(self, parent=None) -> None:
        self._parent = parent
        self._timers: set = set()

    def call_later(self, delay_ms: int, callback: Callable[[], None]):
        from PyQt6.QtCore import Qt, QTimer

        timer = QTimer(self._parent)
        timer.setSingleShot(True)
        timer.setTimerType(Qt.TimerType.PreciseTimer)

        def _fire() -> None:
            if timer not in self._timers:
                return
            self._timers.discard(timer)
            timer.deleteLater()
            callback()

        timer.timeout.connect(_fire)
        self._timers.add(timer)
        timer.start(max(0, int(delay_ms)))
        return timer

    def cancel(self, handle) -> None:
        if handle not in self._timers:
            return
        self._timers.discard(handle)
        handle.stop()
        handle.deleteLater()


_PlaybackControllerClass = None


def _ensure_qt_class():
    """Define the Qt-dependent PlaybackController on first use."""
    global _PlaybackControllerClass

    if _PlaybackControllerClass is not None:
        return

    from PyQt6.QtCore import QObject, pyqtSignal

    class PlaybackController(QObject):
        """Qt wrapper around PlaybackScheduler — exposes status as signals."""

        playing_changed = pyqtSignal(bool)
        playback_finished = pyqtSignal()

        def __init__(
            self,
            instrument: PlaybackTarget,
            trailing_margin_ms: int = PLAYBACK_TRAILING_MARGIN_MS,
            silence_on_stop: bool = False,
            parent=None,
        ) -> None:
            super().__init__(parent)
            self._timer = QtTimerBackend(self)
            self._scheduler = PlaybackScheduler(
                instrument,
                self._timer,
                trailing_margin_ms=trailing_margin_ms,
                silence_on_stop=silence_on_stop,
                on_playing_changed=self.playing_changed.emit,
                on_finished=self.playback_finished.emit,
            )

        @property
        def scheduler(self) -> PlaybackScheduler:
            return self._scheduler

        @property
        def is_playing(self) -> bool:
            return self._scheduler.is_playing

        def play(self, events: Iterable[NoteEvent]) -> int:
            return self._scheduler.play(events)

        def stop(self) -> bool:
            return self._scheduler.stop()

        def cleanup(self) -> None:
            self._scheduler.stop()

    _PlaybackControllerClass = PlaybackController


def get_playback_controller_class():
    """Get the PlaybackController class (requires running QApplication)."""
    _ensure_qt_class()
    return _PlaybackControllerClass


def create_playback_controller(instrument, trailing_margin_ms=PLAYBACK_TRAILING_MARGIN_MS,
                               silence_on_stop=False, parent=None):
    """Create a PlaybackController (requires running QApplication)."""
    cls = get_playback_controller_class()
    return cls(instrument, trailing_margin_ms, silence_on_stop, parent)
