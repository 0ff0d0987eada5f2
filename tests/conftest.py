"""Shared test fixtures."""

from __future__ import annotations

import os

import pytest

os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")


class FakeClock:
    """Millisecond clock that only moves when told to."""

    def __init__(self, start: int = 10_000) -> None:
        self.now = start

    def __call__(self) -> int:
        return self.now

    def advance(self, ms: int) -> None:
        self.now += ms


class ManualTimer:
    """Virtual-time timer backend: deferred calls fire only on ``advance``."""

    def __init__(self) -> None:
        self.now = 0
        self._seq = 0
        self._pending: dict[int, tuple[int, int, object]] = {}

    def call_later(self, delay_ms, callback):
        self._seq += 1
        self._pending[self._seq] = (self.now + delay_ms, self._seq, callback)
        return self._seq

    def cancel(self, handle) -> None:
        self._pending.pop(handle, None)

    @property
    def pending_count(self) -> int:
        return len(self._pending)

    def advance(self, ms: int) -> None:
        target = self.now + ms
        while True:
            due = [p for p in self._pending.values() if p[0] <= target]
            if not due:
                break
            when, seq, callback = min(due, key=lambda p: (p[0], p[1]))
            del self._pending[seq]
            self.now = when
            callback()
        self.now = target


class RecordingInstrument:
    """Instrument stand-in that logs (time, call, pitch) using a ManualTimer's clock."""

    def __init__(self, timer: ManualTimer) -> None:
        self._timer = timer
        self.calls: list[tuple[int, str, str]] = []
        self.all_off_count = 0

    def note_on(self, pitch: str) -> None:
        self.calls.append((self._timer.now, "note_on", pitch))

    def note_off(self, pitch: str) -> None:
        self.calls.append((self._timer.now, "note_off", pitch))

    def all_notes_off(self) -> None:
        self.all_off_count += 1


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def timer():
    return ManualTimer()


@pytest.fixture
def target(timer):
    return RecordingInstrument(timer)


@pytest.fixture(scope="session")
def qapp():
    """Provide a QApplication instance for the entire test session."""
    from PyQt6.QtWidgets import QApplication

    app = QApplication.instance()
    if app is None:
        app = QApplication([])
    yield app
