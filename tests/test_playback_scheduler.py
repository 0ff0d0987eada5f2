"""Tests for PlaybackScheduler — pure Python, driven by a virtual-time timer."""

from __future__ import annotations

import pytest

from virtuoso.core.note_log import NoteEvent, timeline
from virtuoso.core.playback_scheduler import PlaybackScheduler


class _Observer:
    def __init__(self) -> None:
        self.changes: list[bool] = []
        self.finished = 0

    def on_playing_changed(self, playing: bool) -> None:
        self.changes.append(playing)

    def on_finished(self) -> None:
        self.finished += 1


@pytest.fixture
def observer():
    return _Observer()


@pytest.fixture
def scheduler(target, timer, observer):
    return PlaybackScheduler(
        target,
        timer,
        on_playing_changed=observer.on_playing_changed,
        on_finished=observer.on_finished,
    )


class TestPlay:
    def test_initial_state(self, scheduler):
        assert not scheduler.is_playing
        assert scheduler.run_id == 0
        assert scheduler.pending_count == 0
        assert scheduler.trailing_margin_ms == 500

    def test_single_note(self, scheduler, target, timer, observer):
        scheduler.play([NoteEvent("C4", 0, 200)])
        assert scheduler.is_playing
        assert observer.changes == [True]

        timer.advance(0)
        assert target.calls == [(0, "note_on", "C4")]
        timer.advance(200)
        assert target.calls[-1] == (200, "note_off", "C4")
        assert scheduler.is_playing

        timer.advance(499)
        assert scheduler.is_playing
        timer.advance(1)
        assert not scheduler.is_playing
        assert observer.changes == [True, False]
        assert observer.finished == 1
        assert scheduler.pending_count == 0

    def test_empty_log_completes_synchronously(self, scheduler, timer, observer):
        scheduler.play([])
        assert not scheduler.is_playing
        assert observer.finished == 1
        assert observer.changes == []
        assert timer.pending_count == 0

    def test_unsorted_log_fires_at_own_offsets(self, scheduler, target, timer):
        events = [
            NoteEvent("G4", 600, 100),
            NoteEvent("C4", 0, 300),
            NoteEvent("E4", 250, 200),
        ]
        scheduler.play(events)
        timer.advance(2000)
        assert sorted(target.calls) == sorted(timeline(events))

    def test_schedules_two_calls_per_event_plus_completion(self, scheduler):
        scheduler.play([NoteEvent("C4", 0, 10), NoteEvent("D4", 5, 10)])
        assert scheduler.pending_count == 5

    def test_completion_uses_latest_end_not_last_event(self, scheduler, timer, observer):
        scheduler.play([NoteEvent("C4", 0, 1000), NoteEvent("D4", 100, 50)])
        timer.advance(1499)
        assert observer.finished == 0
        timer.advance(1)
        assert observer.finished == 1

    def test_custom_margin(self, target, timer, observer):
        scheduler = PlaybackScheduler(
            target, timer, trailing_margin_ms=0, on_finished=observer.on_finished,
        )
        scheduler.play([NoteEvent("C4", 0, 100)])
        timer.advance(100)
        assert observer.finished == 1

    def test_run_ids_increase(self, scheduler):
        first = scheduler.play([NoteEvent("C4", 0, 10)])
        second = scheduler.play([NoteEvent("C4", 0, 10)])
        assert second == first + 1 == scheduler.run_id

    def test_works_without_callbacks(self, target, timer):
        scheduler = PlaybackScheduler(target, timer)
        scheduler.play([NoteEvent("C4", 0, 10)])
        timer.advance(1000)
        assert not scheduler.is_playing
        scheduler.play([])


class TestReplay:
    def test_new_play_cancels_previous_run(self, scheduler, target, timer):
        scheduler.play([NoteEvent("C4", 0, 1000), NoteEvent("D4", 800, 100)])
        timer.advance(100)
        restart = timer.now
        scheduler.play([NoteEvent("E4", 0, 50)])
        timer.advance(5000)
        stale = [c for c in target.calls if c[2] in ("C4", "D4") and c[0] >= restart]
        assert stale == []
        assert (restart, "note_on", "E4") in target.calls
        assert (restart + 50, "note_off", "E4") in target.calls

    def test_replay_keeps_playing_status(self, scheduler, timer, observer):
        scheduler.play([NoteEvent("C4", 0, 100)])
        scheduler.play([NoteEvent("C4", 0, 100)])
        assert observer.changes == [True]
        timer.advance(600)
        assert observer.changes == [True, False]
        assert observer.finished == 1

    def test_replay_with_empty_log_stops(self, scheduler, timer, observer):
        scheduler.play([NoteEvent("C4", 0, 100)])
        scheduler.play([])
        assert not scheduler.is_playing
        assert observer.changes == [True, False]
        assert timer.pending_count == 0

    def test_stale_callback_is_noop(self, target, observer):
        """A backend that fails to cancel must still not fire stale calls."""

        class _LeakyTimer:
            def __init__(self):
                self.callbacks = []

            def call_later(self, delay_ms, callback):
                self.callbacks.append(callback)
                return len(self.callbacks)

            def cancel(self, handle):
                pass

        leaky = _LeakyTimer()
        scheduler = PlaybackScheduler(target, leaky, on_finished=observer.on_finished)
        scheduler.play([NoteEvent("C4", 0, 10)])
        stale = list(leaky.callbacks)
        scheduler.play([NoteEvent("D4", 0, 10)])
        for cb in stale:
            cb()
        assert target.calls == []
        assert observer.finished == 0
        assert scheduler.is_playing


class TestStop:
    def test_stop_cancels_pending(self, scheduler, target, timer, observer):
        scheduler.play([NoteEvent("C4", 0, 100), NoteEvent("D4", 300, 100)])
        timer.advance(50)
        assert scheduler.stop() is True
        assert not scheduler.is_playing
        assert observer.changes == [True, False]
        timer.advance(5000)
        assert target.calls == [(0, "note_on", "C4")]
        assert observer.finished == 0
        assert timer.pending_count == 0

    def test_stop_leaves_notes_sounding_by_default(self, scheduler, target, timer):
        scheduler.play([NoteEvent("C4", 0, 100)])
        timer.advance(10)
        scheduler.stop()
        assert target.all_off_count == 0

    def test_silence_on_stop(self, target, timer):
        scheduler = PlaybackScheduler(target, timer, silence_on_stop=True)
        scheduler.play([NoteEvent("C4", 0, 100)])
        timer.advance(10)
        scheduler.stop()
        assert target.all_off_count == 1

    def test_stop_when_idle(self, scheduler, observer):
        assert scheduler.stop() is False
        assert observer.changes == []

    def test_stop_after_finish(self, scheduler, timer):
        scheduler.play([NoteEvent("C4", 0, 10)])
        timer.advance(1000)
        assert scheduler.stop() is False
