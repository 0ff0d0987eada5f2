"""Piano session — the UI-facing controller for recording, saving and playback.

Owns the recorder lifecycle and the pending (unsaved) log. Pure Python; the
GUI drives it and shows whatever errors it raises.
"""

from __future__ import annotations

import logging
from typing import Protocol

from .errors import ValidationError
from .instrument import Instrument
from .note_log import NoteEvent
from .note_recorder import NoteRecorder
from .recording_store import RecordingStore, StoredRecording

log = logging.getLogger(__name__)


class Player(Protocol):
    @property
    def is_playing(self) -> bool: ...

    def play(self, events) -> int: ...

    def stop(self) -> bool: ...


class PianoSession:
    """Ties the instrument, recorder, store and playback together."""

    def __init__(
        self,
        instrument: Instrument,
        store: RecordingStore,
        player: Player,
        recorder: NoteRecorder | None = None,
    ) -> None:
        self._instrument = instrument
        self._store = store
        self._player = player
        self._recorder = recorder if recorder is not None else NoteRecorder()
        self._pending: tuple[NoteEvent, ...] = ()
        self._playing_id: int | None = None
        instrument.add_listener(self._recorder.note_played, self._recorder.note_stopped)

    @property
    def instrument(self) -> Instrument:
        return self._instrument

    @property
    def recorder(self) -> NoteRecorder:
        return self._recorder

    @property
    def is_recording(self) -> bool:
        return self._recorder.is_armed

    @property
    def is_playing(self) -> bool:
        return self._player.is_playing

    @property
    def pending_log(self) -> tuple[NoteEvent, ...]:
        return self._pending

    @property
    def playing_id(self) -> int | None:
        """Id of the recording being played back, or None."""
        if not self._player.is_playing:
            return None
        return self._playing_id

    # ── Recording ───────────────────────────────────────

    def start_recording(self) -> None:
        self._pending = ()
        self._recorder.arm()

    def stop_recording(self) -> tuple[NoteEvent, ...]:
        """Finish the take. A non-empty result is kept until saved or discarded.

        Returns an empty log and leaves the pending log alone when no take
        is in progress.
        """
        if not self._recorder.is_armed:
            return ()
        events = self._recorder.disarm()
        self._pending = events
        if not events:
            log.info("Recording was empty, nothing to save")
        return events

    def discard_recording(self) -> None:
        self._pending = ()

    def save_recording(self, title: str) -> StoredRecording:
        """Persist the pending log under ``title``.

        Store errors propagate and leave the pending log in place for a retry.
        """
        if not self._pending:
            raise ValidationError("Nothing recorded to save", "notes")
        recording = self._store.create_recording(title, self._pending)
        self._pending = ()
        return recording

    def list_recordings(self) -> list[StoredRecording]:
        return self._store.list_recordings()

    # ── Playback ────────────────────────────────────────

    def play_recording(self, recording: StoredRecording) -> int:
        self._playing_id = recording.id
        log.info("Playing recording #%d %r", recording.id, recording.title)
        return self._player.play(recording.notes)

    def stop_playback(self) -> bool:
        self._playing_id = None
        return self._player.stop()
