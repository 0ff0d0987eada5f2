"""Instrument — tracks sounding notes and fans out play/stop notifications.

The actual sound engine is a pluggable output; ``MidiOutputSink`` sends to a
system MIDI synthesizer through mido (python-rtmidi backend).
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import Protocol

import mido

from .constants import DEFAULT_VELOCITY, MIDI_CHANNEL
from .keyboard_layout import pitch_to_midi

log = logging.getLogger(__name__)

NoteCallback = Callable[[str], None]


class NoteOutput(Protocol):
    def note_on(self, pitch: str) -> None: ...

    def note_off(self, pitch: str) -> None: ...


class MidiOutputSink:
    """Sends note on/off to a mido output port.

    Opens ``port_name`` (or the first available port when empty). If no port
    can be opened the sink stays silent and ``available`` is False.
    """

    def __init__(self, port_name: str = "", velocity: int = DEFAULT_VELOCITY) -> None:
        self._port: mido.ports.BaseOutput | None = None
        self._port_name: str | None = None
        self._velocity = velocity & 0x7F
        self._open(port_name)

    @staticmethod
    def list_ports() -> list[str]:
        """Return available MIDI output port names."""
        return mido.get_output_names()  # type: ignore[no-any-return]

    @property
    def available(self) -> bool:
        return self._port is not None

    @property
    def port_name(self) -> str | None:
        return self._port_name

    def _open(self, port_name: str) -> None:
        try:
            if not port_name:
                ports = self.list_ports()
                if not ports:
                    log.warning("No MIDI output ports available")
                    return
                port_name = ports[0]
            self._port = mido.open_output(port_name)
            self._port_name = port_name
            log.info("MIDI output opened: %s", port_name)
        except Exception:
            # rtmidi backends raise their own error types (or ImportError)
            self._port = None
            self._port_name = None
            log.warning("Failed to open MIDI output port %r", port_name, exc_info=True)

    def note_on(self, pitch: str) -> None:
        self._send("note_on", pitch, self._velocity)

    def note_off(self, pitch: str) -> None:
        self._send("note_off", pitch, 0)

    def _send(self, msg_type: str, pitch: str, velocity: int) -> None:
        if self._port is None:
            return
        try:
            note = pitch_to_midi(pitch)
        except ValueError:
            log.warning("Cannot send unknown pitch %r", pitch)
            return
        self._port.send(mido.Message(
            msg_type, channel=MIDI_CHANNEL, note=note, velocity=velocity,
        ))

    def close(self) -> None:
        if self._port is not None:
            try:
                self._port.reset()
                self._port.close()
            except Exception:
                log.warning("Error closing MIDI output", exc_info=True)
            self._port = None
            self._port_name = None
            log.info("MIDI output closed")


class Instrument:
    """A playable instrument with idempotent note_on/note_off.

    Listeners are notified with ``played(pitch)``/``stopped(pitch)`` only when
    a pitch's sounding state actually changes. Live input and playback share
    one instrument; no arbitration is done between them.
    """

    def __init__(self, output: NoteOutput | None = None, muted: bool = False) -> None:
        self._output = output
        self._muted = muted
        self._sounding: set[str] = set()
        self._listeners: list[tuple[NoteCallback | None, NoteCallback | None]] = []

    @property
    def sounding(self) -> frozenset[str]:
        return frozenset(self._sounding)

    @property
    def muted(self) -> bool:
        return self._muted

    def set_muted(self, muted: bool) -> None:
        self._muted = muted

    def is_sounding(self, pitch: str) -> bool:
        return pitch in self._sounding

    def add_listener(
        self,
        on_played: NoteCallback | None = None,
        on_stopped: NoteCallback | None = None,
    ) -> None:
        self._listeners.append((on_played, on_stopped))

    def remove_listener(
        self,
        on_played: NoteCallback | None = None,
        on_stopped: NoteCallback | None = None,
    ) -> None:
        try:
            self._listeners.remove((on_played, on_stopped))
        except ValueError:
            pass

    def note_on(self, pitch: str) -> None:
        if self._muted or pitch in self._sounding:
            return
        self._sounding.add(pitch)
        if self._output is not None:
            self._output.note_on(pitch)
        log.debug("note_on %s", pitch)
        self._notify(0, pitch)

    def note_off(self, pitch: str) -> None:
        # Allowed while muted so held notes can still be released
        if pitch not in self._sounding:
            return
        self._sounding.discard(pitch)
        if self._output is not None:
            self._output.note_off(pitch)
        log.debug("note_off %s", pitch)
        self._notify(1, pitch)

    def all_notes_off(self) -> None:
        for pitch in list(self._sounding):
            self.note_off(pitch)

    def _notify(self, index: int, pitch: str) -> None:
        for listener in list(self._listeners):
            callback = listener[index]
            if callback is None:
                continue
            try:
                callback(pitch)
            except Exception:
                log.exception("Error in instrument listener")
