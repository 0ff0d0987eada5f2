"""17-key layout table: pitch ↔ computer keyboard shortcut, and pitch name parsing."""

from __future__ import annotations

import re
from dataclasses import dataclass

from .constants import BLACK_SEMITONES, NOTE_SEMITONES

_PITCH_RE = re.compile(r"^([A-Ga-g])([#b]?)(-?\d)$")


def pitch_to_midi(name: str) -> int:
    """Convert a pitch name such as ``C#4`` or ``Db4`` to a MIDI note number.

    Uses the C4 = 60 convention. Raises ValueError for malformed names.
    """
    m = _PITCH_RE.match(name.strip())
    if m is None:
        raise ValueError(f"Invalid pitch name: {name!r}")
    letter, accidental, octave = m.groups()
    semitone = NOTE_SEMITONES[letter.upper()]
    if accidental == "#":
        semitone += 1
    elif accidental == "b":
        semitone -= 1
    midi = (int(octave) + 1) * 12 + semitone
    if not 0 <= midi <= 127:
        raise ValueError(f"Pitch out of MIDI range: {name!r}")
    return midi


@dataclass(frozen=True, slots=True)
class KeyBinding:
    """One piano key: pitch name, colour, and computer keyboard shortcut."""

    pitch: str
    key: str      # lower-case shortcut character
    is_black: bool


def _kb(pitch: str, key: str) -> KeyBinding:
    """Helper to build a KeyBinding, deriving the key colour from the pitch."""
    return KeyBinding(
        pitch=pitch,
        key=key,
        is_black=pitch_to_midi(pitch) % 12 in BLACK_SEMITONES,
    )


# C4 to E5, bottom keyboard row plus the home row for sharps
KEY_BINDINGS: tuple[KeyBinding, ...] = (
    _kb("C4", "z"),
    _kb("C#4", "s"),
    _kb("D4", "x"),
    _kb("D#4", "d"),
    _kb("E4", "c"),
    _kb("F4", "v"),
    _kb("F#4", "g"),
    _kb("G4", "b"),
    _kb("G#4", "h"),
    _kb("A4", "n"),
    _kb("A#4", "j"),
    _kb("B4", "m"),
    _kb("C5", ","),
    _kb("C#5", "l"),
    _kb("D5", "."),
    _kb("D#5", ";"),
    _kb("E5", "/"),
)


class KeyboardLayout:
    """Lookup between shortcut characters, pitches and key bindings."""

    def __init__(self, bindings: tuple[KeyBinding, ...] = KEY_BINDINGS) -> None:
        self._bindings = bindings
        self._by_key = {b.key: b for b in bindings}

    @property
    def bindings(self) -> tuple[KeyBinding, ...]:
        return self._bindings

    def pitch_for_key(self, char: str) -> str | None:
        """Pitch bound to a shortcut character (case-insensitive), or None."""
        binding = self._by_key.get(char.lower())
        return binding.pitch if binding is not None else None

    def __len__(self) -> int:
        return len(self._bindings)
