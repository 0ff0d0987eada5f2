"""Keyboard range, MIDI output, and playback timing constants."""

# Semitone offsets within an octave, by natural note name
NOTE_SEMITONES = {"C": 0, "D": 2, "E": 4, "F": 5, "G": 7, "A": 9, "B": 11}

# Which semitones in the octave are "black keys"
BLACK_SEMITONES = {1, 3, 6, 8, 10}

# Keyboard range: C4 to E5
MIDI_NOTE_MIN = 60  # C4
MIDI_NOTE_MAX = 76  # E5

# MIDI output
DEFAULT_VELOCITY = 100
MIDI_CHANNEL = 0

# Playback: completion fires this long after the last note ends, so the
# final release is not cut off in the UI
PLAYBACK_TRAILING_MARGIN_MS = 500
