"""Recording persistence — SQLite table of titled note logs.

Create and list only. Notes are stored as the JSON wire format
(``[{"note", "time", "duration"}, ...]``).
"""

from __future__ import annotations

import json
import logging
import sqlite3
from collections.abc import Sequence
from dataclasses import dataclass
from pathlib import Path

from .errors import PersistenceError, RetrievalError, ValidationError
from .note_log import NoteEvent, decode_log, encode_log

log = logging.getLogger(__name__)

_DEFAULT_DB = Path.home() / ".virtuoso" / "recordings.db"

_SCHEMA = """
CREATE TABLE IF NOT EXISTS recordings (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    title TEXT NOT NULL,
    notes TEXT NOT NULL
)
"""


@dataclass(frozen=True, slots=True)
class StoredRecording:
    """A saved recording. Never mutated after creation."""

    id: int
    title: str
    notes: tuple[NoteEvent, ...]

    @property
    def note_count(self) -> int:
        return len(self.notes)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "title": self.title,
            "notes": encode_log(self.notes),
        }


class RecordingStore:
    """SQLite-backed store of recordings.

    Args:
        db_path: Database file, or ``":memory:"``. Defaults to
            ~/.virtuoso/recordings.db
    """

    def __init__(self, db_path: str | Path | None = None) -> None:
        if db_path is None:
            db_path = _DEFAULT_DB
        if str(db_path) != ":memory:":
            Path(db_path).parent.mkdir(parents=True, exist_ok=True)
        self._db_path = str(db_path)
        self._conn = sqlite3.connect(self._db_path)
        with self._conn:
            self._conn.execute(_SCHEMA)
        log.info("Recording store opened: %s", self._db_path)

    @property
    def db_path(self) -> str:
        return self._db_path

    def list_recordings(self) -> list[StoredRecording]:
        """Return every stored recording, oldest first."""
        try:
            rows = self._conn.execute(
                "SELECT id, title, notes FROM recordings ORDER BY id"
            ).fetchall()
        except sqlite3.Error as exc:
            raise RetrievalError(f"Failed to fetch recordings: {exc}") from exc

        recordings: list[StoredRecording] = []
        for rec_id, title, raw_notes in rows:
            try:
                notes = decode_log(json.loads(raw_notes))
            except (json.JSONDecodeError, TypeError, ValidationError) as exc:
                raise RetrievalError(f"Recording #{rec_id} is corrupt: {exc}") from exc
            recordings.append(StoredRecording(id=rec_id, title=title, notes=notes))
        return recordings

    def create_recording(
        self, title: str, notes: Sequence[NoteEvent] | Sequence[dict],
    ) -> StoredRecording:
        """Validate and save a recording, returning it with its new id."""
        if not isinstance(title, str) or not title.strip():
            raise ValidationError("Title is required", "title")
        title = title.strip()
        events = decode_log(notes)
        if not events:
            raise ValidationError("Recording has no notes", "notes")

        payload = json.dumps(encode_log(events), separators=(",", ":"))
        try:
            with self._conn:
                cursor = self._conn.execute(
                    "INSERT INTO recordings (title, notes) VALUES (?, ?)",
                    (title, payload),
                )
        except sqlite3.Error as exc:
            raise PersistenceError(f"Failed to save recording: {exc}") from exc

        recording = StoredRecording(id=cursor.lastrowid, title=title, notes=events)
        log.info("Saved recording #%d %r (%d notes)", recording.id, title, len(events))
        return recording

    def close(self) -> None:
        self._conn.close()

    def __enter__(self) -> RecordingStore:
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()
