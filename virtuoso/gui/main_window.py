"""Main window — keyboard, recording controls and the saved recordings list."""

from __future__ import annotations

import logging

from PyQt6.QtCore import QByteArray, Qt
from PyQt6.QtGui import QFont
from PyQt6.QtWidgets import (
    QCheckBox,
    QHBoxLayout,
    QInputDialog,
    QLabel,
    QListWidget,
    QListWidgetItem,
    QMainWindow,
    QMessageBox,
    QPushButton,
    QVBoxLayout,
    QWidget,
)

from ..core.config import ConfigManager
from ..core.errors import PersistenceError, RetrievalError, ValidationError
from ..core.recording_store import StoredRecording
from ..core.session import PianoSession
from .widgets.piano_keyboard import PianoKeyboard

log = logging.getLogger(__name__)


class MainWindow(QMainWindow):
    """Single-window piano: play, record, save and replay melodies."""

    def __init__(self, session: PianoSession, controller, config: ConfigManager,
                 parent: QWidget | None = None) -> None:
        super().__init__(parent)
        self._session = session
        self._controller = controller
        self._config = config
        self._recordings: list[StoredRecording] = []

        self.setWindowTitle("Virtuoso")
        self._build_ui()

        instrument = session.instrument
        instrument.add_listener(self._keyboard.note_on, self._keyboard.note_off)
        self._keyboard.note_pressed.connect(instrument.note_on)
        self._keyboard.note_released.connect(instrument.note_off)
        controller.playing_changed.connect(self._on_playing_changed)

        self._restore_geometry()
        self._refresh_recordings()
        self._update_controls()

    def _build_ui(self) -> None:
        central = QWidget()
        root = QVBoxLayout(central)
        root.setContentsMargins(24, 20, 24, 20)
        root.setSpacing(16)

        title = QLabel("Virtuoso")
        title.setFont(QFont("Serif", 24, QFont.Weight.Bold))
        title.setAlignment(Qt.AlignmentFlag.AlignHCenter)
        root.addWidget(title)

        self._keyboard = PianoKeyboard()
        root.addWidget(self._keyboard)

        controls = QHBoxLayout()
        self._record_btn = QPushButton("Start Recording")
        self._record_btn.clicked.connect(self._on_record_clicked)
        controls.addWidget(self._record_btn)

        self._save_btn = QPushButton("Save…")
        self._save_btn.clicked.connect(self._prompt_save)
        controls.addWidget(self._save_btn)

        self._discard_btn = QPushButton("Discard")
        self._discard_btn.clicked.connect(self._on_discard_clicked)
        controls.addWidget(self._discard_btn)

        self._mute_box = QCheckBox("Mute")
        self._mute_box.setChecked(self._session.instrument.muted)
        self._mute_box.toggled.connect(self._on_mute_toggled)
        controls.addWidget(self._mute_box)

        controls.addStretch()
        self._status = QLabel("")
        controls.addWidget(self._status)
        root.addLayout(controls)

        list_header = QHBoxLayout()
        list_header.addWidget(QLabel("Recordings"))
        list_header.addStretch()
        self._play_btn = QPushButton("Play")
        self._play_btn.clicked.connect(self._on_play_clicked)
        list_header.addWidget(self._play_btn)
        self._stop_btn = QPushButton("Stop")
        self._stop_btn.clicked.connect(self._on_stop_clicked)
        list_header.addWidget(self._stop_btn)
        root.addLayout(list_header)

        self._list = QListWidget()
        self._list.itemDoubleClicked.connect(lambda _item: self._on_play_clicked())
        root.addWidget(self._list, 1)

        self.setCentralWidget(central)
        # Keyboard shortcuts go to the window, not the list or buttons
        self.setFocusPolicy(Qt.FocusPolicy.StrongFocus)
        for w in (self._record_btn, self._save_btn, self._discard_btn, self._mute_box,
                  self._play_btn, self._stop_btn, self._list, self._keyboard):
            w.setFocusPolicy(Qt.FocusPolicy.NoFocus)

    # ── Keyboard input ──────────────────────────────────

    def keyPressEvent(self, event) -> None:  # noqa: N802
        pitch = self._keyboard.keyboard_layout.pitch_for_key(event.text()) if event.text() else None
        if pitch is None:
            super().keyPressEvent(event)
            return
        if not event.isAutoRepeat():
            self._session.instrument.note_on(pitch)

    def keyReleaseEvent(self, event) -> None:  # noqa: N802
        pitch = self._keyboard.keyboard_layout.pitch_for_key(event.text()) if event.text() else None
        if pitch is None:
            super().keyReleaseEvent(event)
            return
        if not event.isAutoRepeat():
            self._session.instrument.note_off(pitch)

    # ── Recording ───────────────────────────────────────

    def _on_record_clicked(self) -> None:
        if not self._session.is_recording:
            self._session.start_recording()
            self._status.setText("Recording… play your melody")
        else:
            events = self._session.stop_recording()
            if events:
                self._status.setText(f"Recorded {len(events)} notes")
                self._prompt_save()
            else:
                self._status.setText("Empty recording: you didn't play any notes")
        self._update_controls()

    def _prompt_save(self) -> None:
        if not self._session.pending_log:
            return
        title, ok = QInputDialog.getText(self, "Save Recording", "Title:")
        if not ok:
            return
        try:
            recording = self._session.save_recording(title)
        except ValidationError as e:
            QMessageBox.warning(self, "Cannot Save", e.message)
        except PersistenceError as e:
            log.warning("Save failed: %s", e)
            QMessageBox.critical(self, "Error", "Failed to save recording.")
        else:
            self._status.setText(f"Saved “{recording.title}”")
            self._refresh_recordings()
        self._update_controls()

    def _on_discard_clicked(self) -> None:
        self._session.discard_recording()
        self._status.setText("Recording discarded")
        self._update_controls()

    def _on_mute_toggled(self, muted: bool) -> None:
        self._session.instrument.set_muted(muted)
        self._config.set("audio.muted", muted)

    # ── Recordings list / playback ──────────────────────

    def _refresh_recordings(self) -> None:
        try:
            self._recordings = self._session.list_recordings()
        except RetrievalError as e:
            log.warning("Listing recordings failed: %s", e)
            QMessageBox.warning(self, "Error", "Failed to fetch recordings.")
            return
        self._list.clear()
        if not self._recordings:
            placeholder = QListWidgetItem("No recordings yet. Record a melody to see it here.")
            placeholder.setFlags(Qt.ItemFlag.NoItemFlags)
            self._list.addItem(placeholder)
        for rec in self._recordings:
            item = QListWidgetItem(f"{rec.title}  —  {rec.note_count} notes • #{rec.id}")
            item.setData(Qt.ItemDataRole.UserRole, rec.id)
            self._list.addItem(item)
        self._update_controls()

    def _selected_recording(self) -> StoredRecording | None:
        row = self._list.currentRow()
        if 0 <= row < len(self._recordings):
            return self._recordings[row]
        return None

    def _on_play_clicked(self) -> None:
        recording = self._selected_recording()
        if recording is not None:
            self._session.play_recording(recording)
            # Replacing a running replay emits no playing_changed
            self._show_playback_status()
            self._update_controls()

    def _on_stop_clicked(self) -> None:
        self._session.stop_playback()
        self._update_controls()

    def _on_playing_changed(self, playing: bool) -> None:
        self._show_playback_status()
        self._update_controls()

    def _show_playback_status(self) -> None:
        playing_id = self._session.playing_id
        self._status.setText(f"Playing recording #{playing_id}" if playing_id is not None else "")

    def _update_controls(self) -> None:
        recording = self._session.is_recording
        has_pending = not recording and bool(self._session.pending_log)
        self._record_btn.setText("Stop Recording" if recording else "Start Recording")
        self._save_btn.setEnabled(has_pending)
        self._discard_btn.setEnabled(has_pending)
        self._play_btn.setEnabled(bool(self._recordings))
        self._stop_btn.setEnabled(self._session.is_playing)

    # ── Window state ────────────────────────────────────

    def _restore_geometry(self) -> None:
        geometry = self._config.get("window.geometry")
        if geometry:
            self.restoreGeometry(QByteArray.fromBase64(geometry.encode("ascii")))

    def closeEvent(self, event) -> None:  # noqa: N802
        self._controller.cleanup()
        self._session.instrument.all_notes_off()
        self._config.set("window.geometry", bytes(self.saveGeometry().toBase64()).decode("ascii"))
        super().closeEvent(event)
