"""GUI smoke tests — keyboard widget and main window wiring (requires Qt)."""

from __future__ import annotations

import pytest
from PyQt6.QtCore import QPoint, Qt
from PyQt6.QtTest import QTest

from virtuoso.core.config import ConfigManager
from virtuoso.core.instrument import Instrument
from virtuoso.core.note_log import NoteEvent
from virtuoso.core.playback_scheduler import create_playback_controller
from virtuoso.core.recording_store import RecordingStore
from virtuoso.core.session import PianoSession
from virtuoso.gui.main_window import MainWindow
from virtuoso.gui.widgets.piano_keyboard import PianoKeyboard


class TestPianoKeyboard:
    @pytest.fixture
    def keyboard(self, qapp):
        widget = PianoKeyboard()
        widget.resize(17 * 40, 160)
        widget.show()
        yield widget
        widget.close()

    def test_pitch_at(self, keyboard):
        assert keyboard.pitch_at(5, 50) == "C4"
        assert keyboard.pitch_at(17 * 40 - 1, 50) == "E5"
        assert keyboard.pitch_at(-1, 50) is None
        assert keyboard.pitch_at(5, 500) is None

    def test_click_emits_press_and_release(self, keyboard):
        pressed, released = [], []
        keyboard.note_pressed.connect(pressed.append)
        keyboard.note_released.connect(released.append)
        pos = QPoint(45, 50)  # second key
        QTest.mousePress(keyboard, Qt.MouseButton.LeftButton, pos=pos)
        QTest.mouseRelease(keyboard, Qt.MouseButton.LeftButton, pos=pos)
        assert pressed == ["C#4"]
        assert released == ["C#4"]

    def test_sounding_state(self, keyboard):
        keyboard.note_on("C4")
        keyboard.note_off("C4")
        keyboard.grab()  # paints without raising


class TestMainWindow:
    @pytest.fixture
    def make_window(self, qapp, tmp_path):
        created = []

        def _make(*titles):
            config = ConfigManager(config_dir=tmp_path / "cfg")
            instrument = Instrument()
            store = RecordingStore(":memory:")
            for title in titles:
                store.create_recording(title, [NoteEvent("C4", 0, 100)])
            controller = create_playback_controller(instrument, trailing_margin_ms=0)
            session = PianoSession(instrument, store, controller)
            win = MainWindow(session, controller, config)
            created.append((win, store))
            return win

        yield _make
        for win, store in created:
            win.close()
            store.close()

    @pytest.fixture
    def window(self, make_window):
        return make_window("Existing")

    def test_lists_existing_recordings(self, window):
        assert window._list.count() == 1
        assert "Existing" in window._list.item(0).text()
        assert window._play_btn.isEnabled()

    def test_empty_library_placeholder(self, make_window):
        window = make_window()
        assert window._list.count() == 1
        assert "No recordings yet" in window._list.item(0).text()
        assert not window._play_btn.isEnabled()
        window._list.setCurrentRow(0)
        window._play_btn.click()
        assert not window._session.is_playing

    def test_shortcut_keys_drive_instrument(self, window):
        instrument = window._session.instrument
        QTest.keyPress(window, Qt.Key.Key_Z)
        assert instrument.is_sounding("C4")
        QTest.keyRelease(window, Qt.Key.Key_Z)
        assert not instrument.is_sounding("C4")

    def test_record_button_toggles(self, window):
        window._record_btn.click()
        assert window._session.is_recording
        assert window._record_btn.text() == "Stop Recording"
        window._record_btn.click()  # nothing played: no save prompt
        assert not window._session.is_recording
        assert window._record_btn.text() == "Start Recording"

    def test_discard_clears_pending(self, window):
        session = window._session
        assert not window._discard_btn.isEnabled()
        session.start_recording()
        session.instrument.note_on("D4")
        session.instrument.note_off("D4")
        session.stop_recording()
        window._update_controls()
        assert window._discard_btn.isEnabled()
        window._discard_btn.click()
        assert session.pending_log == ()
        assert not window._discard_btn.isEnabled()
        assert not window._save_btn.isEnabled()

    def test_play_selected(self, window):
        window._list.setCurrentRow(0)
        window._play_btn.click()
        assert window._session.is_playing
        window._stop_btn.click()
        assert not window._session.is_playing

    def test_replay_other_recording_updates_status(self, make_window):
        window = make_window("First", "Second")
        first, second = window._recordings
        window._list.setCurrentRow(0)
        window._play_btn.click()
        assert window._status.text() == f"Playing recording #{first.id}"
        window._list.setCurrentRow(1)
        window._play_btn.click()
        assert window._session.is_playing
        assert window._status.text() == f"Playing recording #{second.id}"
        window._stop_btn.click()
        assert window._status.text() == ""
