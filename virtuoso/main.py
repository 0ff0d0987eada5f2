"""Entry point: logging, config, and QApplication startup."""

from __future__ import annotations

import logging
import sys

from PyQt6.QtWidgets import QApplication, QMessageBox

from .core.config import get_config
from .core.instrument import Instrument, MidiOutputSink
from .core.playback_scheduler import create_playback_controller
from .core.recording_store import RecordingStore
from .core.session import PianoSession


def main() -> None:
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s [%(name)s] %(levelname)s: %(message)s",
    )

    app = QApplication(sys.argv)
    app.setApplicationName("Virtuoso")
    app.setOrganizationName("Virtuoso")

    config = get_config()
    output = MidiOutputSink(config.get("audio.output_port", ""))
    instrument = Instrument(output, muted=bool(config.get("audio.muted", False)))
    store = RecordingStore(config.database_path())
    controller = create_playback_controller(
        instrument,
        trailing_margin_ms=int(config.get("playback.trailing_margin_ms", 500)),
        silence_on_stop=bool(config.get("playback.silence_on_stop", False)),
    )
    session = PianoSession(instrument, store, controller)

    from .gui.main_window import MainWindow

    window = MainWindow(session, controller, config)
    window.show()

    # Global exception handler
    def exception_hook(exctype, value, tb):
        import traceback
        traceback_str = "".join(traceback.format_exception(exctype, value, tb))
        logging.error("Unhandled exception:\n%s", traceback_str)

        msg = QMessageBox()
        msg.setIcon(QMessageBox.Icon.Critical)
        msg.setWindowTitle("Application Error")
        msg.setText("An unexpected error occurred. The application will close.")
        msg.setInformativeText(str(value))
        msg.setDetailedText(traceback_str)
        msg.exec()

        sys.__excepthook__(exctype, value, tb)
        sys.exit(1)

    sys.excepthook = exception_hook

    exit_code = app.exec()
    output.close()
    store.close()
    sys.exit(exit_code)


if __name__ == "__main__":
    main()
