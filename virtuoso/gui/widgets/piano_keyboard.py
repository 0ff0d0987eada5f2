"""Interactive 17-key piano widget — click to play, lights up sounding notes.

Emits press/release signals only; sound and recording are handled by the
Instrument the owner connects these signals to.
"""

from __future__ import annotations

from PyQt6.QtCore import QRectF, Qt, pyqtSignal
from PyQt6.QtGui import QBrush, QColor, QFont, QLinearGradient, QPainter, QPainterPath, QPen
from PyQt6.QtWidgets import QWidget

from ...core.keyboard_layout import KeyboardLayout

_COLOR_NATURAL = QColor(0xF4, 0xEF, 0xE6)
_COLOR_SHARP = QColor(0x1C, 0x16, 0x12)
_COLOR_ACTIVE = QColor(0xD4, 0xA8, 0x53)
_COLOR_BORDER = QColor(0x5A, 0x48, 0x3A)
_COLOR_TEXT_NATURAL = QColor(0x6A, 0x60, 0x58)
_COLOR_TEXT_SHARP = QColor(0xB0, 0xA8, 0xA0)


class PianoKeyboard(QWidget):
    """Clickable keyboard laid out as equal-width keys, one per binding."""

    note_pressed = pyqtSignal(str)   # pitch (mouse down)
    note_released = pyqtSignal(str)  # pitch (mouse up or pointer left the key)

    def __init__(self, layout: KeyboardLayout | None = None, parent: QWidget | None = None) -> None:
        super().__init__(parent)
        self._layout = layout if layout is not None else KeyboardLayout()
        self._pressed_pitch: str | None = None
        self._sounding: set[str] = set()
        self.setFixedHeight(160)
        self.setMinimumWidth(17 * 36)
        self.setMouseTracking(True)
        self.setCursor(Qt.CursorShape.PointingHandCursor)

    @property
    def keyboard_layout(self) -> KeyboardLayout:
        return self._layout

    def note_on(self, pitch: str) -> None:
        self._sounding.add(pitch)
        self.update()

    def note_off(self, pitch: str) -> None:
        self._sounding.discard(pitch)
        self.update()

    def pitch_at(self, x: float, y: float) -> str | None:
        """Hit-test: return the pitch at a pixel position, or None."""
        w = self.width()
        h = self.height()
        if x < 0 or x >= w or y < 0 or y >= h or not len(self._layout):
            return None
        n_keys = len(self._layout)
        index = min(int(x / (w / n_keys)), n_keys - 1)
        return self._layout.bindings[index].pitch

    def _release_pressed(self) -> None:
        if self._pressed_pitch is not None:
            pitch, self._pressed_pitch = self._pressed_pitch, None
            self.note_released.emit(pitch)
            self.update()

    def mousePressEvent(self, event) -> None:  # noqa: N802
        if event.button() == Qt.MouseButton.LeftButton:
            pitch = self.pitch_at(event.position().x(), event.position().y())
            if pitch is not None:
                self._pressed_pitch = pitch
                self.note_pressed.emit(pitch)
                self.update()
        super().mousePressEvent(event)

    def mouseReleaseEvent(self, event) -> None:  # noqa: N802
        if event.button() == Qt.MouseButton.LeftButton:
            self._release_pressed()
        super().mouseReleaseEvent(event)

    def mouseMoveEvent(self, event) -> None:  # noqa: N802
        if self._pressed_pitch is not None:
            pitch = self.pitch_at(event.position().x(), event.position().y())
            if pitch != self._pressed_pitch:
                self._release_pressed()
        super().mouseMoveEvent(event)

    def leaveEvent(self, event) -> None:  # noqa: N802
        self._release_pressed()
        super().leaveEvent(event)

    def paintEvent(self, event) -> None:  # noqa: N802
        painter = QPainter(self)
        painter.setRenderHint(QPainter.RenderHint.Antialiasing)

        w = self.width()
        h = self.height()
        n_keys = max(1, len(self._layout))
        key_w = w / n_keys
        font = QFont("Sans Serif", max(7, int(min(key_w / 4.0, h / 12.0))))
        painter.setFont(font)

        for i, binding in enumerate(self._layout.bindings):
            x = i * key_w
            kw = key_w - 1
            kh = h - 1
            lit = binding.pitch in self._sounding or binding.pitch == self._pressed_pitch

            key_rect = QRectF(x, 0, kw, kh)
            path = QPainterPath()
            path.addRoundedRect(key_rect, 4, 4)

            if lit:
                painter.fillPath(path, QBrush(_COLOR_ACTIVE))
            elif binding.is_black:
                painter.fillPath(path, QBrush(_COLOR_SHARP))
            else:
                grad = QLinearGradient(x, 0, x, kh)
                grad.setColorAt(0, QColor(0xFF, 0xFF, 0xFF))
                grad.setColorAt(1, _COLOR_NATURAL)
                painter.fillPath(path, grad)

            painter.setPen(QPen(_COLOR_BORDER, 0.8))
            painter.drawPath(path)

            painter.setPen(_COLOR_TEXT_SHARP if binding.is_black and not lit else _COLOR_TEXT_NATURAL)
            painter.drawText(
                int(x), int(kh * 0.55), int(kw), int(kh * 0.2),
                Qt.AlignmentFlag.AlignCenter, binding.pitch,
            )
            painter.drawText(
                int(x), int(kh * 0.75), int(kw), int(kh * 0.2),
                Qt.AlignmentFlag.AlignCenter, binding.key.upper(),
            )

        painter.end()
