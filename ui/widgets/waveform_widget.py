"""
scrubwave - Waveform Widget

This program is free software: you can redistribute it and/or modify
it under the terms of the GNU General Public License as published by
the Free Software Foundation, either version 3 of the License, or
(at your option) any later version.

This program is distributed in the hope that it will be useful,
but WITHOUT ANY WARRANTY; without even the implied warranty of
MERCHANTABILITY or FITNESS FOR A PARTICULAR PURPOSE.  See the
GNU General Public License for more details.

You should have received a copy of the GNU General Public License
along with this program.  If not, see <https://www.gnu.org/licenses/>.
"""

# Scrubbable waveform: bars scroll under a fixed center divider

from typing import Optional, Sequence

from PySide6.QtCore import QPointF, Qt, Signal
from PySide6.QtGui import QCloseEvent, QMouseEvent, QPainter, QPen
from PySide6.QtWidgets import QWidget

from core.drag_controller import DragController
from core.waveform_view import WaveformView
from ui.style_manager import StyleManager
from utils.error_handler import safe_operation
from utils.logger import get_logger

logger = get_logger(__name__)


class WaveformWidget(QWidget):
    """Qt host for ``WaveformView`` and ``DragController``.

    Paints the lines produced by the view and turns left-button drags into
    drag controller calls. Redraw requests from the view map to ``update()``,
    which Qt coalesces.
    """

    # Final position when a drag is released
    position_changed = Signal(float)
    # A drag just started
    gesture_pressed = Signal()

    def __init__(self, parent=None, view: Optional[WaveformView] = None, theme=StyleManager):
        super().__init__(parent)
        self.setObjectName("waveform_widget")

        self.view = view if view is not None else WaveformView()
        self.drag = DragController(self.view)
        self._theme = theme
        self._press_x: Optional[float] = None

        self._unsubscribers = [
            self.view.on_redraw_requested(self.update),
            self.drag.on_gesture_pressed(self.gesture_pressed.emit),
            self.drag.on_position_changed(self.position_changed.emit),
        ]
        # Themes without a notifier never change at runtime
        make_notifier = getattr(theme, "notifier", None)
        self._theme_notifier = make_notifier() if make_notifier is not None else None
        if self._theme_notifier is not None:
            self._theme_notifier.theme_changed.connect(self.update)
        self._torn_down = False

        self.setMinimumHeight(60)

    # ---------------------- Properties ----------------------
    @property
    def peaks(self):
        return self.view.peaks

    @peaks.setter
    def peaks(self, peaks: Sequence[float]) -> None:
        self.view.peaks = peaks

    @property
    def position(self) -> float:
        return self.view.position

    @position.setter
    def position(self, position: float) -> None:
        self.view.position = position

    def set_peaks(self, peaks: Sequence[float]) -> None:
        """Slot-style setter, handy as a ``PeakAggregator.on_peaks_changed`` callback."""
        self.view.peaks = peaks

    # ---------------------- Painting ----------------------
    def paintEvent(self, event):
        painter = QPainter(self)
        try:
            painter.setRenderHint(QPainter.Antialiasing)
            for line in self.view.render(self.width(), self.height(), self._theme):
                pen = QPen(line.color, line.width)
                pen.setCapStyle(Qt.RoundCap)
                painter.setPen(pen)
                painter.drawLine(QPointF(line.x0, line.y0), QPointF(line.x1, line.y1))
        finally:
            painter.end()

    # ---------------------- Drag gesture ----------------------
    def mousePressEvent(self, event: QMouseEvent) -> None:
        if event.button() == Qt.LeftButton:
            self._press_x = event.position().x()
            # Accepting the press makes this widget the mouse grabber
            self.drag.begin(claim=event.accept)
            self.setCursor(Qt.ClosedHandCursor)
            return
        super().mousePressEvent(event)

    def mouseMoveEvent(self, event: QMouseEvent) -> None:
        if not self.drag.is_dragging or self._press_x is None:
            super().mouseMoveEvent(event)
            return
        self.drag.update(event.position().x() - self._press_x)

    def mouseReleaseEvent(self, event: QMouseEvent) -> None:
        if event.button() == Qt.LeftButton:
            self._press_x = None
            self.setCursor(Qt.ArrowCursor)
            self.drag.end()
            return
        super().mouseReleaseEvent(event)

    # ---------------------- Teardown ----------------------
    def teardown(self) -> None:
        """Disconnect from the theme and clear the displayed peaks. Idempotent."""
        if self._torn_down:
            return
        self._torn_down = True
        if self._theme_notifier is not None:
            with safe_operation("Disconnecting theme notifier", silent=True, log_level="debug"):
                self._theme_notifier.theme_changed.disconnect(self.update)
            self._theme_notifier = None
        for unsubscribe in self._unsubscribers:
            unsubscribe()
        self._unsubscribers = []
        self.view.clear()
        self.update()

    def closeEvent(self, event: QCloseEvent) -> None:
        self.teardown()
        super().closeEvent(event)
