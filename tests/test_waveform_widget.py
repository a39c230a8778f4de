import warnings

import pytest
from unittest.mock import Mock
from PySide6.QtCore import QEvent, QPointF, Qt
from PySide6.QtGui import QMouseEvent

from core.drag_controller import DragState
from ui.style_manager import StyleManager
from ui.widgets.waveform_widget import WaveformWidget


def mouse_event(kind, x, button=Qt.LeftButton):
    buttons = Qt.NoButton if kind == QEvent.MouseButtonRelease else button
    pos = QPointF(x, 10)
    return QMouseEvent(kind, pos, pos, button, buttons, Qt.NoModifier)


@pytest.fixture
def widget(qapp):
    w = WaveformWidget()
    w.resize(200, 60)
    w.peaks = [0.5] * 10
    yield w
    w.teardown()


def test_drag_updates_position_and_emits(widget):
    pressed = Mock()
    released = Mock()
    widget.gesture_pressed.connect(pressed)
    widget.position_changed.connect(released)
    widget.position = 0.5

    widget.mousePressEvent(mouse_event(QEvent.MouseButtonPress, 100))
    assert widget.drag.state is DragState.DRAGGING
    pressed.assert_called_once_with()

    widget.mouseMoveEvent(mouse_event(QEvent.MouseMove, 120))
    assert widget.position == pytest.approx(0.0)

    widget.mouseMoveEvent(mouse_event(QEvent.MouseMove, 92))
    assert widget.position == pytest.approx(0.7)

    widget.mouseReleaseEvent(mouse_event(QEvent.MouseButtonRelease, 92))
    assert widget.drag.state is DragState.IDLE
    released.assert_called_once()
    assert released.call_args[0][0] == pytest.approx(0.7)


def test_press_event_is_accepted(widget):
    event = mouse_event(QEvent.MouseButtonPress, 50)
    event.ignore()
    widget.mousePressEvent(event)
    assert event.isAccepted()


def test_right_button_does_not_start_drag(widget):
    widget.mousePressEvent(mouse_event(QEvent.MouseButtonPress, 50, Qt.RightButton))
    assert widget.drag.state is DragState.IDLE


def test_release_without_press_emits_nothing(widget):
    released = Mock()
    widget.position_changed.connect(released)
    widget.mouseReleaseEvent(mouse_event(QEvent.MouseButtonRelease, 50))
    released.assert_not_called()


def test_set_peaks_replaces_view_peaks(widget):
    widget.set_peaks((0.1, 0.2, 0.3))
    assert widget.view.peaks == (0.1, 0.2, 0.3)


def test_paint_smoke(widget):
    widget.position = 0.3
    pixmap = widget.grab()
    assert not pixmap.isNull()


def test_high_contrast_toggle_paints(widget):
    StyleManager.set_high_contrast(True)
    try:
        assert not widget.grab().isNull()
    finally:
        StyleManager.set_high_contrast(False)


def test_teardown_clears_peaks(widget):
    widget.teardown()
    assert widget.peaks == ()


def test_second_teardown_is_noop(widget):
    widget.teardown()
    with warnings.catch_warnings():
        warnings.simplefilter("error")
        widget.teardown()
    assert widget.peaks == ()


class RecordingSignal:
    def __init__(self):
        self.slots = []

    def connect(self, fn):
        self.slots.append(fn)

    def disconnect(self, fn):
        self.slots.remove(fn)


class PlainTheme:
    """Minimal theme: fixed colors, optionally with its own change notifier."""

    def __init__(self, notifier=None):
        self._notifier = notifier

    def get_foreground(self):
        return StyleManager.get_foreground()

    def lookup_color(self, role):
        return False, None


class NotifyingTheme(PlainTheme):
    def notifier(self):
        return self._notifier


def test_theme_without_notifier_paints_and_tears_down(qapp):
    w = WaveformWidget(theme=PlainTheme())
    w.resize(100, 40)
    w.peaks = [0.5, 0.5]

    assert not w.grab().isNull()
    w.teardown()
    assert w.peaks == ()


def test_widget_subscribes_to_its_own_theme_notifier(qapp):
    notifier = Mock()
    notifier.theme_changed = RecordingSignal()
    w = WaveformWidget(theme=NotifyingTheme(notifier))

    assert len(notifier.theme_changed.slots) == 1
    w.teardown()
    w.teardown()
    assert notifier.theme_changed.slots == []
