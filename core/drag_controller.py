"""Drag-to-scrub state machine for the waveform.

A press moves it from Idle to Dragging. While dragging, the view position
follows the pointer offset since the press, clamped to [0, 1], and the
release reports the final position to position observers.
The widget only forwards pointer x offsets.
"""
from enum import Enum, auto
from typing import Callable, Optional

from core.observers import ObserverList
from core.waveform_view import GUTTER, WaveformView
from utils.logger import get_logger

logger = get_logger(__name__)


class DragState(Enum):
    IDLE = auto()
    DRAGGING = auto()


class DragController:
    """Turns a horizontal drag on the waveform into position updates.

    Offsets are measured from where the drag started. The waveform moves
    with the pointer, so dragging right scrubs back towards earlier content:
    ``position = start - offset_x / (peak_count * GUTTER)``, clamped to [0, 1].
    The controller keeps no peaks or position of its own; it reads and writes
    the view's.
    """

    def __init__(self, view: WaveformView) -> None:
        self._view = view
        self._state = DragState.IDLE
        self._start_position: Optional[float] = None
        self._pressed_observers = ObserverList("gesture-pressed observer")
        self._released_observers = ObserverList("position-changed observer")

    @property
    def state(self) -> DragState:
        return self._state

    @property
    def is_dragging(self) -> bool:
        return self._state is DragState.DRAGGING

    def on_gesture_pressed(self, callback: Callable[[], None]) -> Callable[[], None]:
        return self._pressed_observers.add(callback)

    def on_position_changed(self, callback: Callable[[float], None]) -> Callable[[], None]:
        """Register a callback receiving the final position when a drag ends."""
        return self._released_observers.add(callback)

    def begin(self, claim: Optional[Callable[[], None]] = None) -> None:
        """Start a drag session at the current position.

        ``claim`` is called to take exclusive ownership of the gesture. A begin
        while already dragging replaces the previous session.
        """
        if self._state is DragState.DRAGGING:
            logger.debug("Drag began while another was active; restarting session")
        self._start_position = self._view.position
        self._state = DragState.DRAGGING
        if claim is not None:
            claim()
        self._pressed_observers.notify()

    def update(self, offset_x: float) -> None:
        if self._state is not DragState.DRAGGING:
            return
        span = self._view.peak_count * GUTTER
        if span == 0:
            return

        after = self._start_position - offset_x / span
        self._view.position = max(min(after, 1.0), 0.0)

    def end(self) -> None:
        if self._state is not DragState.DRAGGING:
            return
        self._state = DragState.IDLE
        self._start_position = None
        self._released_observers.notify(self._view.position)
