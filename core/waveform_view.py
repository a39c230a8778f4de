"""WaveformView

UI-independent model of the scrubbable waveform: the peak array, the
normalized playback position, and the geometry that turns both into lines.

The waveform scrolls under a fixed divider in the middle of the surface.
Bars are ``GUTTER`` pixels apart; bar ``i`` sits at
``width/2 - position * len(peaks) * GUTTER + i * GUTTER``, so played content
is left of the divider and upcoming content to its right.

This module does NOT depend on a painter. ``render`` returns plain
``DrawLine`` records that a host (see ``ui.widgets.waveform_widget``) strokes
in order.
"""
import math
from dataclasses import dataclass
from typing import Any, Callable, List, Protocol, Sequence, Tuple

from core.observers import ObserverList

# Horizontal distance between two bars, in pixels
GUTTER = 4
DIVIDER_WIDTH = 2
BAR_WIDTH = 1

# Theme roles
FOREGROUND = "foreground"
DIMMED = "dimmed"
ACCENT = "accent"


class Theme(Protocol):
    """Color provider consumed by ``WaveformView.render``."""

    def get_foreground(self) -> Any:
        ...

    def lookup_color(self, role: str) -> Tuple[bool, Any]:
        ...


@dataclass(frozen=True)
class DrawLine:
    """One stroked line segment."""
    x0: float
    y0: float
    x1: float
    y1: float
    color: Any
    width: float


def _lookup_or_foreground(theme: Theme, role: str) -> Any:
    found, color = theme.lookup_color(role)
    if not found:
        return theme.get_foreground()
    return color


class WaveformView:
    """Holds the displayed peaks and position and renders them.

    Every assignment to ``peaks`` or ``position`` requests a redraw; position
    assignments additionally notify position observers, even when the value
    did not change. Position is not clamped here, writers must keep it in
    [0, 1].
    """

    def __init__(self) -> None:
        self._peaks: Tuple[float, ...] = ()
        self._position: float = 0.0
        self._redraw_observers = ObserverList("redraw observer")
        self._position_observers = ObserverList("position observer")

    # ---------------------- Observable state ----------------------
    @property
    def peaks(self) -> Tuple[float, ...]:
        return self._peaks

    @peaks.setter
    def peaks(self, peaks: Sequence[float]) -> None:
        self._peaks = tuple(float(p) for p in peaks)
        self.request_redraw()

    @property
    def peak_count(self) -> int:
        return len(self._peaks)

    @property
    def position(self) -> float:
        return self._position

    @position.setter
    def position(self, position: float) -> None:
        self._position = float(position)
        self.request_redraw()
        self._position_observers.notify(self._position)

    def on_redraw_requested(self, callback: Callable[[], None]) -> Callable[[], None]:
        return self._redraw_observers.add(callback)

    def on_position_changed(self, callback: Callable[[float], None]) -> Callable[[], None]:
        return self._position_observers.add(callback)

    def request_redraw(self) -> None:
        self._redraw_observers.notify()

    def clear(self) -> None:
        """Drop the displayed peaks (used when the host is torn down)."""
        self.peaks = ()

    # ---------------------- Geometry ----------------------
    def pointer_origin(self, width: float) -> float:
        """X coordinate of the first bar for the current position."""
        return width / 2 - self._position * len(self._peaks) * GUTTER

    def render(self, width: float, height: float, theme: Theme) -> List[DrawLine]:
        """Compute the lines for one paint pass.

        Output depends only on (peaks, position, width, height) and the theme
        colors, so identical inputs give identical lines.
        """
        vertical_center = height / 2
        horizontal_center = width / 2
        pointer = self.pointer_origin(width)

        left_color = theme.get_foreground()
        right_color = _lookup_or_foreground(theme, DIMMED)
        divider_color = _lookup_or_foreground(theme, ACCENT)

        lines = [DrawLine(
            horizontal_center, vertical_center - height,
            horizontal_center, vertical_center + height,
            divider_color, DIVIDER_WIDTH,
        )]

        # Skip the bars that fall off the left edge: the smallest whole
        # number of bars that brings the pointer back to >= 0
        first_visible = 0
        if pointer < 0:
            first_visible = math.ceil(-pointer / GUTTER)
            pointer += first_visible * GUTTER

        for peak in self._peaks[first_visible:]:
            if pointer < 0:
                pointer += GUTTER
                continue

            if pointer > width:
                break

            color = right_color if pointer > horizontal_center else left_color
            lines.append(DrawLine(
                pointer, vertical_center + peak * height,
                pointer, vertical_center - peak * height,
                color, BAR_WIDTH,
            ))

            pointer += GUTTER

        return lines
