"""Leading + trailing throttle driven by a Qt single-shot timer.

    throttled = Throttle(publish, 100)
    throttled(a)   # runs publish(a) now and opens a 100 ms window
    throttled(b)   # inside the window: remembered
    throttled(c)   # inside the window: replaces b
    # window closes -> publish(c), and a new window opens

While calls keep arriving the wrapped function runs at most once per window.
A window that closes with nothing pending ends the busy period; the next
call is leading again.
"""
from typing import Callable, Optional

from PySide6.QtCore import QObject, QTimer

from utils.logger import get_logger

logger = get_logger(__name__)


class Throttle(QObject):
    """Rate-limit ``func`` to one call per ``wait_ms`` window.

    Args:
        func: callable to throttle
        wait_ms: window length in milliseconds
        leading: invoke immediately on the first call of a busy period
        trailing: invoke once more at the end of the window with the latest
            arguments if calls arrived inside it

    Requires a Qt application instance; the trailing call runs from the
    event loop of the thread that owns the throttle.
    """

    def __init__(self, func: Callable, wait_ms: int, leading: bool = True,
                 trailing: bool = True, parent: Optional[QObject] = None):
        super().__init__(parent)
        if wait_ms < 0:
            raise ValueError("wait_ms must be non-negative")
        self._func = func
        self._wait_ms = int(wait_ms)
        self._leading = leading
        self._trailing = trailing
        self._pending = None  # (args, kwargs) of the latest call inside the window

        self._timer = QTimer(self)
        self._timer.setSingleShot(True)
        self._timer.setInterval(self._wait_ms)
        self._timer.timeout.connect(self._on_window_closed)

    @property
    def wait_ms(self) -> int:
        return self._wait_ms

    def is_active(self) -> bool:
        """True while a throttle window is open."""
        return self._timer.isActive()

    def has_pending(self) -> bool:
        return self._pending is not None

    def __call__(self, *args, **kwargs) -> None:
        if self._timer.isActive():
            if self._trailing:
                self._pending = (args, kwargs)
            return

        if self._leading:
            self._func(*args, **kwargs)
        elif self._trailing:
            self._pending = (args, kwargs)
        self._timer.start()

    def _on_window_closed(self) -> None:
        if self._pending is None:
            return
        args, kwargs = self._pending
        self._pending = None
        # The trailing call opens a new window so bursts stay rate limited
        self._timer.start()
        self._func(*args, **kwargs)

    def flush(self) -> None:
        """Run a pending trailing call now and close the window."""
        self._timer.stop()
        if self._pending is not None:
            args, kwargs = self._pending
            self._pending = None
            self._func(*args, **kwargs)

    def cancel(self) -> None:
        """Drop any pending trailing call and close the window."""
        if self._pending is not None:
            logger.debug("Dropping pending throttled call")
        self._timer.stop()
        self._pending = None
