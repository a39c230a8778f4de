"""Synchronous observer lists.

Models publish state changes (peaks, position, gesture events) through
``ObserverList`` instead of Qt signals so they stay usable without a
QApplication. Callbacks run synchronously, in registration order, on the
thread that triggered the change.
"""
from typing import Callable, List

from utils.error_handler import safe_call


class ObserverList:
    """Ordered list of callbacks with unsubscribe handles."""

    def __init__(self, name: str = "observer") -> None:
        self._name = name
        self._callbacks: List[Callable] = []

    def add(self, callback: Callable) -> Callable[[], None]:
        """Register ``callback`` and return a function that removes it.

        Raises:
            ValueError: if `callback` is not callable.
        """
        if not callable(callback):
            raise ValueError("callback must be callable")
        self._callbacks.append(callback)

        def unsubscribe() -> None:
            try:
                self._callbacks.remove(callback)
            except ValueError:
                pass

        return unsubscribe

    def notify(self, *args) -> None:
        # Iterate over a copy so callbacks may unsubscribe themselves.
        # One failing observer does not prevent the others from running.
        for cb in list(self._callbacks):
            safe_call(cb, *args, operation_name=f"notifying {self._name}")

    def clear(self) -> None:
        self._callbacks.clear()

    def __len__(self) -> int:
        return len(self._callbacks)
