"""Minimal observer signal used for credential notifications."""

import threading
from typing import Callable


class Signal:
    """Zero-argument notification with any number of observers.

    Observers are called in connection order on the emitting thread.
    """

    def __init__(self, name: str):
        self.name = name
        self._observers: list[Callable[[], None]] = []
        self._lock = threading.Lock()

    def connect(self, observer: Callable[[], None]) -> None:
        """Register an observer."""
        with self._lock:
            self._observers.append(observer)

    def disconnect(self, observer: Callable[[], None]) -> None:
        """Remove an observer; unknown observers are ignored."""
        with self._lock:
            if observer in self._observers:
                self._observers.remove(observer)

    def emit(self) -> None:
        """Notify every connected observer."""
        with self._lock:
            observers = list(self._observers)
        for observer in observers:
            observer()

    def __len__(self) -> int:
        return len(self._observers)
