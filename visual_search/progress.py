"""Observable list of named pipeline steps.

Observers get a bare "changed" notification and re-read ``Progress.steps``.
A step is owned by whoever created it; ``reset()`` detaches every step so
calls on stale handles become no-ops.
"""

from __future__ import annotations

import itertools
import logging
import threading
from typing import Callable, List, Optional

logger = logging.getLogger(__name__)

Observer = Callable[[], None]


class ProgressStep:
    """Handle to one step of a Progress tracker."""

    _ids = itertools.count()

    def __init__(self, message: str, progress: "Progress"):
        self.id: int = next(ProgressStep._ids)
        self._message = message
        self._is_complete = False
        self._progress: Optional[Progress] = progress

    @property
    def message(self) -> str:
        return self._message

    @property
    def is_complete(self) -> bool:
        return self._is_complete

    @property
    def is_attached(self) -> bool:
        return self._progress is not None

    def complete(self) -> None:
        progress = self._progress
        if progress is None:
            return
        with progress._lock:
            if self._progress is None:
                return
            self._is_complete = True
        progress.emit()

    def set_message(self, message: str) -> None:
        progress = self._progress
        if progress is None:
            return
        with progress._lock:
            if self._progress is None:
                return
            self._message = message
        progress.emit()

    def dispose(self) -> None:
        self._progress = None

    def to_dict(self) -> dict:
        return {"id": self.id, "message": self._message, "isComplete": self._is_complete}

    def __repr__(self) -> str:
        mark = "x" if self._is_complete else " "
        return f"ProgressStep({self.id}, [{mark}] {self._message!r})"


class Progress:
    """Ordered, observable sequence of ProgressSteps."""

    def __init__(self):
        self._lock = threading.Lock()
        self._steps: List[ProgressStep] = []
        self._observers: List[Observer] = []

    @property
    def steps(self) -> List[ProgressStep]:
        """Snapshot of the current steps in creation order."""
        with self._lock:
            return list(self._steps)

    def subscribe(self, observer: Observer) -> Callable[[], None]:
        """Register an observer. Returns a function that unsubscribes it."""
        with self._lock:
            self._observers.append(observer)

        def unsubscribe() -> None:
            with self._lock:
                if observer in self._observers:
                    self._observers.remove(observer)

        return unsubscribe

    def emit(self) -> None:
        with self._lock:
            observers = list(self._observers)
        for observer in observers:
            try:
                observer()
            except Exception:
                logger.exception("Progress observer failed")

    def step(self, message: str) -> ProgressStep:
        """Append a new incomplete step and notify observers."""
        step = ProgressStep(message, self)
        with self._lock:
            self._steps.append(step)
        self.emit()
        return step

    def reset(self) -> None:
        """Detach and drop all steps, then notify observers."""
        with self._lock:
            for step in self._steps:
                step.dispose()
            self._steps = []
        self.emit()

    def to_list(self) -> List[dict]:
        return [step.to_dict() for step in self.steps]
