"""
Progress sinks.

The build core reports (percent, message) pairs to whatever sink it is given:
0 before work, once per finished track, 100 after the file is written.
Sinks observe only; nothing they do can change the output file.
"""
from __future__ import annotations

import logging
from threading import Lock
from typing import Callable, List, Protocol

from core.models import ProgressUpdate

logger = logging.getLogger(__name__)


class ProgressSink(Protocol):
    def __call__(self, percent: int, message: str) -> None: ...


def _clamp(percent: int) -> int:
    return max(0, min(100, int(percent)))


class NullProgress:
    def __call__(self, percent: int, message: str) -> None:
        return None


class LoggingProgress:
    def __init__(self, log: logging.Logger = logger) -> None:
        self._log = log

    def __call__(self, percent: int, message: str) -> None:
        self._log.info("[%3d%%] %s", _clamp(percent), message)


class CallbackProgress:
    """Wraps a plain function; percent is clamped to 0..100 first."""

    def __init__(self, fn: Callable[[int, str], None]) -> None:
        self._fn = fn

    def __call__(self, percent: int, message: str) -> None:
        self._fn(_clamp(percent), message)


class RecordingProgress:
    """Keeps every update in memory; used by tests to assert the reported sequence."""

    def __init__(self) -> None:
        self._lock = Lock()
        self.updates: List[ProgressUpdate] = []

    def __call__(self, percent: int, message: str) -> None:
        with self._lock:
            self.updates.append(ProgressUpdate(percent=_clamp(percent), message=message))

    @property
    def percents(self) -> List[int]:
        with self._lock:
            return [u.percent for u in self.updates]


def safe_report(sink: ProgressSink, percent: int, message: str) -> None:
    """Call a sink; a broken sink is logged and otherwise ignored."""
    try:
        sink(percent, message)
    except Exception as e:
        logger.warning("Progress sink failed at %s%%: %s", percent, e)


def track_percent(done: int, total: int) -> int:
    if total <= 0:
        return 100
    return (done * 100) // total
