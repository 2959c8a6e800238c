"""Optional progress reporting for long-running checkpoint loads.

Decoding a large checkpoint can take a while, so the codec accepts a
progress reporter and calls it once per record. Passing ``None`` disables
reporting entirely; nothing else about decoding changes.
"""
import logging
from typing import Optional, Protocol

logger = logging.getLogger(__name__)


class ProgressReporter(Protocol):
    """Receives coarse progress events for one task at a time."""

    def start(self, label: str, total: int) -> None:
        ...

    def update(self, done: int) -> None:
        ...

    def finish(self) -> None:
        ...


class LoggingProgress:
    """Progress reporter that logs every ``step`` percent of a task.

    Example:
        progress = LoggingProgress(step=25)
        model = TopicModel(theta, phi, progress=progress)
        # > Loading topic term stream: 25% (5/20)
    """

    def __init__(self, step: int = 10, level: int = logging.INFO,
                 log: Optional[logging.Logger] = None):
        if not 0 < step <= 100:
            raise ValueError(f"step must be in (0, 100], got {step}")
        self.step = step
        self.level = level
        self._log = log or logger
        self._label = ""
        self._total = 0
        self._next_percent = step

    def start(self, label: str, total: int) -> None:
        self._label = label
        self._total = total
        self._next_percent = self.step
        self._log.log(self.level, "> %s: 0/%d", label, total)

    def update(self, done: int) -> None:
        if self._total <= 0:
            return
        percent = done * 100 // self._total
        if percent >= self._next_percent:
            self._log.log(self.level, "> %s: %d%% (%d/%d)",
                          self._label, percent, done, self._total)
            while self._next_percent <= percent:
                self._next_percent += self.step

    def finish(self) -> None:
        self._log.log(self.level, "> %s: done (%d)", self._label, self._total)
