#!/usr/bin/env python3
"""
Reentrancy guard for treasury entry points.

One call may be in flight per treasury; the flag is released on every exit
path, including failures.
"""

from contextlib import contextmanager
from typing import Iterator, Optional

from .exceptions import ReentrantCall


class ReentrancyGuard:
    """Rejects nested entry into the same treasury"""

    def __init__(self, owner: str = "treasury"):
        self.owner = owner
        self._operation: Optional[str] = None

    @property
    def in_flight(self) -> Optional[str]:
        """Name of the operation currently holding the guard"""
        return self._operation

    @contextmanager
    def enter(self, operation: str) -> Iterator[None]:
        if self._operation is not None:
            raise ReentrantCall(
                f"{self.owner} re-entered during {self._operation}",
                {"operation": operation, "in_flight": self._operation}
            )
        self._operation = operation
        try:
            yield
        finally:
            self._operation = None
