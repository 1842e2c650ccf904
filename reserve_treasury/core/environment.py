#!/usr/bin/env python3
"""
Sequential Execution Environment

Stands in for the single global sequential ledger the treasury runs on:
- calls are totally ordered (one lock shared by every participant)
- every call is atomic: participants are snapshotted when a transaction
  opens and restored if it exits with an exception

Transactions nest with savepoint semantics; an inner failure that is caught
by its caller still undoes the inner effects only.
"""

import logging
import threading
from contextlib import contextmanager
from typing import Any, Callable, Dict, Iterable, Iterator, List, Protocol


logger = logging.getLogger(__name__)


class Journaled(Protocol):
    """Anything whose state can be captured and put back"""

    def snapshot(self) -> Any: ...

    def restore(self, state: Any) -> None: ...


class ExecutionEnvironment:
    """Serialises calls and rolls back every participant of a failed one"""

    def __init__(self):
        self._lock = threading.RLock()
        self._pinned: List[Journaled] = []
        self._scopes: List[Callable[[], Iterable[Journaled]]] = []
        self._depth = 0

    def register(self, participant: Journaled) -> None:
        """Track a participant for the environment's lifetime; registering twice is a no-op"""
        with self._lock:
            if not any(p is participant for p in self._pinned):
                self._pinned.append(participant)

    def add_scope(self, provider: Callable[[], Iterable[Journaled]]) -> None:
        """
        Track whatever `provider` currently returns

        The provider is re-read under the lock each time a transaction opens,
        so a participant it stops returning is no longer snapshotted.
        """
        with self._lock:
            self._scopes.append(provider)

    @property
    def participants(self) -> List[Journaled]:
        with self._lock:
            return self._collect(())

    @property
    def depth(self) -> int:
        """Number of currently open transactions"""
        return self._depth

    @contextmanager
    def transaction(self, *extra: Journaled) -> Iterator[None]:
        """
        Run the enclosed block as one all-or-nothing unit

        `extra` participants are included in this savepoint only, for ledgers
        a call touches without tracking them.
        """
        with self._lock:
            savepoint = self._capture(extra)
            self._depth += 1
            try:
                yield
            except BaseException:
                logger.debug("Rolling back %d participants at depth %d",
                             len(savepoint), self._depth)
                self._rollback(savepoint)
                raise
            finally:
                self._depth -= 1

    def _collect(self, extra: Iterable[Journaled]) -> List[Journaled]:
        collected: List[Journaled] = []
        seen = set()
        candidates = [self._pinned, extra] + [provider() for provider in self._scopes]
        for group in candidates:
            for participant in group:
                if id(participant) not in seen:
                    seen.add(id(participant))
                    collected.append(participant)
        return collected

    def _capture(self, extra: Iterable[Journaled]) -> Dict[int, Any]:
        return {id(p): (p, p.snapshot()) for p in self._collect(extra)}

    def _rollback(self, savepoint: Dict[int, Any]) -> None:
        for participant, state in savepoint.values():
            participant.restore(state)
