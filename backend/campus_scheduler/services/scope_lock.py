from __future__ import annotations

from collections import defaultdict
from collections.abc import Iterable, Iterator
from contextlib import contextmanager
from threading import Lock
import time

from campus_scheduler.core.exceptions import ProposalStateError


class ScopeLockRegistry:
    """Process-local mutual exclusion for applies.

    ``hold`` serialises applies on overlapping (session, batch) scopes.
    ``hold_live_writes`` is one lock shared by every apply; it covers the
    live-schedule re-check and the write that follows it, so two applies on
    disjoint scopes cannot both pass the check before either has committed.
    """

    def __init__(self) -> None:
        self._locks: dict[tuple[str, str], Lock] = defaultdict(Lock)
        self._guard = Lock()
        self._live_writes = Lock()

    def _lock_for(self, key: tuple[str, str]) -> Lock:
        with self._guard:
            return self._locks[key]

    @contextmanager
    def hold(self, session_id: str, batch_ids: Iterable[str], *, timeout_seconds: float) -> Iterator[None]:
        # Sorted acquisition keeps overlapping scopes from deadlocking each other.
        keys = sorted({(session_id, batch_id) for batch_id in batch_ids})
        deadline = time.monotonic() + max(0.0, timeout_seconds)
        acquired: list[Lock] = []
        try:
            for key in keys:
                lock = self._lock_for(key)
                remaining = max(0.0, deadline - time.monotonic())
                if not lock.acquire(timeout=remaining):
                    raise ProposalStateError(
                        "Another schedule is being applied to the same batches; retry shortly",
                        details={"sessionId": session_id, "batchId": key[1]},
                    )
                acquired.append(lock)
            yield
        finally:
            for lock in reversed(acquired):
                lock.release()

    @contextmanager
    def hold_live_writes(self, *, timeout_seconds: float) -> Iterator[None]:
        if not self._live_writes.acquire(timeout=max(0.0, timeout_seconds)):
            raise ProposalStateError(
                "Another schedule is being written to the live timetable; retry shortly",
                details={"lock": "live_schedule"},
            )
        try:
            yield
        finally:
            self._live_writes.release()

    def clear(self) -> None:
        with self._guard:
            self._locks.clear()


_registry = ScopeLockRegistry()


def get_scope_locks() -> ScopeLockRegistry:
    return _registry


def clear_scope_locks() -> None:
    _registry.clear()
