import threading

import pytest

from campus_scheduler.core.exceptions import ProposalStateError
from campus_scheduler.services.scope_lock import ScopeLockRegistry


def test_overlapping_scope_times_out():
    registry = ScopeLockRegistry()
    with registry.hold("session-1", ["batch-a"], timeout_seconds=1):
        with pytest.raises(ProposalStateError) as exc_info:
            with registry.hold("session-1", ["batch-b", "batch-a"], timeout_seconds=0.05):
                pass
    assert exc_info.value.status_code == 409
    assert exc_info.value.details["batchId"] == "batch-a"

    # Nothing stays held after the timeout.
    with registry.hold("session-1", ["batch-a", "batch-b"], timeout_seconds=0.05):
        pass


def test_disjoint_scopes_do_not_block():
    registry = ScopeLockRegistry()
    entered = threading.Event()

    def worker():
        with registry.hold("session-1", ["batch-b"], timeout_seconds=0.5):
            entered.set()

    with registry.hold("session-1", ["batch-a"], timeout_seconds=0.5):
        thread = threading.Thread(target=worker)
        thread.start()
        thread.join(timeout=2)

    assert entered.is_set()


def test_same_batch_in_another_session_is_independent():
    registry = ScopeLockRegistry()
    with registry.hold("session-1", ["batch-a"], timeout_seconds=0.05):
        with registry.hold("session-2", ["batch-a"], timeout_seconds=0.05):
            pass


def test_live_writes_are_exclusive_across_scopes():
    registry = ScopeLockRegistry()
    with registry.hold("session-1", ["batch-a"], timeout_seconds=0.05), registry.hold_live_writes(timeout_seconds=0.05):
        with registry.hold("session-1", ["batch-b"], timeout_seconds=0.05):
            with pytest.raises(ProposalStateError) as exc_info:
                with registry.hold_live_writes(timeout_seconds=0.05):
                    pass
    assert exc_info.value.details == {"lock": "live_schedule"}

    with registry.hold_live_writes(timeout_seconds=0.05):
        pass
