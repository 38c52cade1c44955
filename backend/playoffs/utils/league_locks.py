"""
Per-league in-process locks for serializing playoff advancement.

Process-local only. With several workers the uq_playoff_matchup_slot
constraint still rejects duplicate inserts.
"""
import logging
from contextlib import contextmanager
from threading import Lock
from typing import Dict, Iterator, Optional

logger = logging.getLogger(__name__)

_REGISTRY_LOCK = Lock()
_LEAGUE_LOCKS: Dict[int, Lock] = {}


def _lock_for(league_id: int) -> Lock:
    with _REGISTRY_LOCK:
        lock = _LEAGUE_LOCKS.get(league_id)
        if lock is None:
            lock = Lock()
            _LEAGUE_LOCKS[league_id] = lock
        return lock


@contextmanager
def league_lock(league_id: int, timeout_s: Optional[float] = None) -> Iterator[None]:
    """
    Hold the league's lock for the duration of the block.

    Raises:
        TimeoutError: lock not acquired within timeout_s
    """
    lock = _lock_for(league_id)
    if timeout_s is None:
        acquired = lock.acquire()
    else:
        acquired = lock.acquire(timeout=max(float(timeout_s), 0.0))
    if not acquired:
        raise TimeoutError(f"league_lock timeout for league {league_id} (timeout_s={timeout_s})")

    try:
        yield
    finally:
        lock.release()
