"""
Rate Limiter
Per-identity sliding-window admission gate for deployment requests.

State is process-local and does not survive restarts; it is a soft limit.
Run a shared counter service instead if the pipeline runs as several
processes.
"""

import threading
import time
from collections import deque
from typing import Callable, Deque, Dict, Optional

from sitepipe.utils.logger import get_logger

logger = get_logger(__name__)


class SlidingWindowRateLimiter:
    """
    Keyed sliding-window limiter.

    Each identity owns an ordered deque of acceptance timestamps. Entries
    older than the window are pruned before every check, and the
    check-and-record sequence holds that identity's lock so two concurrent
    requests cannot both take the last slot.

    Identities whose window is empty are forgotten, on release and by a
    sweep that runs at most once per window, so state stays bounded by the
    identities active in the last window.
    """

    def __init__(
        self,
        max_requests: int = 5,
        window_seconds: float = 600.0,
        clock: Callable[[], float] = time.monotonic
    ):
        if max_requests <= 0:
            raise ValueError("max_requests must be positive")
        if window_seconds <= 0:
            raise ValueError("window_seconds must be positive")

        self.max_requests = max_requests
        self.window_seconds = window_seconds
        self._clock = clock
        self._windows: Dict[str, Deque[float]] = {}
        self._locks: Dict[str, threading.Lock] = {}
        self._registry_lock = threading.Lock()
        self._last_sweep: Optional[float] = None

    def _lock_for(self, identity: str) -> threading.Lock:
        with self._registry_lock:
            lock = self._locks.get(identity)
            if lock is None:
                lock = self._locks[identity] = threading.Lock()
                self._windows[identity] = deque()
            return lock

    def _acquire(self, identity: str) -> threading.Lock:
        # A lock taken just after its identity was evicted is stale; retry
        while True:
            lock = self._lock_for(identity)
            lock.acquire()
            with self._registry_lock:
                if self._locks.get(identity) is lock:
                    return lock
            lock.release()

    def _release(self, identity: str, lock: threading.Lock) -> None:
        """Release ``identity``'s lock, forgetting the identity if its window is empty."""
        try:
            if not self._windows.get(identity):
                with self._registry_lock:
                    if self._locks.get(identity) is lock:
                        del self._locks[identity]
                        del self._windows[identity]
        finally:
            lock.release()

    def _prune(self, window: Deque[float], now: float) -> None:
        cutoff = now - self.window_seconds
        while window and window[0] <= cutoff:
            window.popleft()

    def _maybe_sweep(self, now: float) -> None:
        """Drop identities whose whole window has expired, at most once per window."""
        with self._registry_lock:
            if self._last_sweep is None:
                self._last_sweep = now
                return
            if now - self._last_sweep < self.window_seconds:
                return
            self._last_sweep = now

            for identity in list(self._locks):
                lock = self._locks[identity]
                # Identities in use are left for their own release to clean up
                if not lock.acquire(blocking=False):
                    continue
                try:
                    window = self._windows[identity]
                    self._prune(window, now)
                    if not window:
                        del self._locks[identity]
                        del self._windows[identity]
                finally:
                    lock.release()

    def tracked_identities(self) -> int:
        """Number of identities currently holding window state."""
        with self._registry_lock:
            return len(self._windows)

    def check_and_record(self, identity: str) -> bool:
        """
        Admit or deny one request for ``identity``.

        Returns:
            True if admitted (and recorded), False if the window is full
        """
        self._maybe_sweep(self._clock())

        lock = self._acquire(identity)
        try:
            now = self._clock()
            window = self._windows[identity]
            self._prune(window, now)

            if len(window) >= self.max_requests:
                logger.warning(f"Rate limit reached for identity {identity}")
                return False

            window.append(now)
            return True
        finally:
            self._release(identity, lock)

    def remaining(self, identity: str) -> int:
        """Number of requests ``identity`` may still make in the current window."""
        lock = self._acquire(identity)
        try:
            window = self._windows[identity]
            self._prune(window, self._clock())
            return max(0, self.max_requests - len(window))
        finally:
            self._release(identity, lock)

    def retry_after(self, identity: str) -> float:
        """Seconds until ``identity`` regains a slot (0 if one is free now)."""
        lock = self._acquire(identity)
        try:
            now = self._clock()
            window = self._windows[identity]
            self._prune(window, now)
            if len(window) < self.max_requests:
                return 0.0
            return max(0.0, window[0] + self.window_seconds - now)
        finally:
            self._release(identity, lock)

    def reset(self, identity: Optional[str] = None) -> None:
        """Forget recorded requests for one identity, or for all of them."""
        if identity is None:
            with self._registry_lock:
                identities = list(self._windows)
        else:
            identities = [identity]

        for key in identities:
            lock = self._acquire(key)
            try:
                self._windows[key].clear()
            finally:
                self._release(key, lock)
