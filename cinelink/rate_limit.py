"""Simple in-memory per-client rate limiter for inbound requests."""
from __future__ import annotations

import time
from collections import deque
from threading import Lock
from typing import Callable, Deque, Dict


class RateLimiter:
    """Tracks requests per client within a sliding window."""

    def __init__(
        self,
        limit: int,
        window_seconds: float,
        *,
        max_clients: int = 10_000,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.limit = limit
        self.window = window_seconds
        self._max_clients = max_clients
        self._clock = clock
        self._requests: Dict[str, Deque[float]] = {}
        self._lock = Lock()

    def allow(self, client_id: str) -> bool:
        now = self._clock()
        with self._lock:
            if client_id not in self._requests and len(self._requests) >= self._max_clients:
                self._prune_locked(now)
            q = self._requests.setdefault(client_id, deque())
            while q and q[0] <= now - self.window:
                q.popleft()
            if len(q) >= self.limit:
                return False
            q.append(now)
            return True

    def prune(self) -> int:
        """Forget clients with no request inside the current window."""

        with self._lock:
            return self._prune_locked(self._clock())

    def _prune_locked(self, now: float) -> int:
        idle = [
            client_id
            for client_id, q in self._requests.items()
            if not q or q[-1] <= now - self.window
        ]
        for client_id in idle:
            del self._requests[client_id]
        return len(idle)
