"""Single-flight coordination of concurrent identical calls."""
from __future__ import annotations

import logging
from threading import Event, Lock
from typing import Any, Callable, Dict, TypeVar

LOGGER = logging.getLogger(__name__)

T = TypeVar("T")


class _Call:
    __slots__ = ("done", "value", "error", "waiters")

    def __init__(self) -> None:
        self.done = Event()
        self.value: Any = None
        self.error: BaseException | None = None
        self.waiters = 0


class SingleFlight:
    """Run at most one call per key at a time and share its outcome.

    The first caller for a key executes the function; callers that arrive
    while it is running block until it finishes and get the same value, or
    the same exception re-raised. The key is released before waiters wake up,
    so the next call after completion starts a fresh execution.
    """

    def __init__(self) -> None:
        self._calls: Dict[str, _Call] = {}
        self._lock = Lock()

    def run(self, key: str, fn: Callable[[], T]) -> T:
        with self._lock:
            call = self._calls.get(key)
            leader = call is None
            if call is None:
                call = _Call()
                self._calls[key] = call
            else:
                call.waiters += 1

        if not leader:
            LOGGER.debug("joining in-flight call", extra={"cache_key": key})
            call.done.wait()
            if call.error is not None:
                raise call.error
            return call.value

        try:
            call.value = fn()
        except BaseException as exc:
            call.error = exc
            raise
        finally:
            with self._lock:
                self._calls.pop(key, None)
            call.done.set()
            if call.waiters:
                LOGGER.debug(
                    "shared in-flight result",
                    extra={"cache_key": key, "detail": f"{call.waiters} waiter(s)"},
                )
        return call.value

    def in_flight(self) -> int:
        """Number of keys with a call currently running."""

        with self._lock:
            return len(self._calls)
