"""Per-client sliding-window rate limit for the LLM-backed endpoints.

State is an injected mapping of client key -> recent request timestamps,
held on the app instance. It is process-local and resets on restart. Clients
with no request left inside the window are dropped on the next hit.
"""

import time
from collections.abc import Callable, MutableMapping


class RateLimiter:
    def __init__(
        self,
        max_requests: int,
        window_seconds: float,
        store: MutableMapping[str, list[float]] | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.max_requests = max_requests
        self.window_seconds = window_seconds
        self._store = store if store is not None else {}
        self._clock = clock

    def hit(self, key: str) -> bool:
        """Record a request for `key`. Returns False if it is over the limit."""
        if self.max_requests <= 0:
            return True
        now = self._clock()
        cutoff = now - self.window_seconds
        self._prune(cutoff)
        recent = [t for t in self._store.get(key, []) if t > cutoff]
        if len(recent) >= self.max_requests:
            self._store[key] = recent
            return False
        recent.append(now)
        self._store[key] = recent
        return True

    def _prune(self, cutoff: float) -> None:
        """Drop clients whose newest request has left the window."""
        stale = [k for k, times in self._store.items() if not times or times[-1] <= cutoff]
        for key in stale:
            del self._store[key]

    def reset(self, key: str | None = None) -> None:
        if key is None:
            self._store.clear()
        else:
            self._store.pop(key, None)
