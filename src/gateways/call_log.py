import threading
from collections import deque

from src.models.upstream import UpstreamCall

DEFAULT_MAX_CALLS = 1000


class UpstreamCallLog:
    """Thread-safe record of the most recent outbound calls to either gateway."""

    def __init__(self, max_calls: int = DEFAULT_MAX_CALLS):
        self._calls: deque[UpstreamCall] = deque(maxlen=max_calls)
        self._lock = threading.Lock()

    def log(self, call: UpstreamCall) -> None:
        with self._lock:
            self._calls.append(call)

    def get_calls(
        self,
        service: str | None = None,
        operation: str | None = None,
    ) -> list[UpstreamCall]:
        with self._lock:
            return [
                c for c in self._calls
                if (service is None or c.service == service)
                and (operation is None or c.operation == operation)
            ]

    def get_failed_calls(self) -> list[UpstreamCall]:
        with self._lock:
            return [c for c in self._calls if not c.succeeded]

    def clear(self) -> None:
        with self._lock:
            self._calls.clear()
