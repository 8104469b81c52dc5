import threading
import time
from collections import deque


class MetricsCollector:
    """Collects order approval outcomes with rolling windows.

    Each sample is a ``(monotonic timestamp, order_id)`` pair. Samples older
    than the window are discarded as soon as the collector is touched, so a
    long-running process holds at most one window's worth of data.
    """

    def __init__(self, window_seconds: float = 300):
        self._window_seconds = window_seconds
        self._approvals: deque[tuple[float, str | None]] = deque()
        self._failures: deque[tuple[float, str | None]] = deque()
        self._rejections: deque[tuple[float, str | None]] = deque()
        self._lock = threading.Lock()

    def _record(self, samples: deque, order_id: str | None) -> None:
        with self._lock:
            now = time.monotonic()
            samples.append((now, order_id))
            self._prune_all(now)

    def record_approval(self, order_id: str | None = None) -> None:
        self._record(self._approvals, order_id)

    def record_approval_failure(self, order_id: str | None = None) -> None:
        self._record(self._failures, order_id)

    def record_rejection(self, order_id: str | None = None) -> None:
        self._record(self._rejections, order_id)

    def _prune_all(self, now: float) -> None:
        # Caller holds the lock. Samples are appended in time order.
        cutoff = now - self._window_seconds
        for samples in (self._approvals, self._failures, self._rejections):
            while samples and samples[0][0] < cutoff:
                samples.popleft()

    def _counts(self) -> tuple[int, int, int]:
        with self._lock:
            self._prune_all(time.monotonic())
            return len(self._approvals), len(self._failures), len(self._rejections)

    def failure_rate(self) -> float:
        """Approval failure rate in the current rolling window (0.0 to 1.0)."""
        approvals, failures, _ = self._counts()
        total = approvals + failures
        if total == 0:
            return 0.0
        return failures / total

    def total_in_window(self) -> int:
        """Approval attempts (successful or not) in the window."""
        approvals, failures, _ = self._counts()
        return approvals + failures

    def failure_count_in_window(self) -> int:
        return self._counts()[1]

    def approval_count_in_window(self) -> int:
        return self._counts()[0]

    def rejection_count_in_window(self) -> int:
        return self._counts()[2]

    def failed_orders_in_window(self) -> list[str]:
        """Distinct order ids whose approval failed in the window, oldest first."""
        with self._lock:
            self._prune_all(time.monotonic())
            return list(dict.fromkeys(
                order_id for _, order_id in self._failures if order_id is not None
            ))

    def samples_held(self) -> int:
        with self._lock:
            return len(self._approvals) + len(self._failures) + len(self._rejections)

    def reset(self) -> None:
        with self._lock:
            self._approvals.clear()
            self._failures.clear()
            self._rejections.clear()
