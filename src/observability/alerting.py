from src.observability.metrics import MetricsCollector


class AlertManager:
    """Alerts when order approvals fail while the processor has captured payment.

    An alert names the orders awaiting operator replay. While the failure
    rate stays above the threshold, a further alert is raised only when an
    order fails that no earlier alert mentioned.
    """

    def __init__(
        self,
        metrics: MetricsCollector,
        threshold: float = 0.0,
        callback=None,
    ):
        self.metrics = metrics
        self.threshold = threshold
        self.callback = callback
        self._fired = False
        self._alerted_orders: set[str] = set()
        self._alerts: list[dict] = []

    def check(self) -> dict | None:
        """Return a new alert dict, or None when there is nothing new to report."""
        total = self.metrics.total_in_window()
        if total == 0:
            return None

        rate = self.metrics.failure_rate()
        if rate <= self.threshold:
            self._fired = False
            self._alerted_orders.clear()
            return None

        failed_orders = self.metrics.failed_orders_in_window()
        new_orders = [o for o in failed_orders if o not in self._alerted_orders]
        if self._fired and not new_orders:
            return None

        failures = self.metrics.failure_count_in_window()
        alert = {
            "type": "approval_failure_rate",
            "failure_rate": rate,
            "threshold": self.threshold,
            "total_approvals": total,
            "failed_approvals": failures,
            "order_ids": failed_orders,
            "new_order_ids": new_orders,
            "message": (
                f"{failures}/{total} approvals failed ({rate:.1%}, "
                f"threshold {self.threshold:.1%}); paid orders awaiting replay: "
                f"{', '.join(failed_orders) or 'unknown'}"
            ),
        }
        self._fired = True
        self._alerted_orders.update(new_orders)
        self._alerts.append(alert)

        if self.callback:
            self.callback(alert)
        return alert

    def get_alerts(self) -> list[dict]:
        return list(self._alerts)

    def reset(self) -> None:
        self._fired = False
        self._alerted_orders.clear()
        self._alerts.clear()
