import pytest

from src.observability.alerting import AlertManager
from src.observability.metrics import MetricsCollector


class TestAlertCheck:
    """Tests for AlertManager.check()."""

    @pytest.mark.unit
    def test_single_failure_alerts_with_default_threshold(self, metrics, alert_manager):
        for _ in range(9):
            metrics.record_approval()
        metrics.record_approval_failure()
        alert = alert_manager.check()
        assert alert is not None
        assert alert["type"] == "approval_failure_rate"
        assert alert["total_approvals"] == 10
        assert alert["failed_approvals"] == 1

    @pytest.mark.unit
    def test_no_alert_when_all_approvals_succeed(self, metrics, alert_manager):
        for _ in range(10):
            metrics.record_approval()
        assert alert_manager.check() is None

    @pytest.mark.unit
    def test_no_alert_when_window_empty(self, alert_manager):
        assert alert_manager.check() is None

    @pytest.mark.unit
    def test_callback_is_invoked_on_alert(self):
        received = []
        mc = MetricsCollector(window_seconds=300)
        am = AlertManager(metrics=mc, callback=received.append)
        mc.record_approval_failure()
        am.check()
        assert len(received) == 1
        assert "approvals failed" in received[0]["message"]

    @pytest.mark.unit
    def test_custom_threshold_works(self):
        mc = MetricsCollector(window_seconds=300)
        am = AlertManager(metrics=mc, threshold=0.50)
        # 1 failure out of 3 = 33%, below 50%
        mc.record_approval_failure()
        mc.record_approval()
        mc.record_approval()
        assert am.check() is None
        mc.record_approval_failure()
        mc.record_approval_failure()
        # 3 failures out of 5 = 60%
        assert am.check() is not None

    @pytest.mark.unit
    def test_fire_once_until_reset(self, metrics, alert_manager):
        metrics.record_approval_failure()
        assert alert_manager.check() is not None
        assert alert_manager.check() is None
        alert_manager.reset()
        assert alert_manager.check() is not None
        assert len(alert_manager.get_alerts()) == 1


class TestAlertOrders:
    """Alerts name the orders that were paid but not approved."""

    @pytest.mark.unit
    def test_alert_lists_failed_orders(self, metrics, alert_manager):
        metrics.record_approval("TX_OK")
        metrics.record_approval_failure("TX1")
        alert = alert_manager.check()
        assert alert["order_ids"] == ["TX1"]
        assert alert["new_order_ids"] == ["TX1"]
        assert "TX1" in alert["message"]
        assert "TX_OK" not in alert["message"]

    @pytest.mark.unit
    def test_new_failing_order_raises_another_alert(self, metrics, alert_manager):
        metrics.record_approval_failure("TX1")
        assert alert_manager.check() is not None
        metrics.record_approval_failure("TX1")
        assert alert_manager.check() is None

        metrics.record_approval_failure("TX2")
        alert = alert_manager.check()
        assert alert["order_ids"] == ["TX1", "TX2"]
        assert alert["new_order_ids"] == ["TX2"]
        assert len(alert_manager.get_alerts()) == 2

    @pytest.mark.unit
    def test_recovery_rearms_alert_for_same_order(self):
        mc = MetricsCollector(window_seconds=300)
        am = AlertManager(metrics=mc, threshold=0.5)
        mc.record_approval_failure("TX1")
        assert am.check() is not None
        for _ in range(3):
            mc.record_approval()
        assert am.check() is None
        mc.record_approval_failure("TX1")
        mc.record_approval_failure("TX1")
        mc.record_approval_failure("TX1")
        # 4 failures out of 7, back above 50%
        assert am.check()["new_order_ids"] == ["TX1"]
