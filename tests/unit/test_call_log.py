from datetime import datetime, timezone

import pytest

from src.gateways.call_log import UpstreamCallLog
from src.models.upstream import UpstreamCall


def _call(n: int, status_code: int | None = 200, operation: str = "sign") -> UpstreamCall:
    return UpstreamCall(
        call_id=f"call_{n}",
        service="processor",
        operation=operation,
        url="http://127.0.0.1/p/",
        status_code=status_code,
        timestamp=datetime.now(timezone.utc),
        response_time_ms=1.0,
    )


class TestUpstreamCallLog:
    """Tests for the bounded outbound call log."""

    @pytest.mark.unit
    def test_keeps_only_most_recent_calls(self):
        log = UpstreamCallLog(max_calls=10)
        for n in range(1000):
            log.log(_call(n))
        calls = log.get_calls()
        assert len(calls) == 10
        assert calls[0].call_id == "call_990"
        assert calls[-1].call_id == "call_999"

    @pytest.mark.unit
    def test_filters_and_failures(self, call_log):
        call_log.log(_call(1))
        call_log.log(_call(2, status_code=500, operation="verify"))
        call_log.log(_call(3, status_code=None))
        assert [c.call_id for c in call_log.get_calls(operation="verify")] == ["call_2"]
        assert [c.call_id for c in call_log.get_failed_calls()] == ["call_2", "call_3"]

    @pytest.mark.unit
    def test_clear(self, call_log):
        call_log.log(_call(1))
        call_log.clear()
        assert call_log.get_calls() == []
