"""E2E test: webhook and redirect arriving together approve the order once."""

import json
from concurrent.futures import ThreadPoolExecutor

import pytest
import requests

from src.models.transaction import TransactionState


pytestmark = pytest.mark.e2e


class TestConcurrentConfirmation:
    """Both confirmation channels racing over HTTP."""

    def test_single_approval_across_channels(
        self, bridge_server, webhook_factory, callback_factory, inbound_secret, origin_stub,
    ):
        origin_stub.set_response_delay(0.2)
        body = webhook_factory.create_event("TX123", secret=inbound_secret)

        def post_webhook():
            return requests.post(
                f"{bridge_server.url}/api/webhook/payment",
                data=json.dumps(body),
                headers={"Content-Type": "application/json"},
                timeout=5,
            )

        def get_callback():
            return requests.get(
                f"{bridge_server.url}/api/yaad-callback",
                params=callback_factory.create_params("TX123"),
                timeout=5,
            )

        with ThreadPoolExecutor(max_workers=2) as pool:
            futures = [pool.submit(post_webhook), pool.submit(get_callback)]
            responses = [f.result() for f in futures]

        assert [r.status_code for r in responses] == [200, 200]
        assert origin_stub.approval_count("TX123") == 1
        assert bridge_server.engine.get_transaction("TX123").state is TransactionState.APPROVED
