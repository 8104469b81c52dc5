import logging
import time
import uuid
from datetime import datetime, timezone
from urllib.parse import quote

import requests

from src.errors import UpstreamApprovalError, UpstreamTimeout
from src.gateways.call_log import UpstreamCallLog
from src.gateways.signer import SignatureCodec
from src.models.transaction import ApprovalResult
from src.models.upstream import UpstreamCall

logger = logging.getLogger(__name__)

EMPTY_BODY = "{}"


class OriginClient:
    """Approves orders on the origin gateway.

    One POST per call and no retries: a blind retry could approve twice.
    """

    SERVICE = "origin"

    def __init__(
        self,
        api_url: str,
        api_key: str,
        merchant_id: str,
        signer: SignatureCodec,
        call_log: UpstreamCallLog | None = None,
        timeout_seconds: float = 15,
    ):
        self.api_url = api_url.rstrip("/")
        self.api_key = api_key
        self.merchant_id = merchant_id
        self.signer = signer
        self.call_log = call_log or UpstreamCallLog()
        self.timeout_seconds = timeout_seconds
        self.session = requests.Session()

    def approve_order(self, order_id: str) -> ApprovalResult:
        url = f"{self.api_url}/orders/{quote(order_id, safe='')}/approve"
        headers = {
            "Content-Type": "application/json",
            "X-Auth-Token": self.api_key,
            "X-Merchant": self.merchant_id,
            "X-Signature": self.signer.sign_body(EMPTY_BODY),
        }
        logger.info(
            "Approving order %s at %s (merchant=%s, token=REDACTED)",
            order_id, url, self.merchant_id,
        )

        start = time.monotonic()
        response = None
        error = None

        try:
            response = self.session.post(
                url, data=EMPTY_BODY, headers=headers, timeout=self.timeout_seconds,
            )
        except requests.exceptions.Timeout:
            error = "timeout"
        except requests.exceptions.ConnectionError:
            error = "connection_error"
        except requests.exceptions.RequestException as e:
            error = str(e)

        call = UpstreamCall(
            call_id=f"call_{uuid.uuid4().hex[:16]}",
            service=self.SERVICE,
            operation="approve",
            url=url,
            status_code=response.status_code if response is not None else None,
            timestamp=datetime.now(timezone.utc),
            response_time_ms=(time.monotonic() - start) * 1000,
            error=error,
        )
        self.call_log.log(call)

        if error == "timeout":
            logger.error("Order approval timed out for order %s", order_id)
            raise UpstreamTimeout(
                f"Approval of order {order_id} timed out; outcome unknown",
                service=self.SERVICE,
            )
        if response is None:
            logger.error("Order approval for %s could not reach origin: %s", order_id, error)
            raise UpstreamApprovalError(
                order_id, message=f"Failed to approve order {order_id}: {error}",
            )
        if not call.succeeded:
            logger.error(
                "Order approval failed for order %s: status=%s body=%r",
                order_id, response.status_code, response.text,
            )
            raise UpstreamApprovalError(
                order_id, status_code=response.status_code, body=response.text,
            )

        try:
            result = response.json()
        except ValueError:
            result = {"raw": response.text}
        if not isinstance(result, dict):
            result = {"raw": result}

        logger.info("Order %s approved", order_id)
        return ApprovalResult(order_id=order_id, status_code=response.status_code, response=result)
