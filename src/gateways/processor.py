import logging
import time
import uuid
from datetime import datetime, timezone
from decimal import Decimal
from urllib.parse import parse_qsl, urlencode

import requests

from src.errors import UpstreamError, UpstreamTimeout
from src.gateways.call_log import UpstreamCallLog
from src.gateways.retry import RetryManager
from src.models.payment import PaymentURL
from src.models.upstream import UpstreamCall
from src.models.webhook import SUCCESS_CODE, RedirectCallback, VerificationResult

logger = logging.getLogger(__name__)

REDACTED_PARAMS = ("KEY", "PassP")


class ProcessorClient:
    """Talks to the processor gateway's APISign endpoint.

    The processor mints its own signature for the payment page; this client
    only forwards merchant credentials and transaction details to it.
    """

    SERVICE = "processor"
    CURRENCY_CODE = "1"

    def __init__(
        self,
        base_url: str,
        key: str,
        passphrase: str,
        merchant_code: str,
        retry_manager: RetryManager | None = None,
        call_log: UpstreamCallLog | None = None,
        timeout_seconds: float = 15,
        delay_factor: float = 1.0,
        return_base_url: str | None = None,
    ):
        self.base_url = base_url
        self.key = key
        self.passphrase = passphrase
        self.merchant_code = merchant_code
        self.retry_manager = retry_manager or RetryManager()
        self.call_log = call_log or UpstreamCallLog()
        self.timeout_seconds = timeout_seconds
        self.delay_factor = delay_factor
        self.return_base_url = return_base_url.rstrip("/") if return_base_url else None
        self.session = requests.Session()

    def _credentials(self) -> dict[str, str]:
        return {"KEY": self.key, "PassP": self.passphrase, "Masof": self.merchant_code}

    def _return_urls(self) -> dict[str, str]:
        # Where the processor sends the customer and the callback afterwards
        if not self.return_base_url:
            return {}
        return {
            "successUrl": f"{self.return_base_url}/api/payment-success",
            "cancelUrl": f"{self.return_base_url}/api/payment-cancelled",
            "callback": f"{self.return_base_url}/api/yaad-callback",
        }

    def request_payment_url(
        self,
        transaction_id: str,
        amount: Decimal | str,
        customer_name: str,
    ) -> PaymentURL:
        """Ask the processor to sign a payment page for this transaction."""
        params = {
            "action": "APISign",
            "What": "SIGN",
            **self._credentials(),
            "Order": transaction_id,
            "Amount": str(amount),
            "ClientName": customer_name,
            "Currency": self.CURRENCY_CODE,
            "tmp": "1",
        }
        params.update(self._return_urls())
        fragment = self._get_with_retry(params, "sign").strip()
        url = f"{self.base_url}?action=pay&{fragment}"
        logger.info("Payment URL issued for transaction %s", transaction_id)
        return PaymentURL(url=url, transaction_id=transaction_id)

    def verify_payment(self, callback: RedirectCallback) -> VerificationResult:
        """Cross-check a redirect callback against the processor.

        Approved only when the callback itself reports success AND the
        processor's verification response agrees.
        """
        params = {"action": "APISign", "What": "VERIFY", **self._credentials()}
        for name, value in callback.params.items():
            if name not in params:
                params[name] = value

        body = self._get_with_retry(params, "verify")
        fields = dict(parse_qsl(body.strip(), keep_blank_values=True))
        result_code = fields.get("CCode")
        approved = callback.claims_success and result_code == SUCCESS_CODE

        if approved:
            logger.info("Payment verified for order %s", callback.order_id)
        else:
            logger.warning(
                "Verification rejected order %s: callback CCode=%s, processor CCode=%s",
                callback.order_id, callback.ccode, result_code,
            )
        return VerificationResult(result_code=result_code, approved=approved, raw_response=body)

    def _redacted_url(self, params: dict[str, str]) -> str:
        shown = {k: ("REDACTED" if k in REDACTED_PARAMS else v) for k, v in params.items()}
        return f"{self.base_url}?{urlencode(shown)}"

    def _get(
        self, params: dict[str, str], operation: str,
    ) -> tuple[requests.Response | None, UpstreamCall]:
        start = time.monotonic()
        response = None
        status_code = None
        error = None

        try:
            response = self.session.get(
                self.base_url, params=params, timeout=self.timeout_seconds,
            )
            status_code = response.status_code
        except requests.exceptions.Timeout:
            error = "timeout"
        except requests.exceptions.ConnectionError:
            error = "connection_error"
        except requests.exceptions.RequestException as e:
            error = str(e)

        elapsed_ms = (time.monotonic() - start) * 1000

        call = UpstreamCall(
            call_id=f"call_{uuid.uuid4().hex[:16]}",
            service=self.SERVICE,
            operation=operation,
            url=self._redacted_url(params),
            status_code=status_code,
            timestamp=datetime.now(timezone.utc),
            response_time_ms=elapsed_ms,
            error=error,
        )
        self.call_log.log(call)
        return response, call

    def _get_with_retry(self, params: dict[str, str], operation: str) -> str:
        retry_count = 0

        while True:
            response, call = self._get(params, operation)

            if call.succeeded:
                return response.text

            if not self.retry_manager.should_retry(call.status_code):
                break

            if not self.retry_manager.has_attempts_remaining(retry_count):
                break

            logger.warning(
                "Processor %s call failed (status=%s, error=%s), retrying",
                operation, call.status_code, call.error,
            )
            delay = self.retry_manager.next_delay(retry_count) * self.delay_factor
            if delay > 0:
                time.sleep(delay)

            retry_count += 1

        body = response.text if response is not None else None
        logger.error(
            "Processor %s call failed after %d attempt(s): status=%s error=%s body=%r",
            operation, retry_count + 1, call.status_code, call.error, body,
        )
        if call.error == "timeout":
            raise UpstreamTimeout(
                f"Processor {operation} call timed out", service=self.SERVICE,
            )
        raise UpstreamError(
            f"Processor {operation} call failed: {call.error or call.status_code}",
            service=self.SERVICE,
            status_code=call.status_code,
            body=body,
        )
