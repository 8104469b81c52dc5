import logging
from dataclasses import replace

import pydantic

from src.errors import (
    ApprovalPending,
    AuthenticityError,
    UpstreamError,
    UpstreamTimeout,
    ValidationError,
    VerificationMismatch,
)
from src.gateways.origin import OriginClient
from src.gateways.processor import ProcessorClient
from src.gateways.signer import SignatureCodec
from src.models.payment import PaymentRequest, PaymentURL
from src.models.transaction import (
    ApprovalResult,
    ConfirmationChannel,
    TransactionRecord,
    TransactionState,
)
from src.models.webhook import RedirectCallback, WebhookEvent
from src.observability.alerting import AlertManager
from src.observability.metrics import MetricsCollector
from src.reconciliation.ledger import TransactionLedger
from src.utils.crypto import SIGNATURE_FIELD

logger = logging.getLogger(__name__)

SETTLED_STATES = (TransactionState.CONFIRMED, TransactionState.APPROVED)


class ReconciliationEngine:
    """Drives each transaction from payment URL to exactly one order approval.

    Both confirmation channels (signed webhook push and verified redirect
    callback) converge on ``_confirm``, which is serialized per order id by
    the ledger. The first confirmation approves the order upstream; later
    ones for the same order are answered from the ledger.
    """

    def __init__(
        self,
        signer: SignatureCodec,
        processor: ProcessorClient,
        origin: OriginClient,
        ledger: TransactionLedger | None = None,
        metrics: MetricsCollector | None = None,
        alert_manager: AlertManager | None = None,
    ):
        self.signer = signer
        self.processor = processor
        self.origin = origin
        self.ledger = ledger or TransactionLedger()
        self.metrics = metrics or MetricsCollector()
        self.alert_manager = alert_manager or AlertManager(self.metrics)

    def _authenticate(self, body: dict, signature: str | None) -> str:
        if not isinstance(body, dict):
            raise ValidationError("request body must be a JSON object")
        signature = signature or body.get(SIGNATURE_FIELD)
        if not signature:
            raise AuthenticityError("Missing signature")
        if not self.signer.verify(body, signature):
            logger.warning("Rejected request with invalid signature")
            raise AuthenticityError("Invalid signature")
        return signature

    def issue_payment_url(self, body: dict, signature: str | None = None) -> PaymentURL:
        """Verify an inbound payment request and obtain a processor payment URL."""
        self._authenticate(body, signature)
        try:
            request = PaymentRequest.model_validate(body)
        except pydantic.ValidationError as exc:
            raise ValidationError(f"Invalid payment request: {exc}") from exc

        order_id = request.transaction_id
        with self.ledger.lock_for(order_id):
            record, _ = self.ledger.get_or_create(order_id)
            if record.state in SETTLED_STATES:
                raise ValidationError(
                    f"Transaction {order_id} is already {record.state.value}"
                )
            try:
                payment_url = self.processor.request_payment_url(
                    order_id, request.amount, request.customer.name,
                )
            except UpstreamTimeout:
                logger.error(
                    "Payment URL request for %s timed out; state left at %s",
                    order_id, record.state.value,
                )
                raise
            except UpstreamError:
                self.ledger.transition(record, TransactionState.FAILED)
                raise
            self.ledger.transition(record, TransactionState.URL_ISSUED)

        return payment_url

    def handle_webhook(self, body: dict, signature: str | None = None) -> ApprovalResult | None:
        """Process a push confirmation. Returns None when the status is ignored."""
        signature = self._authenticate(body, signature)
        event = WebhookEvent.from_payload(body, signature=signature)
        logger.info("Processing webhook for order %s: status=%s", event.order_id, event.status)

        if not event.is_completed:
            self._reject(event.order_id, f"webhook status {event.status!r}")
            return None
        return self._confirm(event.order_id, ConfirmationChannel.WEBHOOK)

    def handle_redirect(self, params: dict[str, str]) -> ApprovalResult:
        """Process a redirect callback after cross-checking it with the processor."""
        callback = RedirectCallback.from_query(params)
        logger.info("Redirect callback for order %s: CCode=%s", callback.order_id, callback.ccode)

        if not callback.claims_success:
            self._reject(callback.order_id, f"callback CCode={callback.ccode}")
            raise VerificationMismatch(callback.order_id, callback.ccode, callback.error_message)

        verification = self.processor.verify_payment(callback)
        if not verification.approved:
            self._reject(
                callback.order_id,
                f"processor verification returned CCode={verification.result_code}",
            )
            raise VerificationMismatch(callback.order_id, callback.ccode, callback.error_message)

        return self._confirm(callback.order_id, ConfirmationChannel.REDIRECT)

    def retry_approval(self, order_id: str) -> ApprovalResult:
        """Operator-triggered approval for an order stuck in CONFIRMED."""
        with self.ledger.lock_for(order_id):
            record = self.ledger.get(order_id)
            if record is None:
                raise ValueError(f"Order {order_id} not found")
            if record.state is TransactionState.APPROVED:
                return replace(record.approval, duplicate=True)
            if record.state is not TransactionState.CONFIRMED:
                raise ValueError(
                    f"Order {order_id} is {record.state.value}, not awaiting approval"
                )
            logger.warning(
                "Replaying approval for order %s (last error: %s)",
                order_id, record.approval_error,
            )
            record.approval_error = None
            return self._approve(record)

    def get_transaction(self, order_id: str) -> TransactionRecord | None:
        return self.ledger.get(order_id)

    def _confirm(self, order_id: str, channel: ConfirmationChannel) -> ApprovalResult:
        with self.ledger.lock_for(order_id):
            record, created = self.ledger.get_or_create(order_id)

            if record.state is TransactionState.APPROVED:
                logger.info(
                    "Order %s already approved; %s confirmation is a no-op",
                    order_id, channel.value,
                )
                return replace(record.approval, duplicate=True)

            if record.needs_attention:
                raise ApprovalPending(order_id, record.approval_error)

            if created:
                logger.warning("Confirming order %s that this process never issued", order_id)
            elif record.state is not TransactionState.URL_ISSUED:
                logger.warning(
                    "Confirming order %s from state %s", order_id, record.state.value,
                )

            self.ledger.transition(record, TransactionState.CONFIRMED, confirmed_via=channel)
            return self._approve(record)

    def _approve(self, record: TransactionRecord) -> ApprovalResult:
        # Caller holds the order lock.
        try:
            result = self.origin.approve_order(record.order_id)
        except UpstreamError as exc:
            record.approval_error = str(exc)
            self.metrics.record_approval_failure(record.order_id)
            logger.critical(
                "Order %s was paid but NOT approved upstream (status=%s): %s",
                record.order_id, exc.status_code, exc,
            )
            self.alert_manager.check()
            raise

        self.ledger.transition(
            record, TransactionState.APPROVED, approval=result, approval_error=None,
        )
        self.metrics.record_approval(record.order_id)
        return result

    def _reject(self, order_id: str, reason: str) -> None:
        with self.ledger.lock_for(order_id):
            record, _ = self.ledger.get_or_create(order_id)
            if record.state in SETTLED_STATES:
                logger.warning(
                    "Ignoring rejection of order %s already %s: %s",
                    order_id, record.state.value, reason,
                )
                return
            self.ledger.transition(record, TransactionState.REJECTED, rejection_reason=reason)

        self.metrics.record_rejection(order_id)
        logger.info("Order %s rejected: %s", order_id, reason)
