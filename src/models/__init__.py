from .payment import Customer, PaymentRequest, PaymentURL
from .webhook import RedirectCallback, VerificationResult, WebhookEvent
from .transaction import (
    ApprovalResult,
    ConfirmationChannel,
    TransactionRecord,
    TransactionState,
)
from .upstream import UpstreamCall

__all__ = [
    "Customer", "PaymentRequest", "PaymentURL",
    "RedirectCallback", "VerificationResult", "WebhookEvent",
    "ApprovalResult", "ConfirmationChannel", "TransactionRecord", "TransactionState",
    "UpstreamCall",
]
