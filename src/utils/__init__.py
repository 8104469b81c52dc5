from .crypto import canonical_json, format_number, generate_signature, sign_body, verify_signature
from .factories import CallbackFactory, PaymentRequestFactory, WebhookFactory

__all__ = [
    "canonical_json", "format_number", "generate_signature", "sign_body", "verify_signature",
    "CallbackFactory", "PaymentRequestFactory", "WebhookFactory",
]
