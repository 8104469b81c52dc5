import uuid

from src.utils.crypto import SIGNATURE_FIELD, generate_signature


class PaymentRequestFactory:
    """Factory for inbound payment request bodies with sensible defaults."""

    @staticmethod
    def create(secret: str | None = None, **overrides) -> dict:
        """Build a request body, signed inline when a secret is given."""
        payload = {
            "transaction_id": f"TX_{uuid.uuid4().hex[:12]}",
            "amount": 100,
            "currency": "ILS",
            "customer": {
                "name": "Test Customer",
                "email": "test@example.com",
                "phone": "0501234567",
            },
        }
        payload.update(overrides)
        if secret is not None:
            payload[SIGNATURE_FIELD] = generate_signature(payload, secret)
        return payload


class WebhookFactory:
    """Factory for push-shaped webhook bodies."""

    @staticmethod
    def create_event(
        order_id: str | None = None,
        status: str = "completed",
        secret: str | None = None,
        **extra,
    ) -> dict:
        payload = {
            "order_id": order_id or f"ORDER_{uuid.uuid4().hex[:12]}",
            "status": status,
            **extra,
        }
        if secret is not None:
            payload[SIGNATURE_FIELD] = generate_signature(payload, secret)
        return payload


class CallbackFactory:
    """Factory for the processor's redirect callback query parameters."""

    @staticmethod
    def create_params(
        order_id: str | None = None,
        ccode: str = "0",
        amount: str = "100.00",
        **overrides,
    ) -> dict[str, str]:
        params = {
            "Id": str(uuid.uuid4().int)[:8],
            "CCode": ccode,
            "Amount": amount,
            "ACode": "0012345",
            "Order": order_id or f"ORDER_{uuid.uuid4().hex[:12]}",
            "Sign": uuid.uuid4().hex,
            "Bank": "6",
            "Payments": "1",
            "UserId": "000000000",
            "Brand": "2",
            "Issuer": "2",
            "L4digit": "0000",
            "Coin": "1",
            "Tmonth": "12",
            "Tyear": "2030",
            "errMsg": "" if ccode == "0" else "Transaction declined",
            "Hesh": "1",
        }
        params.update(overrides)
        return params
