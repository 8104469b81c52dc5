from dataclasses import dataclass, field
from typing import Self

from src.errors import ValidationError

COMPLETED_STATUS = "completed"
SUCCESS_CODE = "0"


@dataclass
class WebhookEvent:
    """Push-shaped confirmation posted by the origin gateway."""

    order_id: str
    status: str
    payload: dict
    signature: str = ""

    @classmethod
    def from_payload(cls, payload: dict, signature: str = "") -> Self:
        order_id = payload.get("order_id")
        status = payload.get("status")
        if not isinstance(order_id, str) or not order_id:
            raise ValidationError("webhook payload is missing order_id")
        if not isinstance(status, str):
            raise ValidationError("webhook payload is missing status")
        return cls(order_id=order_id, status=status, payload=payload, signature=signature)

    @property
    def is_completed(self) -> bool:
        return self.status == COMPLETED_STATUS


@dataclass
class RedirectCallback:
    """Redirect-shaped confirmation carried in the processor's query string."""

    order_id: str
    ccode: str | None
    amount: str | None = None
    sign: str | None = None
    error_message: str | None = None
    params: dict[str, str] = field(default_factory=dict)

    @classmethod
    def from_query(cls, params: dict[str, str]) -> Self:
        order_id = params.get("Order")
        if not order_id:
            raise ValidationError("callback is missing Order")
        return cls(
            order_id=order_id,
            ccode=params.get("CCode"),
            amount=params.get("Amount"),
            sign=params.get("Sign"),
            error_message=params.get("errMsg"),
            params=dict(params),
        )

    @property
    def claims_success(self) -> bool:
        return self.ccode == SUCCESS_CODE


@dataclass
class VerificationResult:
    result_code: str | None
    approved: bool
    raw_response: str = ""
