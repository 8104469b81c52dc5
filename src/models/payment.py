from dataclasses import dataclass, field
from datetime import datetime, timezone
from decimal import Decimal, InvalidOperation
from typing import Any

from pydantic import BaseModel, EmailStr, Field, field_validator

DEFAULT_CURRENCY = "ILS"
AMOUNT_QUANTUM = Decimal("0.01")


class Customer(BaseModel):
    name: str = Field(min_length=1)
    email: EmailStr | None = None
    phone: str | None = None


class PaymentRequest(BaseModel):
    """Charge intent sent by the origin gateway.

    Only built after the signature over the raw body has been verified.
    """

    transaction_id: str = Field(min_length=1)
    amount: Decimal
    currency: str = DEFAULT_CURRENCY
    customer: Customer
    metadata: dict[str, Any] = Field(default_factory=dict)
    signature: str | None = None

    @field_validator("amount", mode="before")
    @classmethod
    def normalize_amount(cls, value: Any) -> Decimal:
        if isinstance(value, bool) or not isinstance(value, (int, float, str, Decimal)):
            raise ValueError("amount must be a number or numeric string")
        try:
            amount = Decimal(str(value).strip())
        except InvalidOperation as exc:
            raise ValueError(f"amount is not numeric: {value!r}") from exc
        if not amount.is_finite():
            raise ValueError("amount must be a positive finite number")
        try:
            amount = amount.quantize(AMOUNT_QUANTUM)
        except InvalidOperation as exc:
            raise ValueError("amount out of range") from exc
        # Checked after rounding so sub-cent amounts cannot become 0.00
        if amount <= 0:
            raise ValueError("amount must be at least 0.01")
        return amount

    @field_validator("currency", mode="before")
    @classmethod
    def default_currency(cls, value: Any) -> Any:
        return DEFAULT_CURRENCY if value is None else value


@dataclass
class PaymentURL:
    url: str
    transaction_id: str
    issued_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
