from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum


class TransactionState(Enum):
    PENDING = "PENDING"
    URL_ISSUED = "URL_ISSUED"
    CONFIRMED = "CONFIRMED"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"
    FAILED = "FAILED"


class ConfirmationChannel(Enum):
    WEBHOOK = "webhook"
    REDIRECT = "redirect"


@dataclass
class ApprovalResult:
    order_id: str
    status_code: int | None
    response: dict = field(default_factory=dict)
    duplicate: bool = False


def _now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class TransactionRecord:
    order_id: str
    state: TransactionState = TransactionState.PENDING
    created_at: datetime = field(default_factory=_now)
    updated_at: datetime = field(default_factory=_now)
    confirmed_via: ConfirmationChannel | None = None
    approval: ApprovalResult | None = None
    approval_error: str | None = None
    rejection_reason: str | None = None
    history: list[TransactionState] = field(default_factory=list)

    def __post_init__(self):
        if not self.history:
            self.history.append(self.state)

    @property
    def approved(self) -> bool:
        return self.state is TransactionState.APPROVED

    @property
    def needs_attention(self) -> bool:
        """Payment captured by the processor but not credited upstream."""
        return self.state is TransactionState.CONFIRMED and self.approval_error is not None
