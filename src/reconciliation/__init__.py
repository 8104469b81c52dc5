from .engine import ReconciliationEngine
from .ledger import TransactionLedger
from .replay import ApprovalReplayManager

__all__ = [
    "ReconciliationEngine",
    "TransactionLedger",
    "ApprovalReplayManager",
]
