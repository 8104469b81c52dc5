from src.errors import BridgeError
from src.models.transaction import ApprovalResult, TransactionRecord
from src.reconciliation.engine import ReconciliationEngine


class ApprovalReplayManager:
    """Re-drives approvals for orders that were paid but never credited."""

    def __init__(self, engine: ReconciliationEngine):
        self.engine = engine

    def pending(self) -> list[TransactionRecord]:
        return self.engine.ledger.needs_attention()

    def replay_order(self, order_id: str) -> ApprovalResult:
        """Replay the approval call for a single order."""
        return self.engine.retry_approval(order_id)

    def replay_pending(self) -> dict[str, ApprovalResult | str]:
        """Replay every pending approval.

        Returns a dict mapping order_id to its ApprovalResult, or to the error
        message when the replay failed again.
        """
        results: dict[str, ApprovalResult | str] = {}
        for record in self.pending():
            try:
                results[record.order_id] = self.replay_order(record.order_id)
            except BridgeError as exc:
                results[record.order_id] = str(exc)
        return results
