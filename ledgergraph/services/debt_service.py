import logging
from datetime import date, datetime
from typing import Any, Dict, List, Optional, Tuple, Union

from ledgergraph.errors import InvalidArgument, NotFound
from ledgergraph.services.graph import debts as debt_repo

logger = logging.getLogger(__name__)

PAID = "paid"


def settle(remaining_amount: int, status: str, amount: int) -> Tuple[int, str]:
    """Balance and status after paying ``amount``.

    The balance never goes below zero; reaching zero marks the debt paid.
    Otherwise the status is left alone (a payment does not turn an overdue
    debt back into an active one).
    """
    new_remaining = max(0, remaining_amount - amount)
    new_status = PAID if new_remaining == 0 else status
    return new_remaining, new_status


class DebtPaymentEngine:
    """Applies payments to debts, keeping ``status`` in step with ``remaining_amount``.

    The read-modify-write runs in a single write transaction that locks the
    debt first, so concurrent payments on one debt are applied one after the
    other and the payment ledger never diverges from the stored balance.
    """

    def __init__(self, store):
        self.store = store

    def add_payment(
        self,
        debt_id: int,
        amount: int,
        payment_date: Union[date, datetime],
        notes: Optional[str] = None,
    ) -> Dict[str, Any]:
        if not isinstance(amount, int) or isinstance(amount, bool):
            raise InvalidArgument("amount must be an integer number of minor currency units")
        if amount < 0:
            raise InvalidArgument(f"amount must not be negative, got {amount}")
        if payment_date is None:
            raise InvalidArgument("payment_date is required")

        result = self.store.execute_write(self._apply_payment, debt_id, amount, payment_date, notes)
        logger.info(
            "Payment %s of %s on debt %s; remaining %s, status %s",
            result["payment_id"],
            amount,
            debt_id,
            result["remaining_amount"],
            result["status"],
        )
        return result

    @staticmethod
    def _apply_payment(tx, debt_id: int, amount: int, payment_date, notes: Optional[str]) -> Dict[str, Any]:
        debt = debt_repo.lock_debt(tx, debt_id)
        if not debt:
            raise NotFound("debt", debt_id)
        remaining, status = settle(debt.get("remaining_amount") or 0, debt.get("status") or "active", amount)
        row = debt_repo.record_payment(tx, debt_id, amount, payment_date, notes, remaining, status)
        payment = row.get("payment") or {}
        return {
            "success": True,
            "payment_id": payment.get("id"),
            "debt_id": debt_id,
            "remaining_amount": remaining,
            "status": status,
        }

    def get_debt_by_id(self, debt_id: int) -> Dict[str, Any]:
        return debt_repo.get_debt_by_id(self.store, debt_id)

    def get_payments(self, debt_id: int) -> List[Dict[str, Any]]:
        return debt_repo.get_payments(self.store, debt_id)
