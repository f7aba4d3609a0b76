import copy
from datetime import date

import pytest

from ledgergraph.errors import InvalidArgument, NotFound, StoreUnavailable
from ledgergraph.services.debt_service import DebtPaymentEngine, settle


class FakeDebtStore:
    """Debts and payments in memory; a failed unit of work rolls back like a transaction."""

    def __init__(self, debts):
        self.debts = {d["id"]: dict(d) for d in debts}
        self.payments = []
        self.locked = []

    def execute_write(self, work, *args, **kwargs):
        snapshot = copy.deepcopy((self.debts, self.payments))
        try:
            return work(self, *args, **kwargs)
        except Exception:
            self.debts, self.payments = snapshot
            raise

    def run(self, query: str, params: dict | None = None):
        params = params or {}
        if "SET d.lock_version" in query:
            d = self.debts.get(params["id"])
            if not d:
                return []
            self.locked.append(d["id"])
            return [{"debt": dict(d)}]
        if "CREATE (p:DebtPayment" in query:
            d = self.debts.get(params["id"])
            if not d:
                return []
            d["remaining_amount"] = params["remaining"]
            d["status"] = params["status"]
            p = {
                "id": len(self.payments) + 1,
                "debt_id": d["id"],
                "amount": params["amount"],
                "payment_date": params["payment_date"],
                "notes": params["notes"],
            }
            self.payments.append(p)
            return [{"payment": dict(p), "debt": dict(d)}]
        if "MATCH (d:Debt {id: $id}) RETURN d {.*} AS debt" in query:
            d = self.debts.get(params["id"])
            return [{"debt": dict(d)}] if d else []
        if "MATCH (p:DebtPayment)-[:PAYS]->(:Debt {id: $id})" in query:
            rows = [p for p in self.payments if p["debt_id"] == params["id"]]
            rows.sort(key=lambda p: (p["payment_date"], p["id"]), reverse=True)
            return [{"payment": dict(p)} for p in rows]
        raise AssertionError(f"unexpected query: {query}")


def debt(debt_id=1, remaining=100000, status="active"):
    return {
        "id": debt_id,
        "organization_id": 7,
        "creditor_name": "First Bank",
        "original_amount": 100000,
        "remaining_amount": remaining,
        "status": status,
    }


def test_partial_payment_reduces_balance_and_keeps_status():
    store = FakeDebtStore([debt()])
    result = DebtPaymentEngine(store).add_payment(1, 10000, date(2025, 3, 1), notes="March")

    assert result == {"success": True, "payment_id": 1, "debt_id": 1, "remaining_amount": 90000, "status": "active"}
    assert store.debts[1]["remaining_amount"] == 90000
    assert store.payments[0]["payment_date"] == "2025-03-01"
    assert store.payments[0]["notes"] == "March"
    assert store.locked == [1]


def test_paying_down_to_zero_marks_paid():
    store = FakeDebtStore([debt()])
    engine = DebtPaymentEngine(store)
    for i in range(10):
        result = engine.add_payment(1, 10000, date(2025, 1, i + 1))

    assert result["remaining_amount"] == 0
    assert result["status"] == "paid"
    assert len(store.payments) == 10
    assert sum(p["amount"] for p in store.payments) == 100000


def test_overpayment_clamps_to_zero():
    store = FakeDebtStore([debt(remaining=5000)])
    result = DebtPaymentEngine(store).add_payment(1, 8000, date(2025, 1, 1))
    assert result["remaining_amount"] == 0
    assert result["status"] == "paid"
    # the full amount is still on record
    assert store.payments[0]["amount"] == 8000


def test_overdue_debt_stays_overdue_until_settled():
    store = FakeDebtStore([debt(remaining=3000, status="overdue")])
    engine = DebtPaymentEngine(store)
    assert engine.add_payment(1, 1000, date(2025, 1, 1))["status"] == "overdue"
    assert engine.add_payment(1, 2000, date(2025, 1, 2))["status"] == "paid"


def test_zero_payment_is_recorded_without_changing_balance():
    store = FakeDebtStore([debt()])
    result = DebtPaymentEngine(store).add_payment(1, 0, date(2025, 1, 1))
    assert result["remaining_amount"] == 100000
    assert len(store.payments) == 1


def test_missing_debt_records_nothing():
    store = FakeDebtStore([debt()])
    with pytest.raises(NotFound) as info:
        DebtPaymentEngine(store).add_payment(99, 1000, date(2025, 1, 1))
    assert info.value.kind == "debt"
    assert info.value.entity_id == 99
    assert store.payments == []


@pytest.mark.parametrize("amount", [-1, 10.5, True, "100"])
def test_bad_amount_rejected_before_store_access(amount):
    store = FakeDebtStore([debt()])
    with pytest.raises(InvalidArgument):
        DebtPaymentEngine(store).add_payment(1, amount, date(2025, 1, 1))
    assert store.locked == []


def test_missing_date_rejected():
    with pytest.raises(InvalidArgument):
        DebtPaymentEngine(FakeDebtStore([debt()])).add_payment(1, 100, None)


def test_failure_after_lock_rolls_back(monkeypatch):
    store = FakeDebtStore([debt()])

    def boom(*args, **kwargs):
        raise StoreUnavailable("connection dropped")

    monkeypatch.setattr("ledgergraph.services.graph.debts.record_payment", boom)
    with pytest.raises(StoreUnavailable):
        DebtPaymentEngine(store).add_payment(1, 1000, date(2025, 1, 1))
    assert store.debts[1]["remaining_amount"] == 100000
    assert store.payments == []


def test_payments_listed_newest_first():
    store = FakeDebtStore([debt()])
    engine = DebtPaymentEngine(store)
    engine.add_payment(1, 100, date(2025, 1, 5))
    engine.add_payment(1, 100, date(2025, 2, 5))
    assert [p["payment_date"] for p in engine.get_payments(1)] == ["2025-02-05", "2025-01-05"]
    assert engine.get_debt_by_id(1)["remaining_amount"] == 99800


def test_settle():
    assert settle(100, "active", 40) == (60, "active")
    assert settle(100, "overdue", 100) == (0, "paid")
    assert settle(100, "active", 250) == (0, "paid")
