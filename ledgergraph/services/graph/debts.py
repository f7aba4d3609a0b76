import logging
from typing import Any, Dict, List, Optional

from ledgergraph.errors import NotFound
from ledgergraph.models.debts import DebtCreate, DebtUpdate
from .common import isoformat, next_id, utcnow

logger = logging.getLogger(__name__)


def create_debt(store, data: DebtCreate) -> Dict[str, Any]:
    query = (
        next_id("Debt")
        + "CREATE (d:Debt {id: seq.value, organization_id: $organization_id, creditor_name: $creditor_name, "
        "original_amount: $original_amount, remaining_amount: $remaining_amount, "
        "interest_rate: $interest_rate, due_date: $due_date, status: $status, notes: $notes, "
        "created_at: $now, updated_at: $now}) "
        "RETURN d {.*} AS debt"
    )
    params = data.model_dump()
    # A debt created with nothing left to pay is already settled.
    if data.remaining_amount == 0:
        params["status"] = "paid"
    params.update({"due_date": isoformat(data.due_date), "now": isoformat(utcnow())})
    res = store.run(query, params)
    debt = res[0]["debt"] if res else {}
    logger.info("Created debt %s to %r for organization %s", debt.get("id"), data.creditor_name, data.organization_id)
    return debt


def get_debt_by_id(store, debt_id: int) -> Dict[str, Any]:
    """Fetch a single Debt by id. Returns empty dict if not found."""
    res = store.run("MATCH (d:Debt {id: $id}) RETURN d {.*} AS debt", {"id": debt_id})
    return res[0]["debt"] if res else {}


def get_debts_by_organization(store, organization_id: int) -> List[Dict[str, Any]]:
    rows = store.run(
        (
            "MATCH (d:Debt {organization_id: $organization_id}) "
            "RETURN d {.*} AS debt ORDER BY d.created_at DESC, d.id DESC"
        ),
        {"organization_id": organization_id},
    )
    return [r["debt"] for r in rows]


def update_debt(store, debt_id: int, data: DebtUpdate) -> Dict[str, Any]:
    """Update descriptive fields. A settled debt keeps status 'paid' whatever status is requested."""
    fields = data.model_dump(exclude_unset=True)
    status: Optional[str] = fields.pop("status", None)
    if "due_date" in fields:
        fields["due_date"] = isoformat(fields["due_date"])
    fields["updated_at"] = isoformat(utcnow())
    res = store.run(
        (
            "MATCH (d:Debt {id: $id}) "
            "SET d += $fields "
            "SET d.status = CASE WHEN d.remaining_amount = 0 THEN 'paid' ELSE coalesce($status, d.status) END "
            "RETURN d {.*} AS debt"
        ),
        {"id": debt_id, "fields": fields, "status": status},
    )
    if not res:
        raise NotFound("debt", debt_id)
    return res[0]["debt"]


def delete_debt(store, debt_id: int) -> bool:
    """Delete a debt together with its payment records."""
    res = store.run(
        (
            "MATCH (d:Debt {id: $id}) "
            "OPTIONAL MATCH (p:DebtPayment)-[:PAYS]->(d) "
            "WITH d, collect(p) AS payments "
            "FOREACH (p IN payments | DETACH DELETE p) "
            "DETACH DELETE d "
            "RETURN 1 AS deleted"
        ),
        {"id": debt_id},
    )
    return bool(res and res[0].get("deleted"))


def get_payments(store, debt_id: int) -> List[Dict[str, Any]]:
    """Payments recorded against a debt, newest first."""
    rows = store.run(
        (
            "MATCH (p:DebtPayment)-[:PAYS]->(:Debt {id: $id}) "
            "RETURN p {.*} AS payment ORDER BY p.payment_date DESC, p.id DESC"
        ),
        {"id": debt_id},
    )
    return [r["payment"] for r in rows]


# Transaction-scoped statements used by the payment engine.

def lock_debt(tx, debt_id: int) -> Dict[str, Any]:
    """Load a debt while taking its write lock for the rest of the transaction."""
    rows = tx.run(
        (
            "MATCH (d:Debt {id: $id}) "
            "SET d.lock_version = coalesce(d.lock_version, 0) + 1 "
            "RETURN d {.*} AS debt"
        ),
        {"id": debt_id},
    )
    return rows[0]["debt"] if rows else {}


def record_payment(tx, debt_id: int, amount: int, payment_date, notes: Optional[str], remaining: int, status: str) -> Dict[str, Any]:
    """Append the payment and store the derived balance/status in one statement."""
    rows = tx.run(
        (
            "MATCH (d:Debt {id: $id}) "
            "SET d.remaining_amount = $remaining, d.status = $status, d.updated_at = $now "
            "WITH d "
            + next_id("DebtPayment")
            + "CREATE (p:DebtPayment {id: seq.value, debt_id: d.id, amount: $amount, "
            "payment_date: $payment_date, notes: $notes, created_at: $now})-[:PAYS]->(d) "
            "RETURN p {.*} AS payment, d {.*} AS debt"
        ),
        {
            "id": debt_id,
            "remaining": remaining,
            "status": status,
            "amount": amount,
            "payment_date": isoformat(payment_date),
            "notes": notes,
            "now": isoformat(utcnow()),
        },
    )
    return rows[0] if rows else {}
