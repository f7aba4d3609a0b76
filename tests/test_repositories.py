from datetime import date

import pytest

from ledgergraph.errors import NotFound
from ledgergraph.models.debts import DebtCreate, DebtUpdate
from ledgergraph.models.dynamics import FlowCreate
from ledgergraph.models.hypergraph import IncidenceCreate
from ledgergraph.services.graph import create_debt, create_flow, create_incidence, get_holdings_of, update_debt
from ledgergraph.services.graph.common import next_id


class RecordingStore:
    """Records every statement and answers from a list of (substring, rows) rules."""

    def __init__(self, rules=()):
        self.rules = list(rules)
        self.calls = []

    def run(self, query: str, params: dict | None = None):
        self.calls.append((query, params))
        for needle, rows in self.rules:
            if needle in query:
                return rows(params) if callable(rows) else rows
        return []


def test_next_id_fragment():
    frag = next_id("Debt")
    assert "MERGE (seq:Sequence {name: 'Debt'})" in frag
    assert "coalesce(seq.value, 0) + 1" in frag


def test_holdings_query_is_one_round_trip_per_frontier():
    store = RecordingStore()
    get_holdings_of(store, {3, 1, 2})
    assert len(store.calls) == 1
    query, params = store.calls[0]
    assert "WHERE p.id IN $parent_ids" in query
    assert params == {"parent_ids": [1, 2, 3]}


def test_debt_created_with_nothing_left_is_paid():
    store = RecordingStore([("CREATE (d:Debt", lambda p: [{"debt": {"id": 1, "status": p["status"]}}])])
    data = DebtCreate(organization_id=1, creditor_name="Bank", original_amount=500, remaining_amount=0)
    assert create_debt(store, data)["status"] == "paid"


def test_debt_due_date_stored_as_text():
    store = RecordingStore([("CREATE (d:Debt", [{"debt": {"id": 1}}])])
    data = DebtCreate(organization_id=1, creditor_name="Bank", original_amount=500, remaining_amount=500, due_date=date(2026, 1, 31))
    create_debt(store, data)
    assert store.calls[0][1]["due_date"] == "2026-01-31"


def test_update_missing_debt():
    with pytest.raises(NotFound):
        update_debt(RecordingStore(), 5, DebtUpdate(notes="x"))


def test_update_debt_passes_status_separately():
    store = RecordingStore([("SET d += $fields", [{"debt": {"id": 5, "status": "overdue"}}])])
    update_debt(store, 5, DebtUpdate(status="overdue"))
    params = store.calls[0][1]
    assert params["status"] == "overdue"
    assert "status" not in params["fields"]


def test_flow_to_missing_stock():
    store = RecordingStore()
    data = FlowCreate(flow_name="rent", target_stock_id=8, flow_type="inflow", rate_formula="constant")
    with pytest.raises(NotFound) as info:
        create_flow(store, data)
    assert info.value.entity_id == 8


def test_incidence_reports_which_end_is_missing():
    store = RecordingStore([("MATCH (n:HypergraphNode {id: $id}) RETURN n.id AS id", [{"id": 1}])])
    with pytest.raises(NotFound) as info:
        create_incidence(store, IncidenceCreate(hyperedge_id=9, node_id=1))
    assert info.value.kind == "hyperedge"

    with pytest.raises(NotFound) as info:
        create_incidence(RecordingStore(), IncidenceCreate(hyperedge_id=9, node_id=1))
    assert info.value.kind == "hypergraph node"


def test_agents_by_type_validates_and_decodes():
    from ledgergraph.errors import InvalidArgument
    from ledgergraph.services.graph import get_agents_by_type

    with pytest.raises(InvalidArgument):
        get_agents_by_type(RecordingStore(), "robot")

    store = RecordingStore([("MATCH (a:Agent", [{"agent": {"id": 1, "state": '{"cash": 10}', "attributes": None}}])])
    agents = get_agents_by_type(store, "individual")
    assert agents[0]["state"] == {"cash": 10}


def test_duplicate_relationship_type_rejected():
    from ledgergraph.errors import InvalidArgument
    from ledgergraph.models.relationships import RelationshipTypeCreate
    from ledgergraph.services.graph import create_relationship_type

    store = RecordingStore([("MATCH (t:RelationshipType {name: $name})", [{"relationship_type": {"id": 1, "name": "SUPPLIES"}}])])
    with pytest.raises(InvalidArgument):
        create_relationship_type(store, RelationshipTypeCreate(name="SUPPLIES", category="transaction"))
    assert len(store.calls) == 1
