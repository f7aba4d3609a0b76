import pytest

from ledgergraph.errors import InvalidArgument, StoreUnavailable
from ledgergraph.services.ownership_service import OwnershipResolver


class FakeShareholdingStore:
    """Answers the per-level holdings query from an in-memory edge list."""

    def __init__(self, edges, names=None):
        self.edges = edges  # (parent, child, share_bps)
        self.names = names or {}
        self.calls = []

    def run(self, query: str, params: dict | None = None):
        self.calls.append((query, params))
        if "WHERE p.id IN $parent_ids" in query:
            ids = set(params["parent_ids"])
            return [
                {
                    "parent_org_id": p,
                    "child_org_id": c,
                    "child_name": self.names.get(c, f"Org {c}"),
                    "share_percentage": s,
                }
                for p, c, s in self.edges
                if p in ids
            ]
        return []


class DownStore:
    def run(self, query, params=None):
        raise StoreUnavailable("connection refused")


def test_two_hop_chain_multiplies_shares():
    store = FakeShareholdingStore([(1, 2, 6000), (2, 3, 4000)], names={2: "Beta", 3: "Gamma"})
    rows = OwnershipResolver(store).get_effective_ownership(1)

    by_id = {r["descendant_id"]: r for r in rows}
    assert by_id[2]["effective_ownership"] == 6000
    assert by_id[2]["depth"] == 1
    assert by_id[3]["effective_ownership"] == 2400
    assert by_id[3]["depth"] == 2
    assert by_id[3]["chain"] == "1->2->3"
    assert by_id[3]["descendant_name"] == "Gamma"
    assert [r["descendant_id"] for r in rows] == [2, 3]


def test_cross_shareholding_cycle_stops_at_max_depth():
    store = FakeShareholdingStore([(1, 2, 10000), (2, 1, 10000)])
    rows = OwnershipResolver(store).get_effective_ownership(1)

    assert len(rows) == 10
    assert max(r["depth"] for r in rows) == 10
    # one holdings query per level
    assert len(store.calls) == 10


def test_custom_depth_bound():
    store = FakeShareholdingStore([(1, 2, 10000), (2, 1, 10000)])
    rows = OwnershipResolver(store).get_effective_ownership(1, max_depth=3)
    assert [r["depth"] for r in rows] == [1, 2, 3]
    assert rows[-1]["chain"] == "1->2->1->2"


def test_chains_below_one_percent_are_dropped():
    store = FakeShareholdingStore([(1, 2, 1000), (2, 3, 500)])
    rows = OwnershipResolver(store).get_effective_ownership(1)
    # 10% * 5% = 0.5% -> 50 bps, under the threshold
    assert [r["descendant_id"] for r in rows] == [2]


def test_exactly_one_percent_is_kept():
    store = FakeShareholdingStore([(1, 2, 1000), (2, 3, 1000)])
    rows = OwnershipResolver(store).get_effective_ownership(1)
    assert {r["descendant_id"]: r["effective_ownership"] for r in rows} == {2: 1000, 3: 100}


def test_multiple_paths_are_reported_separately():
    store = FakeShareholdingStore([(1, 2, 5000), (1, 3, 4000), (2, 3, 3000)])
    rows = OwnershipResolver(store).get_effective_ownership(1)

    to_c = [r for r in rows if r["descendant_id"] == 3]
    assert sorted(r["effective_ownership"] for r in to_c) == [1500, 4000]
    # sorted by effective ownership, largest first
    assert [r["effective_ownership"] for r in rows] == [5000, 4000, 1500]


def test_aggregate_sums_paths_per_descendant():
    store = FakeShareholdingStore([(1, 2, 5000), (1, 3, 4000), (2, 3, 3000)])
    agg = OwnershipResolver(store).aggregate_effective_ownership(1)

    by_id = {a["descendant_id"]: a for a in agg}
    assert by_id[3]["effective_ownership"] == 5500
    assert len(by_id[3]["chains"]) == 2
    assert by_id[2]["effective_ownership"] == 5000
    assert [a["descendant_id"] for a in agg] == [3, 2]


def test_aggregate_ignores_cycles_back_to_root():
    store = FakeShareholdingStore([(1, 2, 10000), (2, 1, 10000)])
    agg = OwnershipResolver(store).aggregate_effective_ownership(1)
    assert [a["descendant_id"] for a in agg] == [2]
    assert agg[0]["effective_ownership"] == 10000


def test_aggregate_counts_small_paths_toward_the_total():
    # two 0.6% paths, each under the per-path threshold but 1.2% together
    store = FakeShareholdingStore([(1, 2, 600), (1, 3, 1000), (3, 2, 6000)])
    agg = OwnershipResolver(store).aggregate_effective_ownership(1)
    by_id = {a["descendant_id"]: a["effective_ownership"] for a in agg}
    assert by_id[2] == 1200


def test_no_shareholdings_returns_empty():
    store = FakeShareholdingStore([])
    assert OwnershipResolver(store).get_effective_ownership(42) == []
    assert len(store.calls) == 1


@pytest.mark.parametrize("depth", [0, -1])
def test_non_positive_depth_rejected_before_store_access(depth):
    store = FakeShareholdingStore([(1, 2, 5000)])
    with pytest.raises(InvalidArgument):
        OwnershipResolver(store).get_effective_ownership(1, max_depth=depth)
    assert store.calls == []


def test_store_outage_degrades_to_empty():
    assert OwnershipResolver(DownStore()).get_effective_ownership(1) == []
    assert OwnershipResolver(DownStore()).aggregate_effective_ownership(1) == []


def test_injected_holdings_function():
    calls = []

    def fake_holdings(store, parent_ids):
        calls.append(sorted(parent_ids))
        if 7 in parent_ids:
            return [{"parent_org_id": 7, "child_org_id": 8, "child_name": "Eight", "share_percentage": 10000}]
        return []

    rows = OwnershipResolver(object(), holdings_fn=fake_holdings).get_effective_ownership(7)
    assert rows[0]["descendant_id"] == 8
    assert calls == [[7], [8]]
