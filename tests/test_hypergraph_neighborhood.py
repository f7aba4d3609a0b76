from ledgergraph.errors import StoreUnavailable
from ledgergraph.services.hypergraph_service import HypergraphNeighborhoodEngine, participant_label


class FakeHypergraphStore:
    """In-memory nodes, hyperedges and incidences answering the incidence join."""

    def __init__(self, nodes, edges, incidences):
        self.nodes = nodes  # id -> label
        self.edges = edges  # id -> (edge_type, label, weight)
        self.incidences = incidences  # (incidence_id, hyperedge_id, node_id, role, weight)

    def run(self, query: str, params: dict | None = None):
        if "-[:INCIDENT_TO]->(h:Hyperedge)" not in query:
            return []
        node_id = params["node_id"]
        touched = {h for _, h, n, _, _ in self.incidences if n == node_id}
        rows = []
        for iid, hid, nid, role, weight in sorted(self.incidences, key=lambda i: (i[1], i[0])):
            if hid not in touched:
                continue
            edge_type, label, eweight = self.edges[hid]
            rows.append(
                {
                    "hyperedge_id": hid,
                    "edge_type": edge_type,
                    "label": label,
                    "weight": eweight,
                    "incidence_id": iid,
                    "node_id": nid,
                    "node_label": self.nodes[nid],
                    "role": role,
                    "incidence_weight": weight,
                }
            )
        return rows


def make_store():
    nodes = {1: "A", 2: "B", 3: "C", 4: "D"}
    edges = {10: ("consortium", "Bridge JV", 8000), 20: ("supply_chain", None, None)}
    incidences = [
        (100, 10, 1, "lead", 5000),
        (101, 10, 2, "member", 3000),
        (102, 10, 3, None, 2000),
        (200, 20, 3, "supplier", None),
        (201, 20, 4, "buyer", None),
    ]
    return FakeHypergraphStore(nodes, edges, incidences)


def test_neighborhood_lists_every_participant_including_self():
    result = HypergraphNeighborhoodEngine(make_store()).get_hypergraph_neighborhood(1)

    assert len(result) == 1
    edge = result[0]
    assert edge["hyperedge_id"] == 10
    assert edge["edge_type"] == "consortium"
    assert edge["label"] == "Bridge JV"
    assert edge["weight"] == 8000
    assert edge["participants"] == ["A (lead)", "B (member)", "C"]
    assert [m["node_id"] for m in edge["members"]] == [1, 2, 3]
    assert edge["members"][0]["weight"] == 5000


def test_node_in_two_hyperedges():
    result = HypergraphNeighborhoodEngine(make_store()).get_hypergraph_neighborhood(3)
    assert [e["hyperedge_id"] for e in result] == [10, 20]
    assert result[1]["participants"] == ["C (supplier)", "D (buyer)"]


def test_node_without_incidences():
    assert HypergraphNeighborhoodEngine(make_store()).get_hypergraph_neighborhood(99) == []


def test_participant_label_formats():
    assert participant_label("Acme", "lead") == "Acme (lead)"
    assert participant_label("Acme", None) == "Acme"
    assert participant_label("Acme", "") == "Acme"


def test_outage_returns_empty():
    class Down:
        def run(self, query, params=None):
            raise StoreUnavailable("down")

    assert HypergraphNeighborhoodEngine(Down()).get_hypergraph_neighborhood(1) == []
