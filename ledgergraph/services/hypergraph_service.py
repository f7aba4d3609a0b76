import logging
from typing import Any, Dict, List

from ledgergraph.errors import StoreUnavailable
from ledgergraph.services.graph.hypergraph import get_incident_rows

logger = logging.getLogger(__name__)


def participant_label(label, role) -> str:
    if role:
        return f"{label} ({role})"
    return str(label)


def group_neighborhood(rows: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """Fold incidence rows into one entry per hyperedge, keeping first-seen order."""
    edges: Dict[int, Dict[str, Any]] = {}
    for r in rows:
        hid = r["hyperedge_id"]
        edge = edges.get(hid)
        if edge is None:
            edge = edges[hid] = {
                "hyperedge_id": hid,
                "edge_type": r.get("edge_type"),
                "label": r.get("label"),
                "weight": r.get("weight"),
                "participants": [],
                "members": [],
            }
        edge["participants"].append(participant_label(r.get("node_label"), r.get("role")))
        edge["members"].append(
            {
                "node_id": r.get("node_id"),
                "label": r.get("node_label"),
                "role": r.get("role"),
                "weight": r.get("incidence_weight"),
            }
        )
    return list(edges.values())


class HypergraphNeighborhoodEngine:
    """Hyperedges incident to a node, each listed with all of its participants."""

    def __init__(self, store):
        self.store = store

    def get_hypergraph_neighborhood(self, node_id: int) -> List[Dict[str, Any]]:
        try:
            rows = get_incident_rows(self.store, node_id)
        except StoreUnavailable as exc:
            logger.warning("Neighborhood of hypergraph node %s unavailable: %s", node_id, exc)
            return []
        return group_neighborhood(rows)
