import logging
from typing import Any, Dict, List

from ledgergraph.errors import NotFound
from ledgergraph.models.hypergraph import HyperedgeCreate, HypergraphNodeCreate, IncidenceCreate
from .common import decode_blobs, isoformat, next_id, to_json, utcnow

logger = logging.getLogger(__name__)


def create_hypergraph_node(store, data: HypergraphNodeCreate) -> Dict[str, Any]:
    """Create the node wrapping (node_type, entity_id), or refresh its label/properties if present."""
    query = (
        "MERGE (n:HypergraphNode {node_type: $node_type, entity_id: $entity_id}) "
        "ON CREATE SET n.created_at = $now "
        "WITH n "
        + next_id("HypergraphNode")
        + "SET n.id = coalesce(n.id, seq.value), "
        "    n.label = $label, n.properties = $properties, n.embedding = $embedding "
        "RETURN n {.*} AS node"
    )
    res = store.run(
        query,
        {
            "node_type": data.node_type,
            "entity_id": data.entity_id,
            "label": data.label,
            "properties": to_json(data.properties),
            "embedding": data.embedding,
            "now": isoformat(utcnow()),
        },
    )
    node = decode_blobs(res[0]["node"], ["properties"]) if res else {}
    logger.info("Hypergraph node %s wraps %s:%s", node.get("id"), data.node_type, data.entity_id)
    return node


def get_hypergraph_node_by_entity(store, node_type: str, entity_id: int) -> Dict[str, Any]:
    res = store.run(
        "MATCH (n:HypergraphNode {node_type: $node_type, entity_id: $entity_id}) RETURN n {.*} AS node",
        {"node_type": node_type, "entity_id": entity_id},
    )
    return decode_blobs(res[0]["node"], ["properties"]) if res else {}


def create_hyperedge(store, data: HyperedgeCreate) -> Dict[str, Any]:
    query = (
        next_id("Hyperedge")
        + "CREATE (h:Hyperedge {id: seq.value, edge_type: $edge_type, label: $label, weight: $weight, "
        "properties: $properties, created_at: $now}) "
        "RETURN h {.*} AS hyperedge"
    )
    res = store.run(
        query,
        {
            "edge_type": data.edge_type,
            "label": data.label,
            "weight": data.weight,
            "properties": to_json(data.properties),
            "now": isoformat(utcnow()),
        },
    )
    edge = decode_blobs(res[0]["hyperedge"], ["properties"]) if res else {}
    logger.info("Created hyperedge %s (%s)", edge.get("id"), data.edge_type)
    return edge


def create_incidence(store, data: IncidenceCreate) -> Dict[str, Any]:
    """Attach a node to a hyperedge. A (hyperedge, node) pair has one incidence; re-adding updates role/weight."""
    query = (
        "MATCH (n:HypergraphNode {id: $node_id}), (h:Hyperedge {id: $hyperedge_id}) "
        "MERGE (n)-[i:INCIDENT_TO]->(h) "
        "WITH n, h, i "
        + next_id("Incidence")
        + "SET i.id = coalesce(i.id, seq.value), i.role = $role, i.weight = $weight "
        "RETURN i.id AS id, h.id AS hyperedge_id, n.id AS node_id, i.role AS role, i.weight AS weight"
    )
    res = store.run(
        query,
        {"node_id": data.node_id, "hyperedge_id": data.hyperedge_id, "role": data.role, "weight": data.weight},
    )
    if not res:
        if not store.run("MATCH (n:HypergraphNode {id: $id}) RETURN n.id AS id", {"id": data.node_id}):
            raise NotFound("hypergraph node", data.node_id)
        raise NotFound("hyperedge", data.hyperedge_id)
    return res[0]


def get_incident_rows(store, node_id: int) -> List[Dict[str, Any]]:
    """Every incidence of every hyperedge touching ``node_id``, joined to participant labels.

    Two hops: node -> its hyperedges -> all participants of those hyperedges
    (the queried node included).
    """
    query = (
        "MATCH (:HypergraphNode {id: $node_id})-[:INCIDENT_TO]->(h:Hyperedge) "
        "WITH DISTINCT h "
        "MATCH (p:HypergraphNode)-[i:INCIDENT_TO]->(h) "
        "RETURN h.id AS hyperedge_id, h.edge_type AS edge_type, h.label AS label, h.weight AS weight, "
        "       i.id AS incidence_id, p.id AS node_id, p.label AS node_label, i.role AS role, "
        "       i.weight AS incidence_weight "
        "ORDER BY h.id, i.id"
    )
    return store.run(query, {"node_id": node_id}) or []
