import logging
from typing import Any, Dict, List

from ledgergraph.errors import InvalidArgument, NotFound
from ledgergraph.models.relationships import RelationshipCreate, RelationshipTypeCreate
from .common import decode_blobs, isoformat, next_id, to_json, utcnow

logger = logging.getLogger(__name__)


def create_relationship_type(store, data: RelationshipTypeCreate) -> Dict[str, Any]:
    if get_relationship_type_by_name(store, data.name):
        raise InvalidArgument(f"Relationship type {data.name!r} already exists")
    query = (
        next_id("RelationshipType")
        + "CREATE (t:RelationshipType {id: seq.value, name: $name, category: $category, "
        "is_directed: $is_directed, is_weighted: $is_weighted, description: $description, "
        "attributes: $attributes, created_at: $now}) "
        "RETURN t {.*} AS relationship_type"
    )
    res = store.run(
        query,
        {
            "name": data.name,
            "category": data.category,
            "is_directed": data.is_directed,
            "is_weighted": data.is_weighted,
            "description": data.description,
            "attributes": to_json(data.attributes),
            "now": isoformat(utcnow()),
        },
    )
    rel_type = decode_blobs(res[0]["relationship_type"], ["attributes"]) if res else {}
    logger.info("Created relationship type %s (%s)", data.name, data.category)
    return rel_type


def get_relationship_types(store) -> List[Dict[str, Any]]:
    rows = store.run("MATCH (t:RelationshipType) RETURN t {.*} AS relationship_type ORDER BY t.name")
    return [decode_blobs(r["relationship_type"], ["attributes"]) for r in rows]


def get_relationship_type_by_name(store, name: str) -> Dict[str, Any]:
    res = store.run(
        "MATCH (t:RelationshipType {name: $name}) RETURN t {.*} AS relationship_type", {"name": name}
    )
    return decode_blobs(res[0]["relationship_type"], ["attributes"]) if res else {}


def create_relationship(store, data: RelationshipCreate) -> Dict[str, Any]:
    """Create one typed edge of the multiplex network.

    Several relationships of different (or the same) type may coexist between
    the same pair of entities.
    """
    query = (
        "MATCH (t:RelationshipType {id: $type_id}) "
        + next_id("Relationship")
        + "CREATE (r:Relationship {id: seq.value, relationship_type_id: t.id, "
        "source_entity_id: $source_id, source_entity_type: $source_type, "
        "target_entity_id: $target_id, target_entity_type: $target_type, "
        "weight: $weight, attributes: $attributes, valid_from: $valid_from, valid_to: $valid_to, "
        "created_at: $now})-[:OF_TYPE]->(t) "
        "RETURN r {.*} AS relationship"
    )
    now = utcnow()
    res = store.run(
        query,
        {
            "type_id": data.relationship_type_id,
            "source_id": data.source_entity_id,
            "source_type": data.source_entity_type,
            "target_id": data.target_entity_id,
            "target_type": data.target_entity_type,
            "weight": data.weight,
            "attributes": to_json(data.attributes),
            "valid_from": isoformat(data.valid_from or now),
            "valid_to": isoformat(data.valid_to),
            "now": isoformat(now),
        },
    )
    if not res:
        raise NotFound("relationship type", data.relationship_type_id)
    rel = decode_blobs(res[0]["relationship"], ["attributes"])
    logger.info(
        "Created relationship %s: %s:%s -> %s:%s",
        rel.get("id"),
        data.source_entity_type,
        data.source_entity_id,
        data.target_entity_type,
        data.target_entity_id,
    )
    return rel


def find_relationships_touching(store, entity_type: str, entity_id: int) -> List[Dict[str, Any]]:
    """Relationship rows where (entity_id, entity_type) is the source or the target, with type info."""
    query = (
        "MATCH (r:Relationship) "
        "WHERE (r.source_entity_id = $id AND r.source_entity_type = $type) "
        "   OR (r.target_entity_id = $id AND r.target_entity_type = $type) "
        "OPTIONAL MATCH (r)-[:OF_TYPE]->(t:RelationshipType) "
        "RETURN r {.*} AS relationship, t.name AS type_name, t.category AS category, "
        "       t.is_directed AS is_directed "
        "ORDER BY r.id"
    )
    return store.run(query, {"id": entity_id, "type": entity_type}) or []
