import logging
from datetime import datetime
from typing import Any, Dict, List, Optional

from ledgergraph.errors import InvalidArgument, StoreUnavailable
from ledgergraph.models.relationships import RELATIONSHIP_ENTITY_TYPES
from ledgergraph.services.graph.common import from_json, parse_datetime
from ledgergraph.services.graph.relationships import find_relationships_touching

logger = logging.getLogger(__name__)


def relationship_view(row: Dict[str, Any], entity_type: str, entity_id: int) -> Dict[str, Any]:
    """Project a stored relationship onto the queried entity's point of view."""
    rel = row.get("relationship") or {}
    outgoing = rel.get("source_entity_id") == entity_id and rel.get("source_entity_type") == entity_type
    side = "target" if outgoing else "source"
    return {
        "relationship_id": rel.get("id"),
        "type_name": row.get("type_name"),
        "category": row.get("category"),
        "is_directed": row.get("is_directed"),
        "direction": "outgoing" if outgoing else "incoming",
        "connected_entity_id": rel.get(f"{side}_entity_id"),
        "connected_entity_type": rel.get(f"{side}_entity_type"),
        "weight": rel.get("weight"),
        "attributes": from_json(rel.get("attributes")),
        "valid_from": rel.get("valid_from"),
        "valid_to": rel.get("valid_to"),
    }


def is_active(view: Dict[str, Any], at: datetime) -> bool:
    """valid_from <= at < valid_to, with a missing valid_to meaning open-ended."""
    at = parse_datetime(at)
    start = parse_datetime(view.get("valid_from"))
    end = parse_datetime(view.get("valid_to"))
    if start is not None and start > at:
        return False
    return end is None or end > at


class RelationshipQueryEngine:
    """Multiplex neighborhood of one entity: every typed edge it takes part in, either direction."""

    def __init__(self, store):
        self.store = store

    def get_relationships_by_entity(
        self,
        entity_type: str,
        entity_id: int,
        *,
        active_at: Optional[datetime] = None,
        category: Optional[str] = None,
    ) -> List[Dict[str, Any]]:
        """No temporal filtering unless ``active_at`` is given."""
        if entity_type not in RELATIONSHIP_ENTITY_TYPES:
            raise InvalidArgument(f"Unknown entity type {entity_type!r}; expected one of {RELATIONSHIP_ENTITY_TYPES}")
        try:
            rows = find_relationships_touching(self.store, entity_type, entity_id)
        except StoreUnavailable as exc:
            logger.warning("Relationships for %s:%s unavailable: %s", entity_type, entity_id, exc)
            return []

        views = [relationship_view(r, entity_type, entity_id) for r in rows]
        if category is not None:
            views = [v for v in views if v["category"] == category]
        if active_at is not None:
            views = [v for v in views if is_active(v, active_at)]
        return views
