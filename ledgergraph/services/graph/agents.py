import logging
from typing import Any, Dict, List

from ledgergraph.errors import InvalidArgument
from ledgergraph.models.agents import AgentCreate
from .common import decode_blobs, isoformat, next_id, to_json, utcnow

logger = logging.getLogger(__name__)

AGENT_TYPES = ("individual", "collective", "population")
_BLOBS = ("attributes", "state")


def create_agent(store, data: AgentCreate) -> Dict[str, Any]:
    query = (
        next_id("Agent")
        + "CREATE (a:Agent {id: seq.value, entity_id: $entity_id, entity_type: $entity_type, "
        "agent_type: $agent_type, name: $name, attributes: $attributes, state: $state, "
        "behavior_model: $behavior_model, created_at: $now}) "
        "RETURN a {.*} AS agent"
    )
    res = store.run(
        query,
        {
            "entity_id": data.entity_id,
            "entity_type": data.entity_type,
            "agent_type": data.agent_type,
            "name": data.name,
            "attributes": to_json(data.attributes),
            "state": to_json(data.state),
            "behavior_model": data.behavior_model,
            "now": isoformat(utcnow()),
        },
    )
    agent = decode_blobs(res[0]["agent"], _BLOBS) if res else {}
    logger.info("Created %s agent %s for %s:%s", data.agent_type, agent.get("id"), data.entity_type, data.entity_id)
    return agent


def get_agents_by_type(store, agent_type: str) -> List[Dict[str, Any]]:
    if agent_type not in AGENT_TYPES:
        raise InvalidArgument(f"Unknown agent type {agent_type!r}; expected one of {AGENT_TYPES}")
    rows = store.run(
        "MATCH (a:Agent {agent_type: $agent_type}) RETURN a {.*} AS agent ORDER BY a.id",
        {"agent_type": agent_type},
    )
    return [decode_blobs(r["agent"], _BLOBS) for r in rows]


def get_agent_by_entity(store, entity_type: str, entity_id: int) -> Dict[str, Any]:
    res = store.run(
        (
            "MATCH (a:Agent {entity_type: $entity_type, entity_id: $entity_id}) "
            "RETURN a {.*} AS agent ORDER BY a.id LIMIT 1"
        ),
        {"entity_type": entity_type, "entity_id": entity_id},
    )
    return decode_blobs(res[0]["agent"], _BLOBS) if res else {}
