"""Discrete event log and the state-transition rule table.

Events are append-only. State transitions are configuration data: nothing
here evaluates conditions or applies actions.
"""
import logging
from typing import Any, Dict, List

from ledgergraph.errors import InvalidArgument, NotFound
from ledgergraph.models.events import EventCreate, StateTransitionCreate
from .common import decode_blobs, isoformat, next_id, to_json, utcnow

logger = logging.getLogger(__name__)

_EVENT_BLOBS = ("state_before", "state_after", "event_data")
_TRANSITION_BLOBS = ("conditions", "actions")

DEFAULT_CHAIN_DEPTH = 50


def create_event(store, data: EventCreate) -> Dict[str, Any]:
    if data.caused_by is not None and not get_event(store, data.caused_by):
        raise NotFound("event", data.caused_by)
    query = (
        next_id("Event")
        + "CREATE (e:Event {id: seq.value, event_type: $event_type, timestamp: $timestamp, "
        "source_entity_id: $source_id, source_entity_type: $source_type, "
        "target_entity_id: $target_id, target_entity_type: $target_type, "
        "state_before: $state_before, state_after: $state_after, event_data: $event_data, "
        "caused_by: $caused_by, created_at: $now}) "
        "RETURN e {.*} AS event"
    )
    res = store.run(
        query,
        {
            "event_type": data.event_type,
            "timestamp": isoformat(data.timestamp),
            "source_id": data.source_entity_id,
            "source_type": data.source_entity_type,
            "target_id": data.target_entity_id,
            "target_type": data.target_entity_type,
            "state_before": to_json(data.state_before),
            "state_after": to_json(data.state_after),
            "event_data": to_json(data.event_data),
            "caused_by": data.caused_by,
            "now": isoformat(utcnow()),
        },
    )
    event = decode_blobs(res[0]["event"], _EVENT_BLOBS) if res else {}
    logger.info("Recorded %s event %s", data.event_type, event.get("id"))
    return event


def get_event(store, event_id: int) -> Dict[str, Any]:
    res = store.run("MATCH (e:Event {id: $id}) RETURN e {.*} AS event", {"id": event_id})
    return decode_blobs(res[0]["event"], _EVENT_BLOBS) if res else {}


def get_event_timeline(store, entity_type: str, entity_id: int) -> List[Dict[str, Any]]:
    """Events targeting an entity, oldest first."""
    rows = store.run(
        (
            "MATCH (e:Event {target_entity_type: $entity_type, target_entity_id: $entity_id}) "
            "RETURN e {.*} AS event ORDER BY e.timestamp, e.id"
        ),
        {"entity_type": entity_type, "entity_id": entity_id},
    )
    return [decode_blobs(r["event"], _EVENT_BLOBS) for r in rows]


def get_causal_chain(store, event_id: int, max_depth: int = DEFAULT_CHAIN_DEPTH) -> List[Dict[str, Any]]:
    """Follow ``caused_by`` back from ``event_id``; the event itself comes first.

    caused_by links are not guaranteed acyclic, so the walk stops at the first
    revisited id or after ``max_depth`` hops.
    """
    if max_depth <= 0:
        raise InvalidArgument("max_depth must be positive")
    chain: List[Dict[str, Any]] = []
    seen = set()
    current = event_id
    while current is not None and current not in seen and len(chain) <= max_depth:
        event = get_event(store, current)
        if not event:
            break
        seen.add(current)
        chain.append(event)
        current = event.get("caused_by")
    return chain


def create_state_transition(store, data: StateTransitionCreate) -> Dict[str, Any]:
    query = (
        next_id("StateTransition")
        + "CREATE (t:StateTransition {id: seq.value, entity_type: $entity_type, from_state: $from_state, "
        "to_state: $to_state, event_type: $event_type, conditions: $conditions, actions: $actions, "
        "probability: $probability, created_at: $now}) "
        "RETURN t {.*} AS transition"
    )
    res = store.run(
        query,
        {
            "entity_type": data.entity_type,
            "from_state": data.from_state,
            "to_state": data.to_state,
            "event_type": data.event_type,
            "conditions": to_json(data.conditions),
            "actions": to_json(data.actions),
            "probability": data.probability,
            "now": isoformat(utcnow()),
        },
    )
    return decode_blobs(res[0]["transition"], _TRANSITION_BLOBS) if res else {}


def get_valid_transitions(store, entity_type: str, from_state: str) -> List[Dict[str, Any]]:
    rows = store.run(
        (
            "MATCH (t:StateTransition {entity_type: $entity_type, from_state: $from_state}) "
            "RETURN t {.*} AS transition ORDER BY t.id"
        ),
        {"entity_type": entity_type, "from_state": from_state},
    )
    return [decode_blobs(r["transition"], _TRANSITION_BLOBS) for r in rows]
