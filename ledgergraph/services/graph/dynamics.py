import logging
from typing import Any, Dict, Iterable, List

from ledgergraph.errors import InvalidArgument, NotFound
from ledgergraph.models.dynamics import FlowCreate, SimulationRunCreate, SimulationRunUpdate, StockCreate
from .common import decode_blobs, isoformat, next_id, to_json, utcnow

logger = logging.getLogger(__name__)

_RUN_BLOBS = ("parameters", "results")


def create_stock(store, data: StockCreate) -> Dict[str, Any]:
    query = (
        next_id("Stock")
        + "CREATE (s:Stock {id: seq.value, entity_type: $entity_type, entity_id: $entity_id, "
        "stock_name: $stock_name, current_value: $current_value, unit: $unit, min_value: $min_value, "
        "max_value: $max_value, initial_value: $initial_value, attributes: $attributes, "
        "created_at: $now, last_updated: $now}) "
        "RETURN s {.*} AS stock"
    )
    params = data.model_dump(exclude={"attributes"})
    if params["initial_value"] is None:
        params["initial_value"] = data.current_value
    params.update({"attributes": to_json(data.attributes), "now": isoformat(utcnow())})
    res = store.run(query, params)
    stock = decode_blobs(res[0]["stock"], ["attributes"]) if res else {}
    logger.info("Created stock %s %r for %s:%s", stock.get("id"), data.stock_name, data.entity_type, data.entity_id)
    return stock


def get_stock(store, stock_id: int) -> Dict[str, Any]:
    res = store.run("MATCH (s:Stock {id: $id}) RETURN s {.*} AS stock", {"id": stock_id})
    return decode_blobs(res[0]["stock"], ["attributes"]) if res else {}


def get_stocks_by_entity(store, entity_type: str, entity_id: int) -> List[Dict[str, Any]]:
    rows = store.run(
        (
            "MATCH (s:Stock {entity_type: $entity_type, entity_id: $entity_id}) "
            "RETURN s {.*} AS stock ORDER BY s.id"
        ),
        {"entity_type": entity_type, "entity_id": entity_id},
    )
    return [decode_blobs(r["stock"], ["attributes"]) for r in rows]


def create_flow(store, data: FlowCreate) -> Dict[str, Any]:
    """Create a flow; referenced stocks must exist. A null end is an exogenous source/sink."""
    for stock_id in (data.source_stock_id, data.target_stock_id):
        if stock_id is not None and not get_stock(store, stock_id):
            raise NotFound("stock", stock_id)
    query = (
        next_id("Flow")
        + "CREATE (f:Flow {id: seq.value, flow_name: $flow_name, source_stock_id: $source_stock_id, "
        "target_stock_id: $target_stock_id, flow_type: $flow_type, rate_formula: $rate_formula, "
        "current_rate: $current_rate, unit: $unit, attributes: $attributes, "
        "created_at: $now, last_updated: $now}) "
        "RETURN f {.*} AS flow"
    )
    params = data.model_dump(exclude={"attributes"})
    params.update({"attributes": to_json(data.attributes), "now": isoformat(utcnow())})
    res = store.run(query, params)
    flow = decode_blobs(res[0]["flow"], ["attributes"]) if res else {}
    if data.source_stock_id is None and data.target_stock_id is None:
        logger.warning("Flow %s %r is attached to no stock and will not affect any projection", flow.get("id"), data.flow_name)
    return flow


def get_flows_by_stock(store, stock_id: int) -> List[Dict[str, Any]]:
    rows = store.run(
        (
            "MATCH (f:Flow) WHERE f.source_stock_id = $id OR f.target_stock_id = $id "
            "RETURN f {.*} AS flow ORDER BY f.id"
        ),
        {"id": stock_id},
    )
    return [decode_blobs(r["flow"], ["attributes"]) for r in rows]


def get_flows_touching(store, stock_ids: Iterable[int]) -> List[Dict[str, Any]]:
    """Flows with either end among ``stock_ids``; each flow appears once."""
    ids = sorted(set(stock_ids))
    if not ids:
        return []
    rows = store.run(
        (
            "MATCH (f:Flow) WHERE f.source_stock_id IN $ids OR f.target_stock_id IN $ids "
            "RETURN f.id AS id, f.source_stock_id AS source_stock_id, f.target_stock_id AS target_stock_id, "
            "       f.current_rate AS current_rate "
            "ORDER BY f.id"
        ),
        {"ids": ids},
    )
    return rows or []


def create_simulation_run(store, data: SimulationRunCreate) -> Dict[str, Any]:
    if data.end_time < data.start_time:
        raise InvalidArgument("end_time must not precede start_time")
    query = (
        next_id("SimulationRun")
        + "CREATE (r:SimulationRun {id: seq.value, run_name: $run_name, start_time: $start_time, "
        "end_time: $end_time, time_step: $time_step, parameters: $parameters, results: null, "
        "status: 'running', created_at: $now, completed_at: null}) "
        "RETURN r {.*} AS run"
    )
    res = store.run(
        query,
        {
            "run_name": data.run_name,
            "start_time": isoformat(data.start_time),
            "end_time": isoformat(data.end_time),
            "time_step": data.time_step,
            "parameters": to_json(data.parameters),
            "now": isoformat(utcnow()),
        },
    )
    return decode_blobs(res[0]["run"], _RUN_BLOBS) if res else {}


def update_simulation_run(store, run_id: int, data: SimulationRunUpdate) -> Dict[str, Any]:
    fields = data.model_dump(exclude_unset=True)
    if "results" in fields:
        fields["results"] = to_json(fields["results"])
    if "completed_at" in fields:
        fields["completed_at"] = isoformat(fields["completed_at"])
    elif fields.get("status") in ("completed", "failed"):
        fields["completed_at"] = isoformat(utcnow())
    res = store.run(
        "MATCH (r:SimulationRun {id: $id}) SET r += $fields RETURN r {.*} AS run",
        {"id": run_id, "fields": fields},
    )
    if not res:
        raise NotFound("simulation run", run_id)
    return decode_blobs(res[0]["run"], _RUN_BLOBS)


def get_simulation_runs(store, limit: int = 10) -> List[Dict[str, Any]]:
    if limit <= 0:
        raise InvalidArgument("limit must be positive")
    rows = store.run(
        "MATCH (r:SimulationRun) RETURN r {.*} AS run ORDER BY r.created_at DESC, r.id DESC LIMIT $limit",
        {"limit": limit},
    )
    return [decode_blobs(r["run"], _RUN_BLOBS) for r in rows]
