import logging
from typing import Any, Dict, List

from ledgergraph.errors import StoreUnavailable
from ledgergraph.services.graph.dynamics import get_flows_touching, get_stocks_by_entity

logger = logging.getLogger(__name__)


def project_stocks(stocks: List[Dict[str, Any]], flows: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """One Euler step (dt = 1) of net flow per stock.

    A flow drains its source stock and fills its target stock at current_rate;
    a missing rate counts as 0 and an end outside ``stocks`` is ignored. The
    projection is not clamped to min_value/max_value; ``within_bounds`` reports
    whether it stays inside them.
    """
    inflow = {s["id"]: 0 for s in stocks}
    outflow = {s["id"]: 0 for s in stocks}
    for f in flows:
        rate = f.get("current_rate") or 0
        if f.get("target_stock_id") in inflow:
            inflow[f["target_stock_id"]] += rate
        if f.get("source_stock_id") in outflow:
            outflow[f["source_stock_id"]] += rate

    out = []
    for s in stocks:
        current = s.get("current_value") or 0
        projected = current + inflow[s["id"]] - outflow[s["id"]]
        lo, hi = s.get("min_value"), s.get("max_value")
        within = (lo is None or projected >= lo) and (hi is None or projected <= hi)
        out.append(
            {
                "stock_id": s["id"],
                "stock_name": s.get("stock_name"),
                "current_value": current,
                "unit": s.get("unit"),
                "total_inflow": inflow[s["id"]],
                "total_outflow": outflow[s["id"]],
                "projected_value": projected,
                "within_bounds": within,
            }
        )
    return out


class StockFlowProjector:
    def __init__(self, store):
        self.store = store

    def get_stock_flow_dynamics(self, entity_type: str, entity_id: int) -> List[Dict[str, Any]]:
        """Net inflow, outflow and next-step value for every stock the entity owns."""
        try:
            stocks = get_stocks_by_entity(self.store, entity_type, entity_id)
            if not stocks:
                return []
            flows = get_flows_touching(self.store, [s["id"] for s in stocks])
        except StoreUnavailable as exc:
            logger.warning("Stock-flow dynamics for %s:%s unavailable: %s", entity_type, entity_id, exc)
            return []
        projections = project_stocks(stocks, flows)
        for p in projections:
            if not p["within_bounds"]:
                logger.info("Stock %s projected to %s, outside its bounds", p["stock_id"], p["projected_value"])
        return projections
