import logging
from collections import defaultdict
from typing import Any, Callable, Dict, List, Optional

from ledgergraph.config import DEFAULT_MAX_OWNERSHIP_DEPTH
from ledgergraph.errors import InvalidArgument, StoreUnavailable
from ledgergraph.models.common import BASIS_POINTS_SCALE
from ledgergraph.services.graph.shareholding import get_holdings_of

logger = logging.getLogger(__name__)

# Rows below 1% are not reported.
MIN_REPORTED_OWNERSHIP = 100


class OwnershipResolver:
    """Look-through ownership over the OWNS (shareholding) graph.

    Effective ownership along a chain is the product of the share percentages
    on it, in basis points: ``E * share // 10000`` per hop. Since a share never
    exceeds 10000 the product never grows along a chain, which lets the walk
    drop a branch as soon as it falls under the reporting threshold.

    The ownership graph may contain cross-shareholding cycles. They are not
    detected; the walk is simply cut off at ``max_depth``.
    """

    def __init__(
        self,
        store,
        max_depth: int = DEFAULT_MAX_OWNERSHIP_DEPTH,
        holdings_fn: Callable[..., List[Dict[str, Any]]] = get_holdings_of,
    ):
        self.store = store
        self.max_depth = max_depth
        self._holdings = holdings_fn

    def _depth_limit(self, max_depth: Optional[int]) -> int:
        limit = self.max_depth if max_depth is None else max_depth
        if not isinstance(limit, int) or isinstance(limit, bool) or limit <= 0:
            raise InvalidArgument(f"max_depth must be a positive integer, got {limit!r}")
        return limit

    def _walk(self, root_id: int, depth_limit: int, min_bps: int, simple_paths: bool) -> List[Dict[str, Any]]:
        """Breadth-wise expansion, one store round trip per depth level.

        Returns one row per path (not per descendant).
        """
        frontier = [{"descendant_id": root_id, "effective_ownership": BASIS_POINTS_SCALE, "path": [root_id]}]
        rows: List[Dict[str, Any]] = []
        depth = 0
        while frontier and depth < depth_limit:
            depth += 1
            edges = self._holdings(self.store, {p["descendant_id"] for p in frontier})
            by_parent = defaultdict(list)
            for e in edges:
                by_parent[e["parent_org_id"]].append(e)

            next_frontier = []
            for p in frontier:
                for e in by_parent.get(p["descendant_id"], ()):
                    child = e["child_org_id"]
                    if simple_paths and child in p["path"]:
                        continue
                    eff = p["effective_ownership"] * (e.get("share_percentage") or 0) // BASIS_POINTS_SCALE
                    if eff < min_bps:
                        continue
                    path = p["path"] + [child]
                    row = {
                        "descendant_id": child,
                        "descendant_name": e.get("child_name"),
                        "effective_ownership": eff,
                        "depth": depth,
                        "path": path,
                        "chain": "->".join(str(x) for x in path),
                    }
                    rows.append(row)
                    next_frontier.append(row)
            frontier = next_frontier

        if frontier:
            logger.debug("Ownership walk from %s truncated at depth %d with %d open paths", root_id, depth, len(frontier))
        return rows

    def get_effective_ownership(self, parent_org_id: int, max_depth: Optional[int] = None) -> List[Dict[str, Any]]:
        """Every ownership chain from ``parent_org_id`` worth at least 1%.

        Multiple chains reaching the same descendant are reported as separate
        rows; see ``aggregate_effective_ownership`` for the per-descendant sum.
        Sorted by effective ownership descending, then depth, then chain.
        Returns [] when the store is unavailable.
        """
        depth_limit = self._depth_limit(max_depth)
        try:
            rows = self._walk(parent_org_id, depth_limit, MIN_REPORTED_OWNERSHIP, simple_paths=False)
        except StoreUnavailable as exc:
            logger.warning("Effective ownership for %s unavailable: %s", parent_org_id, exc)
            return []
        rows.sort(key=lambda r: (-r["effective_ownership"], r["depth"], r["chain"]))
        return rows

    def aggregate_effective_ownership(self, parent_org_id: int, max_depth: Optional[int] = None) -> List[Dict[str, Any]]:
        """Effective ownership summed across all simple chains to each descendant.

        Chains that revisit an organization and chains back to the root are left
        out, so cross-holdings are not counted twice. Every chain with a non-zero
        product contributes, including those under 1% on their own; only the
        summed figure must reach 1% to be reported.
        """
        depth_limit = self._depth_limit(max_depth)
        try:
            rows = self._walk(parent_org_id, depth_limit, 1, simple_paths=True)
        except StoreUnavailable as exc:
            logger.warning("Aggregated ownership for %s unavailable: %s", parent_org_id, exc)
            return []

        totals: Dict[int, Dict[str, Any]] = {}
        for r in rows:
            agg = totals.setdefault(
                r["descendant_id"],
                {
                    "descendant_id": r["descendant_id"],
                    "descendant_name": r["descendant_name"],
                    "effective_ownership": 0,
                    "min_depth": r["depth"],
                    "chains": [],
                },
            )
            agg["effective_ownership"] += r["effective_ownership"]
            agg["min_depth"] = min(agg["min_depth"], r["depth"])
            agg["chains"].append({"chain": r["chain"], "effective_ownership": r["effective_ownership"]})

        out = [a for a in totals.values() if a["effective_ownership"] >= MIN_REPORTED_OWNERSHIP]
        for a in out:
            a["chains"].sort(key=lambda c: (-c["effective_ownership"], c["chain"]))
        out.sort(key=lambda a: (-a["effective_ownership"], a["min_depth"], a["descendant_id"]))
        return out

