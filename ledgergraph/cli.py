from __future__ import annotations

import argparse
import json
import logging
import sys
from datetime import date, datetime
from typing import Callable, Optional

from ledgergraph.config import load_settings
from ledgergraph.db.neo4j_connector import open_store
from ledgergraph.db.schema import ensure_schema
from ledgergraph.errors import LedgerGraphError
from ledgergraph.services.engines import build_engines
from ledgergraph.services.graph import get_causal_chain, get_event_timeline, get_organization_hierarchy

logger = logging.getLogger(__name__)


def _parse_date(value: str) -> date:
    try:
        return date.fromisoformat(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"expected YYYY-MM-DD, got {value!r}") from None


def _parse_datetime(value: str) -> datetime:
    try:
        return datetime.fromisoformat(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"expected an ISO-8601 timestamp, got {value!r}") from None


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="ledgergraph", description="Query the LedgerGraph relationship layer")
    sub = parser.add_subparsers(dest="cmd", required=True)

    sub.add_parser("init-schema", help="Create Neo4j constraints")

    own = sub.add_parser("ownership", help="Effective ownership through shareholding chains")
    own.add_argument("org_id", type=int)
    own.add_argument("--max-depth", type=int, default=None)
    own.add_argument("--aggregate", action="store_true", help="Sum chains per descendant")

    rel = sub.add_parser("relationships", help="Typed relationships of an entity, both directions")
    rel.add_argument("entity_type", choices=["organization", "user", "agent"])
    rel.add_argument("entity_id", type=int)
    rel.add_argument("--active-at", type=_parse_datetime, default=None)
    rel.add_argument("--category", default=None)

    hyp = sub.add_parser("neighborhood", help="Hyperedges incident to a hypergraph node")
    hyp.add_argument("node_id", type=int)

    dyn = sub.add_parser("dynamics", help="One-step stock-flow projection for an entity")
    dyn.add_argument("entity_type")
    dyn.add_argument("entity_id", type=int)

    pay = sub.add_parser("pay", help="Record a payment against a debt")
    pay.add_argument("debt_id", type=int)
    pay.add_argument("amount", type=int, help="Minor currency units (cents)")
    pay.add_argument("--date", type=_parse_date, default=None, help="Payment date, defaults to today")
    pay.add_argument("--notes", default=None)

    debt = sub.add_parser("debt", help="Show a debt and its payments")
    debt.add_argument("debt_id", type=int)

    hier = sub.add_parser("hierarchy", help="Organization tree of an owner")
    hier.add_argument("owner_id", type=int)

    ev = sub.add_parser("events", help="Event timeline of an entity")
    ev.add_argument("entity_type")
    ev.add_argument("entity_id", type=int)

    chain = sub.add_parser("causes", help="Causal chain leading to an event")
    chain.add_argument("event_id", type=int)

    return parser


def run_command(args, store, settings=None):
    engines = build_engines(store, settings)
    if args.cmd == "init-schema":
        return {"statements": ensure_schema(store)}
    if args.cmd == "ownership":
        if args.aggregate:
            return engines.ownership.aggregate_effective_ownership(args.org_id, args.max_depth)
        return engines.ownership.get_effective_ownership(args.org_id, args.max_depth)
    if args.cmd == "relationships":
        return engines.relationships.get_relationships_by_entity(
            args.entity_type, args.entity_id, active_at=args.active_at, category=args.category
        )
    if args.cmd == "neighborhood":
        return engines.hypergraph.get_hypergraph_neighborhood(args.node_id)
    if args.cmd == "dynamics":
        return engines.dynamics.get_stock_flow_dynamics(args.entity_type, args.entity_id)
    if args.cmd == "pay":
        return engines.debts.add_payment(args.debt_id, args.amount, args.date or date.today(), args.notes)
    if args.cmd == "debt":
        return {"debt": engines.debts.get_debt_by_id(args.debt_id), "payments": engines.debts.get_payments(args.debt_id)}
    if args.cmd == "hierarchy":
        return get_organization_hierarchy(store, args.owner_id)
    if args.cmd == "events":
        return get_event_timeline(store, args.entity_type, args.entity_id)
    if args.cmd == "causes":
        return get_causal_chain(store, args.event_id)
    raise ValueError(f"unknown command {args.cmd!r}")


def main(argv: Optional[list] = None, store_factory: Callable = open_store) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        settings = load_settings()
    except (RuntimeError, ValueError) as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 2
    logging.basicConfig(level=settings.log_level, format="%(asctime)s %(levelname)s %(name)s: %(message)s")

    try:
        with store_factory(settings) as store:
            result = run_command(args, store, settings)
    except LedgerGraphError as exc:
        logger.debug("Command %s failed", args.cmd, exc_info=True)
        print(f"error: {exc}", file=sys.stderr)
        return 1

    print(json.dumps(result, indent=2, ensure_ascii=False, default=str))
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
