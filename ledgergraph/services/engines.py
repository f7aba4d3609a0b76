from dataclasses import dataclass
from typing import Optional

from ledgergraph.config import DEFAULT_MAX_OWNERSHIP_DEPTH, Settings
from ledgergraph.services.debt_service import DebtPaymentEngine
from ledgergraph.services.dynamics_service import StockFlowProjector
from ledgergraph.services.hypergraph_service import HypergraphNeighborhoodEngine
from ledgergraph.services.ownership_service import OwnershipResolver
from ledgergraph.services.relationship_service import RelationshipQueryEngine


@dataclass
class Engines:
    ownership: OwnershipResolver
    relationships: RelationshipQueryEngine
    hypergraph: HypergraphNeighborhoodEngine
    dynamics: StockFlowProjector
    debts: DebtPaymentEngine


def build_engines(store, settings: Optional[Settings] = None) -> Engines:
    """Wire every engine to one store handle."""
    max_depth = settings.max_ownership_depth if settings else DEFAULT_MAX_OWNERSHIP_DEPTH
    return Engines(
        ownership=OwnershipResolver(store, max_depth=max_depth),
        relationships=RelationshipQueryEngine(store),
        hypergraph=HypergraphNeighborhoodEngine(store),
        dynamics=StockFlowProjector(store),
        debts=DebtPaymentEngine(store),
    )
