import logging
from typing import List

logger = logging.getLogger(__name__)

ID_LABELS = (
    "Organization",
    "Agent",
    "RelationshipType",
    "Relationship",
    "HypergraphNode",
    "Hyperedge",
    "Event",
    "StateTransition",
    "Stock",
    "Flow",
    "SimulationRun",
    "Debt",
    "DebtPayment",
)


def schema_statements() -> List[str]:
    """Constraint DDL.

    Unique ids per label, unique sequence and relationship type names, and one
    hypergraph node per (node_type, entity_id).
    """
    stmts = [
        "CREATE CONSTRAINT sequence_name IF NOT EXISTS FOR (s:Sequence) REQUIRE s.name IS UNIQUE",
        "CREATE CONSTRAINT relationship_type_name IF NOT EXISTS FOR (t:RelationshipType) REQUIRE t.name IS UNIQUE",
        "CREATE CONSTRAINT hypergraph_node_entity IF NOT EXISTS FOR (n:HypergraphNode) REQUIRE (n.node_type, n.entity_id) IS UNIQUE",
    ]
    for label in ID_LABELS:
        stmts.append(
            f"CREATE CONSTRAINT {label.lower()}_id IF NOT EXISTS FOR (n:{label}) REQUIRE n.id IS UNIQUE"
        )
    return stmts


def ensure_schema(store) -> int:
    """Create missing constraints. Safe to run repeatedly; returns the number of statements issued."""
    stmts = schema_statements()
    for stmt in stmts:
        store.run(stmt)
    logger.info("Ensured %d schema constraints", len(stmts))
    return len(stmts)
