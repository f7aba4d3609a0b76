"""LedgerGraph: organization finance records with a hypergraph relationship layer."""

__version__ = "0.1.0"
