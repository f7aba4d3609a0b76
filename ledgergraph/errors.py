"""Error taxonomy shared by the store, the repositories and the engines.

Read engines catch ``StoreUnavailable`` and degrade to an empty result;
write paths let every error propagate to the caller.
"""


class LedgerGraphError(Exception):
    """Base class for all LedgerGraph errors."""


class StoreUnavailable(LedgerGraphError, RuntimeError):
    """The Neo4j entity store cannot be reached."""


class NotFound(LedgerGraphError, LookupError):
    """A referenced entity (debt, stock, node, hyperedge, ...) does not exist."""

    def __init__(self, kind: str, entity_id):
        super().__init__(f"{kind} {entity_id!r} not found")
        self.kind = kind
        self.entity_id = entity_id


class InvalidArgument(LedgerGraphError, ValueError):
    """An argument is out of range and was rejected before any store access."""
