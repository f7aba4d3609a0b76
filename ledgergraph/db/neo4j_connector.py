import logging
from contextlib import contextmanager
from typing import Any, Callable, Dict, Iterator, List, Optional

from neo4j import GraphDatabase
from neo4j.exceptions import AuthError, DatabaseUnavailable, ServiceUnavailable, SessionExpired

from ledgergraph.config import Settings, load_settings
from ledgergraph.errors import StoreUnavailable

logger = logging.getLogger(__name__)

_UNAVAILABLE = (ServiceUnavailable, SessionExpired, DatabaseUnavailable)


class Transaction:
    """Thin wrapper over a managed Neo4j transaction returning plain dict rows."""

    def __init__(self, tx):
        self._tx = tx

    def run(self, query: str, parameters: Optional[dict] = None) -> List[Dict[str, Any]]:
        result = self._tx.run(query, parameters or {})
        return [record.data() for record in result]


class GraphStore:
    """Handle on the Neo4j entity store.

    Constructed once by the process entry point and passed to every repository
    function and engine. It holds no cache; each call is one round trip.
    """

    def __init__(self, driver, database: Optional[str] = None):
        self._driver = driver
        self._database = database

    def _session(self):
        if self._database:
            return self._driver.session(database=self._database)
        return self._driver.session()

    def run(self, query: str, parameters: Optional[dict] = None) -> List[Dict[str, Any]]:
        """Run a Cypher statement in an auto-commit transaction and return records as dicts."""
        try:
            with self._session() as session:
                result = session.run(query, parameters or {})
                return [record.data() for record in result]
        except _UNAVAILABLE as exc:
            raise StoreUnavailable(f"Neo4j is unavailable: {exc}") from exc

    def execute_write(self, work: Callable[..., Any], *args, **kwargs) -> Any:
        """Run ``work(tx, *args, **kwargs)`` inside one managed write transaction.

        The driver may retry ``work`` on transient failures, so it must not have
        side effects outside the transaction.
        """
        def _unit(tx):
            return work(Transaction(tx), *args, **kwargs)

        try:
            with self._session() as session:
                return session.execute_write(_unit)
        except _UNAVAILABLE as exc:
            raise StoreUnavailable(f"Neo4j is unavailable: {exc}") from exc

    def verify_connectivity(self) -> None:
        self._driver.verify_connectivity()

    def close(self) -> None:
        self._driver.close()


def create_store(settings: Settings) -> GraphStore:
    try:
        driver = GraphDatabase.driver(settings.neo4j_uri, auth=(settings.neo4j_user, settings.neo4j_password))
    except Exception as exc:
        raise StoreUnavailable(
            f"Failed to create Neo4j driver for URI '{settings.neo4j_uri}'. "
            f"Check that the database is running and the credentials are correct.\nError: {exc}"
        ) from exc
    return GraphStore(driver, database=settings.neo4j_database)


@contextmanager
def open_store(settings: Optional[Settings] = None, verify: bool = True) -> Iterator[GraphStore]:
    """Open a GraphStore for the lifetime of the ``with`` block and close it afterwards."""
    settings = settings or load_settings()
    store = create_store(settings)
    try:
        if verify:
            try:
                store.verify_connectivity()
            except (AuthError, *_UNAVAILABLE) as exc:
                raise StoreUnavailable(f"Cannot connect to Neo4j at {settings.neo4j_uri}: {exc}") from exc
        logger.debug("Opened Neo4j store at %s", settings.neo4j_uri)
        yield store
    finally:
        store.close()
