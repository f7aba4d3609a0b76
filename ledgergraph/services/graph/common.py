"""Helpers shared by the repository modules.

Integer ids come from one ``Sequence`` node per label, bumped in the same
statement that creates the entity. Opaque blobs are stored as JSON text
because Neo4j properties cannot hold maps.
"""
import json
from datetime import date, datetime, timezone
from typing import Any, Dict, Iterable, Optional, Union


def next_id(label: str, var: str = "seq") -> str:
    """Cypher fragment binding ``<var>.value`` to the next id for ``label``."""
    return (
        f"MERGE ({var}:Sequence {{name: '{label}'}}) "
        f"SET {var}.value = coalesce({var}.value, 0) + 1 "
    )


def to_json(value: Optional[Any]) -> Optional[str]:
    if value is None:
        return None
    return json.dumps(value, ensure_ascii=False)


def from_json(value: Optional[str]) -> Optional[Any]:
    if value is None or value == "":
        return None
    if not isinstance(value, str):
        return value
    return json.loads(value)


def decode_blobs(row: Dict[str, Any], fields: Iterable[str]) -> Dict[str, Any]:
    """Return a copy of ``row`` with the named JSON text properties decoded."""
    out = dict(row)
    for f in fields:
        if f in out:
            out[f] = from_json(out[f])
    return out


def isoformat(value: Optional[Union[date, datetime, str]]) -> Optional[str]:
    """Normalize dates/datetimes to ISO-8601 text.

    Datetimes are converted to UTC (naive ones are taken as UTC already) so the
    stored text sorts chronologically.
    """
    if value is None or isinstance(value, str):
        return value
    if isinstance(value, datetime):
        if value.tzinfo is None:
            value = value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc).isoformat()
    return value.isoformat()


def parse_datetime(value: Optional[Union[datetime, str]]) -> Optional[datetime]:
    if value is None:
        return None
    if isinstance(value, str):
        value = datetime.fromisoformat(value)
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value


def utcnow() -> datetime:
    return datetime.now(timezone.utc)
