import logging
from typing import Any, Dict, Iterable, List

from ledgergraph.errors import InvalidArgument, NotFound
from ledgergraph.models.organizations import ShareholdingCreate
from .common import decode_blobs, isoformat, to_json
from .organizations import get_organization

logger = logging.getLogger(__name__)


def create_shareholding(store, data: ShareholdingCreate) -> Dict[str, Any]:
    """Create or update the OWNS edge parent -> child.

    A (parent, child) pair carries at most one shareholding; writing an existing
    pair overwrites its terms.
    """
    if data.parent_org_id == data.child_org_id:
        raise InvalidArgument("An organization cannot hold shares in itself")
    query = (
        "MATCH (p:Organization {id: $parent}), (c:Organization {id: $child}) "
        "MERGE (p)-[s:OWNS]->(c) "
        "SET s.share_percentage = $share, "
        "    s.voting_rights = $voting, "
        "    s.share_class = $share_class, "
        "    s.acquisition_date = $acquired, "
        "    s.attributes = $attributes "
        "RETURN p.id AS parent_org_id, c.id AS child_org_id, s.share_percentage AS share_percentage, "
        "       s.voting_rights AS voting_rights, s.share_class AS share_class, "
        "       s.acquisition_date AS acquisition_date, s.attributes AS attributes"
    )
    res = store.run(
        query,
        {
            "parent": data.parent_org_id,
            "child": data.child_org_id,
            "share": data.share_percentage,
            "voting": data.voting_rights,
            "share_class": data.share_class,
            "acquired": isoformat(data.acquisition_date),
            "attributes": to_json(data.attributes),
        },
    )
    if not res:
        if not get_organization(store, data.parent_org_id):
            raise NotFound("organization", data.parent_org_id)
        raise NotFound("organization", data.child_org_id)
    logger.info(
        "Shareholding %s -> %s set to %s bps", data.parent_org_id, data.child_org_id, data.share_percentage
    )
    return decode_blobs(res[0], ["attributes"])


def delete_shareholding(store, parent_org_id: int, child_org_id: int) -> bool:
    res = store.run(
        (
            "MATCH (:Organization {id: $parent})-[s:OWNS]->(:Organization {id: $child}) "
            "DELETE s RETURN count(*) AS deleted"
        ),
        {"parent": parent_org_id, "child": child_org_id},
    )
    return bool(res and res[0].get("deleted"))


def get_shareholders(store, org_id: int) -> List[Dict[str, Any]]:
    """Organizations holding shares in ``org_id`` (multi-parent ownership)."""
    rows = store.run(
        (
            "MATCH (p:Organization)-[s:OWNS]->(:Organization {id: $id}) "
            "RETURN p.id AS parent_id, p.name AS parent_name, s.share_percentage AS share_percentage, "
            "       s.voting_rights AS voting_rights, s.share_class AS share_class, "
            "       s.acquisition_date AS acquisition_date "
            "ORDER BY s.share_percentage DESC, p.id"
        ),
        {"id": org_id},
    )
    return rows or []


def get_subsidiaries(store, org_id: int) -> List[Dict[str, Any]]:
    """Organizations in which ``org_id`` holds shares directly."""
    rows = store.run(
        (
            "MATCH (:Organization {id: $id})-[s:OWNS]->(c:Organization) "
            "RETURN c.id AS child_id, c.name AS child_name, s.share_percentage AS share_percentage, "
            "       s.voting_rights AS voting_rights, s.share_class AS share_class, "
            "       s.acquisition_date AS acquisition_date "
            "ORDER BY s.share_percentage DESC, c.id"
        ),
        {"id": org_id},
    )
    return rows or []


def get_holdings_of(store, parent_ids: Iterable[int]) -> List[Dict[str, Any]]:
    """Direct OWNS edges leaving any organization in ``parent_ids``; one traversal frontier."""
    ids = sorted(set(parent_ids))
    if not ids:
        return []
    rows = store.run(
        (
            "MATCH (p:Organization)-[s:OWNS]->(c:Organization) "
            "WHERE p.id IN $parent_ids "
            "RETURN p.id AS parent_org_id, c.id AS child_org_id, c.name AS child_name, "
            "       s.share_percentage AS share_percentage "
            "ORDER BY p.id, c.id"
        ),
        {"parent_ids": ids},
    )
    return rows or []
