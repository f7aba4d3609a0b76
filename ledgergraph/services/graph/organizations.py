import logging
from typing import Any, Callable, Dict, List, Optional

from ledgergraph.errors import InvalidArgument, NotFound
from ledgergraph.models.organizations import OrganizationCreate, OrganizationUpdate
from .common import next_id, isoformat, utcnow

logger = logging.getLogger(__name__)

# Upper bound on ancestor walks; a longer chain means the tree is already corrupt.
MAX_TREE_DEPTH = 10000


def create_organization(store, data: OrganizationCreate) -> Dict[str, Any]:
    if data.parent_id is not None and not get_organization(store, data.parent_id):
        raise NotFound("organization", data.parent_id)
    query = (
        next_id("Organization")
        + "CREATE (o:Organization {id: seq.value, name: $name, owner_id: $owner_id, "
        "parent_id: $parent_id, description: $description, created_at: $now}) "
        "RETURN o {.*} AS organization"
    )
    res = store.run(
        query,
        {
            "name": data.name,
            "owner_id": data.owner_id,
            "parent_id": data.parent_id,
            "description": data.description,
            "now": isoformat(utcnow()),
        },
    )
    org = res[0]["organization"] if res else {}
    logger.info("Created organization %s", org.get("id"))
    return org


def get_organization(store, org_id: int) -> Dict[str, Any]:
    """Fetch a single Organization by id. Returns empty dict if not found."""
    res = store.run("MATCH (o:Organization {id: $id}) RETURN o {.*} AS organization", {"id": org_id})
    return res[0]["organization"] if res else {}


def list_organizations(store, owner_id: int) -> List[Dict[str, Any]]:
    rows = store.run(
        "MATCH (o:Organization {owner_id: $owner_id}) RETURN o {.*} AS organization ORDER BY o.id",
        {"owner_id": owner_id},
    )
    return [r["organization"] for r in rows]


def would_create_cycle(org_id: int, new_parent_id: Optional[int], parent_of: Callable[[int], Optional[int]]) -> bool:
    """True if making ``new_parent_id`` the parent of ``org_id`` closes a loop.

    ``parent_of`` returns the current parent id of an organization (or None).
    Walks up from the proposed parent; reaching ``org_id`` means a cycle.
    """
    if new_parent_id is None:
        return False
    seen = set()
    current: Optional[int] = new_parent_id
    steps = 0
    while current is not None:
        if current == org_id:
            return True
        if current in seen:
            # Pre-existing loop above us that doesn't include org_id.
            return False
        seen.add(current)
        steps += 1
        if steps > MAX_TREE_DEPTH:
            return False
        current = parent_of(current)
    return False


def _parent_lookup(tx) -> Callable[[int], Optional[int]]:
    """Parent reads that write-lock each visited organization until commit."""

    def parent_of(oid: int) -> Optional[int]:
        rows = tx.run(
            (
                "MATCH (o:Organization {id: $id}) "
                "SET o.lock_version = coalesce(o.lock_version, 0) + 1 "
                "RETURN o.parent_id AS parent_id"
            ),
            {"id": oid},
        )
        return rows[0].get("parent_id") if rows else None

    return parent_of


def update_organization(store, org_id: int, data: OrganizationUpdate) -> Dict[str, Any]:
    """Apply a partial update. Re-parenting is checked against the tree inside the write transaction."""
    fields = data.model_dump(exclude_unset=True)
    if not fields:
        org = get_organization(store, org_id)
        if not org:
            raise NotFound("organization", org_id)
        return org

    def _work(tx):
        rows = tx.run(
            (
                "MATCH (o:Organization {id: $id}) "
                "SET o.lock_version = coalesce(o.lock_version, 0) + 1 "
                "RETURN o.id AS id"
            ),
            {"id": org_id},
        )
        if not rows:
            raise NotFound("organization", org_id)
        if "parent_id" in fields and fields["parent_id"] is not None:
            parent_id = fields["parent_id"]
            if not tx.run("MATCH (p:Organization {id: $id}) RETURN p.id AS id", {"id": parent_id}):
                raise NotFound("organization", parent_id)
            if would_create_cycle(org_id, parent_id, _parent_lookup(tx)):
                raise InvalidArgument(
                    f"Setting parent of organization {org_id} to {parent_id} would create a cycle"
                )
        res = tx.run(
            "MATCH (o:Organization {id: $id}) SET o += $fields RETURN o {.*} AS organization",
            {"id": org_id, "fields": fields},
        )
        return res[0]["organization"]

    org = store.execute_write(_work)
    logger.info("Updated organization %s fields=%s", org_id, sorted(fields))
    return org


def delete_organization(store, org_id: int) -> bool:
    """Delete an organization with its shareholding edges; children are detached from it."""
    res = store.run(
        (
            "MATCH (o:Organization {id: $id}) "
            "OPTIONAL MATCH (child:Organization {parent_id: $id}) "
            "SET child.parent_id = null "
            "WITH DISTINCT o "
            "DETACH DELETE o "
            "RETURN count(*) AS deleted"
        ),
        {"id": org_id},
    )
    deleted = bool(res and res[0].get("deleted"))
    if deleted:
        logger.info("Deleted organization %s", org_id)
    return deleted


def build_hierarchy(organizations: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """Arrange a flat organization list into a forest using parent_id.

    Organizations whose parent is missing from the list become roots. Members of
    a parent_id loop (legacy data) are emitted as roots so nothing is dropped.
    """
    by_id = {o["id"]: {**o, "children": []} for o in organizations}
    roots: List[Dict[str, Any]] = []
    for oid, node in by_id.items():
        pid = node.get("parent_id")
        if pid is not None and pid in by_id and pid != oid:
            by_id[pid]["children"].append(node)
        else:
            roots.append(node)

    reachable = set()

    def _mark(start):
        stack = [start]
        while stack:
            n = stack.pop()
            if n["id"] in reachable:
                continue
            reachable.add(n["id"])
            stack.extend(n["children"])

    for root in roots:
        _mark(root)
    # Anything still unreachable sits on a loop; cut it loose and surface it as a root.
    for oid in sorted(by_id):
        if oid in reachable:
            continue
        node = by_id[oid]
        for other in by_id.values():
            other["children"] = [c for c in other["children"] if c["id"] != oid]
        roots.append(node)
        _mark(node)

    roots.sort(key=lambda n: n["id"])
    for node in by_id.values():
        node["children"].sort(key=lambda n: n["id"])
    return roots


def get_organization_hierarchy(store, owner_id: int) -> List[Dict[str, Any]]:
    return build_hierarchy(list_organizations(store, owner_id))
