"""
Edge sources feeding the relation store.

- CsvDumpSource: the generated dataset dump directory (org_memberships.csv, ...)
- database_reader: per-kind readers over the relation_tuples table
- edge_from_tuple_row: one row of a flat relation tuple CSV
"""
import csv
from collections.abc import AsyncIterator, Callable, Iterator
from pathlib import Path

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from accessgraph.features.relations.models import RelationTuple
from accessgraph.features.relations.store import (
    EdgeKind,
    IngestionError,
    RelationEdge,
    edge_kind_of,
)
from accessgraph.features.relations.utils import safe_get, validate_required_fields
from accessgraph.utils import get_logger


log = get_logger(__name__)

TUPLE_COLUMNS = ["subject_kind", "subject_id", "relation", "object_kind", "object_id"]

ORG_ROLES = {
    "admin": EdgeKind.ORG_ADMIN,
    "member": EdgeKind.ORG_MEMBER,
}

GROUP_ROLES = {
    "member": EdgeKind.GROUP_MEMBER,
    "direct_member": EdgeKind.GROUP_MEMBER,
    "manager": EdgeKind.GROUP_MANAGER,
    "direct_manager": EdgeKind.GROUP_MANAGER,
    "admin": EdgeKind.GROUP_MANAGER,
}

HIERARCHY_RELATIONS = {
    "member_group": EdgeKind.GROUP_SUBGROUP_MEMBER,
    "manager_group": EdgeKind.GROUP_SUBGROUP_MANAGER,
}

# (subject_type, relation) -> kind
ACL_RELATIONS = {
    ("user", "manager"): EdgeKind.RESOURCE_MANAGER_USER,
    ("user", "manager_user"): EdgeKind.RESOURCE_MANAGER_USER,
    ("user", "viewer"): EdgeKind.RESOURCE_VIEWER_USER,
    ("user", "viewer_user"): EdgeKind.RESOURCE_VIEWER_USER,
    ("group", "manager"): EdgeKind.RESOURCE_MANAGER_GROUP,
    ("group", "manager_group"): EdgeKind.RESOURCE_MANAGER_GROUP,
    ("group", "viewer"): EdgeKind.RESOURCE_VIEWER_GROUP,
    ("group", "viewer_group"): EdgeKind.RESOURCE_VIEWER_GROUP,
}


def edge_from_tuple_row(row: dict, row_number: int) -> RelationEdge:
    """
    Parse one row of a flat relation tuple CSV.

    Raises:
        IngestionError: If a column is missing or the relation/endpoint kinds are invalid
    """
    errors = validate_required_fields(row, TUPLE_COLUMNS, row_number)
    if errors:
        raise IngestionError("; ".join(errors))
    kind = edge_kind_of(safe_get(row, "relation"))
    subject_kind = safe_get(row, "subject_kind")
    object_kind = safe_get(row, "object_kind")
    if (subject_kind, object_kind) != (kind.subject_kind, kind.object_kind):
        raise IngestionError(
            f"Row {row_number}: {kind.value} expects {kind.subject_kind} -> {kind.object_kind}, "
            f"got {subject_kind} -> {object_kind}"
        )
    return RelationEdge.of(kind, safe_get(row, "subject_id"), safe_get(row, "object_id"))


class CsvDumpSource:
    """
    Relation edges read from a dataset dump directory.

    Required files: org_memberships.csv, group_memberships.csv, resources.csv,
    resource_acl.csv. Optional: group_hierarchy.csv, org_member_groups.csv.
    Iterating again re-reads the files from the start.
    """

    def __init__(self, directory: str | Path):
        self.directory = Path(directory)

    def __iter__(self) -> Iterator[RelationEdge]:
        yield from self._org_memberships()
        yield from self._group_memberships()
        yield from self._group_hierarchy()
        yield from self._org_member_groups()
        yield from self._resources()
        yield from self._resource_acl()

    def _rows(self, filename: str, columns: list[str], optional: bool = False) -> Iterator[tuple[int, dict]]:
        path = self.directory / filename
        if not path.exists():
            if optional:
                log.debug("Optional relation file %s not found, skipping", path)
                return
            raise IngestionError(f"Required relation file {path} not found")
        try:
            with path.open(newline="", encoding="utf-8-sig") as f:
                reader = csv.DictReader(f)
                # Start at 2 (header is row 1)
                for row_number, row in enumerate(reader, start=2):
                    errors = validate_required_fields(row, columns, row_number)
                    if errors:
                        raise IngestionError(f"{filename}: {'; '.join(errors)}")
                    yield row_number, row
        except (OSError, csv.Error) as e:
            raise IngestionError(f"Failed reading {path}: {e}") from e

    def _lookup(self, table: dict, key, filename: str, row_number: int) -> EdgeKind:
        try:
            return table[key]
        except KeyError:
            raise IngestionError(f"{filename}: Row {row_number}: unsupported value {key!r}") from None

    def _org_memberships(self) -> Iterator[RelationEdge]:
        filename = "org_memberships.csv"
        for row_number, row in self._rows(filename, ["org_id", "user_id", "role"]):
            kind = self._lookup(ORG_ROLES, safe_get(row, "role").lower(), filename, row_number)
            yield RelationEdge.of(kind, safe_get(row, "user_id"), safe_get(row, "org_id"))

    def _group_memberships(self) -> Iterator[RelationEdge]:
        filename = "group_memberships.csv"
        for row_number, row in self._rows(filename, ["group_id", "user_id", "role"]):
            kind = self._lookup(GROUP_ROLES, safe_get(row, "role").lower(), filename, row_number)
            yield RelationEdge.of(kind, safe_get(row, "user_id"), safe_get(row, "group_id"))

    def _group_hierarchy(self) -> Iterator[RelationEdge]:
        filename = "group_hierarchy.csv"
        columns = ["parent_group_id", "child_group_id", "relation"]
        for row_number, row in self._rows(filename, columns, optional=True):
            kind = self._lookup(HIERARCHY_RELATIONS, safe_get(row, "relation").lower(), filename, row_number)
            # parent includes child: the child is the subject
            yield RelationEdge.of(kind, safe_get(row, "child_group_id"), safe_get(row, "parent_group_id"))

    def _org_member_groups(self) -> Iterator[RelationEdge]:
        filename = "org_member_groups.csv"
        for _, row in self._rows(filename, ["org_id", "group_id"], optional=True):
            yield RelationEdge.of(EdgeKind.ORG_MEMBER_GROUP, safe_get(row, "group_id"), safe_get(row, "org_id"))

    def _resources(self) -> Iterator[RelationEdge]:
        for _, row in self._rows("resources.csv", ["resource_id", "org_id"]):
            yield RelationEdge.of(EdgeKind.RESOURCE_ORG, safe_get(row, "resource_id"), safe_get(row, "org_id"))

    def _resource_acl(self) -> Iterator[RelationEdge]:
        filename = "resource_acl.csv"
        columns = ["resource_id", "subject_type", "subject_id", "relation"]
        for row_number, row in self._rows(filename, columns):
            key = (safe_get(row, "subject_type").lower(), safe_get(row, "relation").lower())
            kind = self._lookup(ACL_RELATIONS, key, filename, row_number)
            yield RelationEdge.of(kind, safe_get(row, "subject_id"), safe_get(row, "resource_id"))


def database_reader(
    session_factory: async_sessionmaker[AsyncSession],
) -> Callable[[EdgeKind], AsyncIterator[RelationEdge]]:
    """
    Build a per-kind reader over relation_tuples for load_store_concurrently.

    Every call opens its own session, so kinds can be read concurrently.
    """
    async def read_kind(kind: EdgeKind) -> AsyncIterator[RelationEdge]:
        async with session_factory() as session:
            stmt = (
                select(RelationTuple)
                .where(RelationTuple.relation == kind.value)
                .order_by(RelationTuple.id)
            )
            result = await session.scalars(stmt)
            for row in result:
                yield row.to_edge()

    return read_kind
