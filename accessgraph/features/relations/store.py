"""
In-memory relation store.

Raw edges are kept per edge kind exactly as ingested: no deduplication and no
reordering. Consumers accumulate into sets, so duplicates are harmless.

A store is rebuilt from scratch on every dataset build and is never mutated
after loading finishes.
"""
import asyncio
import enum
from collections.abc import AsyncIterator, Callable, Iterable, Iterator
from typing import NamedTuple

from accessgraph.utils import get_logger


log = get_logger(__name__)

USER = "user"
GROUP = "group"
ORGANIZATION = "organization"
RESOURCE = "resource"


class IngestionError(Exception):
    """The upstream edge source failed; the whole dataset build is unusable."""


class EdgeKind(str, enum.Enum):
    """Relation vocabulary. The subject is included in (or granted on) the object."""
    ORG_ADMIN = "org-admin"
    ORG_MEMBER = "org-member"
    ORG_MEMBER_GROUP = "org-member-group"
    GROUP_MEMBER = "group-member"
    GROUP_MANAGER = "group-manager"
    GROUP_SUBGROUP_MEMBER = "group-subgroup-member"
    GROUP_SUBGROUP_MANAGER = "group-subgroup-manager"
    RESOURCE_ORG = "resource-org"
    RESOURCE_MANAGER_USER = "resource-manager-user"
    RESOURCE_MANAGER_GROUP = "resource-manager-group"
    RESOURCE_VIEWER_USER = "resource-viewer-user"
    RESOURCE_VIEWER_GROUP = "resource-viewer-group"

    @property
    def subject_kind(self) -> str:
        return _ENDPOINTS[self][0]

    @property
    def object_kind(self) -> str:
        return _ENDPOINTS[self][1]


# kind -> (subject kind, object kind)
_ENDPOINTS: dict[EdgeKind, tuple[str, str]] = {
    EdgeKind.ORG_ADMIN: (USER, ORGANIZATION),
    EdgeKind.ORG_MEMBER: (USER, ORGANIZATION),
    EdgeKind.ORG_MEMBER_GROUP: (GROUP, ORGANIZATION),
    EdgeKind.GROUP_MEMBER: (USER, GROUP),
    EdgeKind.GROUP_MANAGER: (USER, GROUP),
    EdgeKind.GROUP_SUBGROUP_MEMBER: (GROUP, GROUP),
    EdgeKind.GROUP_SUBGROUP_MANAGER: (GROUP, GROUP),
    EdgeKind.RESOURCE_ORG: (RESOURCE, ORGANIZATION),
    EdgeKind.RESOURCE_MANAGER_USER: (USER, RESOURCE),
    EdgeKind.RESOURCE_MANAGER_GROUP: (GROUP, RESOURCE),
    EdgeKind.RESOURCE_VIEWER_USER: (USER, RESOURCE),
    EdgeKind.RESOURCE_VIEWER_GROUP: (GROUP, RESOURCE),
}


class RelationEdge(NamedTuple):
    """A single fact: subject --relation--> object."""
    subject_kind: str
    subject_id: str
    relation: str
    object_kind: str
    object_id: str

    @classmethod
    def of(cls, kind: EdgeKind, subject_id: str, object_id: str) -> "RelationEdge":
        """Build an edge of `kind`, filling in the endpoint kinds it implies."""
        return cls(kind.subject_kind, str(subject_id), kind.value, kind.object_kind, str(object_id))


def edge_kind_of(relation: str) -> EdgeKind:
    """Map a relation name to its EdgeKind, raising IngestionError for unknown names."""
    try:
        return EdgeKind(relation)
    except ValueError:
        raise IngestionError(f"Unknown relation {relation!r}") from None


class EdgeView:
    """Restartable, sized view over the edges of one kind."""

    __slots__ = ("_edges",)

    def __init__(self, edges: list[RelationEdge]):
        self._edges = edges

    def __iter__(self) -> Iterator[RelationEdge]:
        return iter(self._edges)

    def __len__(self) -> int:
        return len(self._edges)

    def __repr__(self) -> str:
        return f"<EdgeView(edges={len(self._edges)})>"


class RelationStore:
    """Raw edges grouped by edge kind."""

    def __init__(self):
        self._edges: dict[EdgeKind, list[RelationEdge]] = {kind: [] for kind in EdgeKind}

    def ingest(self, kind: EdgeKind, edge: RelationEdge) -> None:
        """Append `edge` to the collection of `kind`."""
        if edge.relation != kind.value:
            raise IngestionError(f"Edge relation {edge.relation!r} does not match kind {kind.value!r}")
        if edge.subject_kind != kind.subject_kind or edge.object_kind != kind.object_kind:
            raise IngestionError(
                f"{kind.value} expects {kind.subject_kind} -> {kind.object_kind}, "
                f"got {edge.subject_kind} -> {edge.object_kind}"
            )
        self._edges[kind].append(edge)

    def ingest_edge(self, edge: RelationEdge) -> None:
        """Append `edge` to the collection named by its relation."""
        self.ingest(edge_kind_of(edge.relation), edge)

    def edges_of(self, kind: EdgeKind) -> EdgeView:
        return EdgeView(self._edges[kind])

    def count(self, kind: EdgeKind) -> int:
        return len(self._edges[kind])

    def kinds(self) -> list[EdgeKind]:
        """Edge kinds holding at least one edge, in vocabulary order."""
        return [kind for kind in EdgeKind if self._edges[kind]]

    def __len__(self) -> int:
        return sum(len(edges) for edges in self._edges.values())

    def __repr__(self) -> str:
        return f"<RelationStore(edges={len(self)}, kinds={len(self.kinds())})>"


def load_store(source: Iterable[RelationEdge]) -> RelationStore:
    """
    Consume an edge source exactly once into a fresh store.

    Any failure of the source aborts the load; no partial store is returned.

    Raises:
        IngestionError: If the source raises or yields an invalid edge
    """
    store = RelationStore()
    try:
        for edge in source:
            store.ingest_edge(edge)
    except IngestionError:
        raise
    except Exception as e:
        raise IngestionError(f"Edge source failed after {len(store)} edges: {e}") from e
    log.info("Loaded %d relation edges across %d kinds", len(store), len(store.kinds()))
    return store


async def load_store_concurrently(
    read_kind: Callable[[EdgeKind], AsyncIterator[RelationEdge]],
    kinds: Iterable[EdgeKind] = tuple(EdgeKind),
) -> RelationStore:
    """
    Read every edge kind concurrently, then merge into a fresh store.

    Each reader appends into its own list; the lists are merged only after
    all readers have finished, so nothing shared is written concurrently.
    Readers still running when another one fails are cancelled and awaited
    before the error propagates.

    Args:
        read_kind: Called once per kind, returns an async iterator of that kind's edges
        kinds: Edge kinds to read

    Raises:
        IngestionError: If any reader fails
    """
    async def collect(kind: EdgeKind) -> tuple[EdgeKind, list[RelationEdge]]:
        edges: list[RelationEdge] = []
        async for edge in read_kind(kind):
            edges.append(edge)
        return kind, edges

    tasks = [asyncio.ensure_future(collect(kind)) for kind in kinds]
    try:
        results = await asyncio.gather(*tasks)
    except BaseException as e:
        # one failed reader aborts the whole build; stop the rest before leaving
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
        if isinstance(e, IngestionError) or not isinstance(e, Exception):
            raise
        raise IngestionError(f"Edge reader failed: {e}") from e

    store = RelationStore()
    for kind, edges in results:
        for edge in edges:
            store.ingest(kind, edge)
    log.info("Loaded %d relation edges across %d kinds", len(store), len(store.kinds()))
    return store
