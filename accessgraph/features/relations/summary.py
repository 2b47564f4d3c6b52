"""
Relation fan-out summaries.

For a relation A -> B, report how many A nodes there are, the average number
of B per A, and sample nodes with the fewest, typical (around the median)
and most B.
"""
from collections import Counter
from collections.abc import Mapping
from dataclasses import dataclass, field

from accessgraph.features.relations.store import EdgeKind, RelationStore
from accessgraph.features.relations.utils import id_sort_key
from accessgraph.utils import get_logger


log = get_logger(__name__)

SAMPLE_SIZE = 3


@dataclass
class FanoutSummary:
    name: str
    source_label: str
    target_label: str
    node_count: int = 0
    average: float = 0.0
    fewest: list[tuple[str, int]] = field(default_factory=list)
    typical: list[tuple[str, int]] = field(default_factory=list)
    most: list[tuple[str, int]] = field(default_factory=list)


def summarize_relation(name: str, source_label: str, target_label: str, counts: Mapping[str, int]) -> FanoutSummary:
    """Summarize a node -> fan-out mapping, ordering ties by id."""
    summary = FanoutSummary(name=name, source_label=source_label, target_label=target_label)
    if not counts:
        return summary

    pairs = sorted(counts.items(), key=lambda item: (item[1], id_sort_key(item[0])))
    n = len(pairs)
    summary.node_count = n
    summary.average = sum(c for _, c in pairs) / n
    summary.fewest = pairs[:SAMPLE_SIZE]
    mid = n // 2
    summary.typical = [pairs[i] for i in range(max(mid - 1, 0), min(mid + 2, n))]
    summary.most = pairs[-SAMPLE_SIZE:]
    return summary


def _fanout(store: RelationStore, kinds: tuple[EdgeKind, ...], by_subject: bool) -> Counter:
    """Count distinct neighbours per node over the given kinds."""
    neighbours: dict[str, set[str]] = {}
    for kind in kinds:
        for edge in store.edges_of(kind):
            node, other = (edge.subject_id, edge.object_id) if by_subject else (edge.object_id, edge.subject_id)
            neighbours.setdefault(node, set()).add(other)
    return Counter({node: len(others) for node, others in neighbours.items()})


def relation_fanouts(store: RelationStore) -> list[FanoutSummary]:
    """The standard org/group/resource fan-out breakdown of a relation store."""
    org_kinds = (EdgeKind.ORG_ADMIN, EdgeKind.ORG_MEMBER)
    group_kinds = (EdgeKind.GROUP_MEMBER, EdgeKind.GROUP_MANAGER)
    grant_kinds = (EdgeKind.RESOURCE_MANAGER_USER, EdgeKind.RESOURCE_VIEWER_USER)
    return [
        summarize_relation("org->users", "org_id", "users", _fanout(store, org_kinds, by_subject=False)),
        summarize_relation("user->orgs", "user_id", "orgs", _fanout(store, org_kinds, by_subject=True)),
        summarize_relation("group->users", "group_id", "users", _fanout(store, group_kinds, by_subject=False)),
        summarize_relation("user->groups", "user_id", "groups", _fanout(store, group_kinds, by_subject=True)),
        summarize_relation("user->resources", "user_id", "resources", _fanout(store, grant_kinds, by_subject=True)),
        summarize_relation("resource->users", "resource_id", "users", _fanout(store, grant_kinds, by_subject=False)),
    ]


def log_relation_summary(summary: FanoutSummary) -> None:
    if not summary.node_count:
        log.info("relation %s (%s -> %s): no data", summary.name, summary.source_label, summary.target_label)
        return
    log.info(
        "relation %s (%s -> %s): %d %s; avg %.2f %s per %s",
        summary.name, summary.source_label, summary.target_label, summary.node_count,
        summary.source_label, summary.average, summary.target_label, summary.source_label,
    )
    for label, sample in (("fewest", summary.fewest), ("typical", summary.typical), ("most", summary.most)):
        log.debug(
            "  %s %s: %s", label, summary.source_label,
            ", ".join(f"{node}={count}" for node, count in sample),
        )


def log_relation_fanouts(store: RelationStore) -> list[FanoutSummary]:
    """Compute and log the standard fan-out breakdown once, e.g. after seeding."""
    summaries = relation_fanouts(store)
    for summary in summaries:
        log_relation_summary(summary)
    return summaries
