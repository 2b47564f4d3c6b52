"""
Per-user manage/view count aggregation.

Counts are an offline approximation used to choose benchmark inputs, not an
authorization answer: org-level and group-level contributions are summed as
counts, so a resource reached through two different paths (say an org
membership and a direct viewer grant) is counted twice. That keeps the cost
at O(edges) instead of O(users x resources).

Within a path nothing is counted twice:
- duplicate edges are collapsed
- org-level view is credited once per (organization, user), over admins,
  members and effective members of member groups (admin implies member)
- org-admin manage already carries its view through org membership, so only
  resource-level manage grants are folded into view at the end
"""
from collections import Counter
from collections.abc import Iterator
from dataclasses import dataclass, field

from accessgraph.features.access.sampling import SamplePairSelector
from accessgraph.features.closure.resolver import GroupClosure
from accessgraph.features.relations.store import EdgeKind, RelationEdge, RelationStore
from accessgraph.features.relations.utils import id_sort_key
from accessgraph.utils import get_logger


log = get_logger(__name__)


@dataclass
class AccessSnapshot:
    """Aggregated counts and org lookups of one relation store snapshot."""
    manage_count: Counter = field(default_factory=Counter)
    view_count: Counter = field(default_factory=Counter)
    resource_org: dict[str, str] = field(default_factory=dict)
    org_resource_count: Counter = field(default_factory=Counter)
    org_admins: dict[str, list[str]] = field(default_factory=dict)
    resource_ids: list[str] = field(default_factory=list)

    def counts_for(self, user_id: str) -> tuple[int, int]:
        """(manage, view) counts of a user; zero for unknown users."""
        return self.manage_count.get(user_id, 0), self.view_count.get(user_id, 0)

    def knows_user(self, user_id: str) -> bool:
        return user_id in self.manage_count or user_id in self.view_count


class PermissionAggregator:
    """
    Combines org, group and resource edges into per-user counts.

    Steps run in a fixed order; org resource counts must exist before any
    org-level contribution is added.
    """

    def __init__(self, store: RelationStore, closure: GroupClosure, selector: SamplePairSelector):
        self.store = store
        self.closure = closure
        self.selector = selector
        self.snapshot = AccessSnapshot()
        # resource-level manage grants, folded into view at the end
        self._grant_manage: Counter = Counter()
        self._sorted_members: dict[str, list[str]] = {}

    def aggregate(self) -> AccessSnapshot:
        self._index_resources()
        self._add_org_admin_manage()
        self._add_org_view()
        self._add_direct_manager_grants()
        self._add_direct_viewer_grants()
        self._add_group_manager_grants()
        self._add_group_viewer_grants()
        self._fold_manage_into_view()
        self.selector.select_org_admins(
            self.snapshot.resource_ids, self.snapshot.resource_org, self.snapshot.org_admins
        )
        return self.snapshot

    def _distinct(self, kind: EdgeKind) -> Iterator[RelationEdge]:
        return iter(dict.fromkeys(self.store.edges_of(kind)))

    def _index_resources(self) -> None:
        snapshot = self.snapshot
        for edge in self._distinct(EdgeKind.RESOURCE_ORG):
            resource_id, org_id = edge.subject_id, edge.object_id
            owner = snapshot.resource_org.get(resource_id)
            if owner is not None:
                log.warning(
                    "Resource %s already belongs to organization %s, ignoring organization %s",
                    resource_id, owner, org_id,
                )
                continue
            snapshot.resource_org[resource_id] = org_id
            snapshot.org_resource_count[org_id] += 1
            snapshot.resource_ids.append(resource_id)

        for edge in self._distinct(EdgeKind.ORG_ADMIN):
            snapshot.org_admins.setdefault(edge.object_id, []).append(edge.subject_id)

    def _add_org_admin_manage(self) -> None:
        for org_id, admins in self.snapshot.org_admins.items():
            count = self.snapshot.org_resource_count.get(org_id, 0)
            if count == 0:
                continue
            for user_id in admins:
                self.snapshot.manage_count[user_id] += count

    def _add_org_view(self) -> None:
        org_viewers: dict[str, set[str]] = {}
        for org_id, admins in self.snapshot.org_admins.items():
            org_viewers.setdefault(org_id, set()).update(admins)
        for edge in self.store.edges_of(EdgeKind.ORG_MEMBER):
            org_viewers.setdefault(edge.object_id, set()).add(edge.subject_id)
        for edge in self.store.edges_of(EdgeKind.ORG_MEMBER_GROUP):
            members = self.closure.members_of(edge.subject_id)
            org_viewers.setdefault(edge.object_id, set()).update(members)

        for org_id, viewers in org_viewers.items():
            count = self.snapshot.org_resource_count.get(org_id, 0)
            if count == 0:
                continue
            for user_id in viewers:
                self.snapshot.view_count[user_id] += count

    def _add_direct_manager_grants(self) -> None:
        for edge in self._distinct(EdgeKind.RESOURCE_MANAGER_USER):
            self.selector.add_direct_manager(edge.object_id, edge.subject_id)
            self.snapshot.manage_count[edge.subject_id] += 1
            self._grant_manage[edge.subject_id] += 1

    def _add_direct_viewer_grants(self) -> None:
        for edge in self._distinct(EdgeKind.RESOURCE_VIEWER_USER):
            self.snapshot.view_count[edge.subject_id] += 1

    def _add_group_manager_grants(self) -> None:
        for edge in self._distinct(EdgeKind.RESOURCE_MANAGER_GROUP):
            for user_id in self.closure.managers_of(edge.subject_id):
                self.snapshot.manage_count[user_id] += 1
                self._grant_manage[user_id] += 1

    def _add_group_viewer_grants(self) -> None:
        for edge in self._distinct(EdgeKind.RESOURCE_VIEWER_GROUP):
            group_id, resource_id = edge.subject_id, edge.object_id
            members = self._members_in_order(group_id)
            if not members:
                continue
            for user_id in members:
                self.snapshot.view_count[user_id] += 1
            self.selector.add_group_view(resource_id, group_id, members)

    def _fold_manage_into_view(self) -> None:
        for user_id, count in self._grant_manage.items():
            self.snapshot.view_count[user_id] += count

    def _members_in_order(self, group_id: str) -> list[str]:
        """Effective members sorted by id, so sampling does not depend on set ordering."""
        members = self._sorted_members.get(group_id)
        if members is None:
            members = sorted(self.closure.members_of(group_id), key=id_sort_key)
            self._sorted_members[group_id] = members
        return members
