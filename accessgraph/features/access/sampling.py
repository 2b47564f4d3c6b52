"""
Deterministic, bounded sample pair selection.

Round-robin state is owned by each selector instance. Two selectors fed the
same inputs in the same order produce the same pairs.
"""
from collections.abc import Iterable, Mapping, Sequence
from typing import NamedTuple, Optional, TypeVar

T = TypeVar("T")


class SamplePair(NamedTuple):
    """A (resource, user) pair exercising one access path."""
    resource_id: str
    user_id: str


class RotatingSelector:
    """Per-key round-robin counter."""

    def __init__(self):
        self._next: dict[str, int] = {}

    def next_index(self, key: str) -> int:
        """Current counter for `key`, then advance it."""
        index = self._next.get(key, 0)
        self._next[key] = index + 1
        return index

    def pick(self, key: str, candidates: Sequence[T]) -> Optional[T]:
        """Next candidate for `key`, wrapping around. None when there are no candidates."""
        if not candidates:
            return None
        return candidates[self.next_index(key) % len(candidates)]


class SamplePairSelector:
    """
    Collects sample pairs for the three check benchmarks.

    - direct-manager: every resource-manager-user grant, verbatim
    - group-view: one member per (group, resource), rotating per group
    - org-admin: one admin per resource, rotating per organization
    """

    def __init__(self):
        self.direct_manager_pairs: list[SamplePair] = []
        self.group_view_pairs: list[SamplePair] = []
        self.org_admin_pairs: list[SamplePair] = []
        self._group_rotation = RotatingSelector()
        self._admin_rotation = RotatingSelector()

    def add_direct_manager(self, resource_id: str, user_id: str) -> SamplePair:
        pair = SamplePair(resource_id, user_id)
        self.direct_manager_pairs.append(pair)
        return pair

    def add_group_view(self, resource_id: str, group_id: str, members: Sequence[str]) -> Optional[SamplePair]:
        """Sample one of `members` (kept in a stable order by the caller) for this resource."""
        user_id = self._group_rotation.pick(group_id, members)
        if user_id is None:
            return None
        pair = SamplePair(resource_id, user_id)
        self.group_view_pairs.append(pair)
        return pair

    def select_org_admins(
        self,
        resource_ids: Iterable[str],
        resource_org: Mapping[str, str],
        org_admins: Mapping[str, Sequence[str]],
    ) -> list[SamplePair]:
        """Pick one admin of the owning organization for every resource; skip orgs without admins."""
        for resource_id in resource_ids:
            org_id = resource_org.get(resource_id)
            if org_id is None:
                continue
            user_id = self._admin_rotation.pick(org_id, org_admins.get(org_id, ()))
            if user_id is None:
                continue
            self.org_admin_pairs.append(SamplePair(resource_id, user_id))
        return self.org_admin_pairs
