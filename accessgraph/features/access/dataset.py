"""
Benchmark dataset pipeline.

Relation store -> group closure -> permission aggregation -> sample pairs and
extremal users. Every build starts from fresh state, so building twice from
the same store gives the same dataset.
"""
import time
from dataclasses import dataclass, field
from typing import Optional

from accessgraph.core import config
from accessgraph.features.access.aggregator import AccessSnapshot, PermissionAggregator
from accessgraph.features.access.sampling import SamplePair, SamplePairSelector
from accessgraph.features.access.selection import pick_extremal_users
from accessgraph.features.closure.resolver import GroupClosure, build_closure
from accessgraph.features.relations.store import RelationStore
from accessgraph.utils import get_logger


log = get_logger(__name__)


@dataclass(frozen=True)
class DatasetOverrides:
    """Caller-supplied subjects replacing the computed extremal users."""
    manage_user: Optional[str] = None
    view_user: Optional[str] = None

    @classmethod
    def from_config(cls) -> "DatasetOverrides":
        return cls(manage_user=config.BENCH_LOOKUPRES_MANAGE_USER, view_user=config.BENCH_LOOKUPRES_VIEW_USER)

    def merged_with(self, manage_user: Optional[str] = None, view_user: Optional[str] = None) -> "DatasetOverrides":
        """Overrides where the given non-empty values win over these."""
        return DatasetOverrides(manage_user=manage_user or self.manage_user, view_user=view_user or self.view_user)


@dataclass
class BenchDataset:
    """Inputs for the read benchmarks. Empty pair lists mean "skip that benchmark"."""
    direct_manager_pairs: list[SamplePair] = field(default_factory=list)
    org_admin_pairs: list[SamplePair] = field(default_factory=list)
    group_view_pairs: list[SamplePair] = field(default_factory=list)
    heavy_manage_user: Optional[str] = None
    regular_view_user: Optional[str] = None


@dataclass
class DatasetBuild:
    dataset: BenchDataset
    snapshot: AccessSnapshot
    closure: GroupClosure
    elapsed: float


def build_dataset(store: RelationStore, overrides: Optional[DatasetOverrides] = None) -> DatasetBuild:
    """
    Build the benchmark dataset from a loaded relation store.

    Args:
        store: Fully loaded relation store snapshot
        overrides: Explicit heavy/regular users, applied after computation

    Returns:
        The dataset along with the aggregated counts and closure it came from
    """
    start = time.perf_counter()
    overrides = overrides or DatasetOverrides()

    closure = build_closure(store)
    selector = SamplePairSelector()
    snapshot = PermissionAggregator(store, closure, selector).aggregate()
    users = pick_extremal_users(
        snapshot.manage_count,
        snapshot.view_count,
        manage_override=overrides.manage_user,
        view_override=overrides.view_user,
    )

    dataset = BenchDataset(
        direct_manager_pairs=selector.direct_manager_pairs,
        org_admin_pairs=selector.org_admin_pairs,
        group_view_pairs=selector.group_view_pairs,
        heavy_manage_user=users.heavy_manage_user,
        regular_view_user=users.regular_view_user,
    )
    elapsed = time.perf_counter() - start

    log.info(
        "Benchmark dataset built in %.3fs: directManagerPairs=%d orgAdminPairs=%d groupViewPairs=%d "
        "heavyManageUser=%r regularViewUser=%r",
        elapsed, len(dataset.direct_manager_pairs), len(dataset.org_admin_pairs),
        len(dataset.group_view_pairs), dataset.heavy_manage_user, dataset.regular_view_user,
    )
    for name, pairs in (
        ("direct manager", dataset.direct_manager_pairs),
        ("org admin", dataset.org_admin_pairs),
        ("group view", dataset.group_view_pairs),
    ):
        if not pairs:
            log.info("No %s sample pairs; that benchmark will be skipped", name)
    if dataset.heavy_manage_user is None:
        log.info("No user can manage any resource; lookup benchmarks will be skipped")

    return DatasetBuild(dataset=dataset, snapshot=snapshot, closure=closure, elapsed=elapsed)
