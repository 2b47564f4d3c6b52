import logging
import random

from accessgraph.core import config
from accessgraph.features.access.dataset import DatasetOverrides, build_dataset
from accessgraph.features.access.sampling import SamplePair
from accessgraph.features.relations.store import RelationStore, load_store
from scripts.seed_relations import generate_relations


def test_example_dataset(example_store):
    dataset = build_dataset(example_store).dataset

    assert dataset.org_admin_pairs == [SamplePair("R1", "U1"), SamplePair("R2", "U1")]
    assert dataset.direct_manager_pairs == []
    assert dataset.group_view_pairs == []
    assert dataset.heavy_manage_user == "U1"
    assert dataset.regular_view_user == "U2"


def test_empty_store_skips_every_benchmark():
    build = build_dataset(RelationStore())

    assert build.dataset.direct_manager_pairs == []
    assert build.dataset.org_admin_pairs == []
    assert build.dataset.group_view_pairs == []
    assert build.dataset.heavy_manage_user is None
    assert build.dataset.regular_view_user is None
    assert build.elapsed >= 0


def test_overrides_apply_after_computation(example_store):
    overrides = DatasetOverrides(manage_user="admin-7", view_user="viewer-3")
    build = build_dataset(example_store, overrides)

    assert build.dataset.heavy_manage_user == "admin-7"
    assert build.dataset.regular_view_user == "viewer-3"
    assert build.snapshot.counts_for("U1") == (2, 2)


def test_building_twice_gives_the_same_dataset():
    edges = generate_relations(
        num_orgs=2, users_per_org=15, admins_per_org=2,
        groups_per_org=3, resources_per_org=10, rng=random.Random(3),
    )
    store = load_store(edges)

    assert build_dataset(store).dataset == build_dataset(store).dataset


def test_request_values_win_over_configured_overrides(monkeypatch):
    monkeypatch.setattr(config, "BENCH_LOOKUPRES_MANAGE_USER", "env-manager")
    monkeypatch.setattr(config, "BENCH_LOOKUPRES_VIEW_USER", "env-viewer")

    overrides = DatasetOverrides.from_config().merged_with(view_user="query-viewer")

    assert overrides == DatasetOverrides(manage_user="env-manager", view_user="query-viewer")


def test_build_does_not_log_fanout_summaries(example_store, caplog):
    with caplog.at_level(logging.DEBUG):
        build_dataset(example_store)

    assert not [r for r in caplog.records if r.getMessage().startswith("relation ")]
