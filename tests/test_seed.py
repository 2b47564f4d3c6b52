import random

from accessgraph.features.relations.store import EdgeKind, load_store
from scripts.seed_relations import generate_relations


def test_generated_graph_is_deterministic():
    def generate():
        return generate_relations(
            num_orgs=2, users_per_org=10, admins_per_org=1,
            groups_per_org=3, resources_per_org=5, rng=random.Random(11),
        )

    assert generate() == generate()


def test_orgs_without_users_still_get_resources():
    edges = generate_relations(
        num_orgs=2, users_per_org=0, admins_per_org=1,
        groups_per_org=2, resources_per_org=3, rng=random.Random(1),
    )
    store = load_store(edges)

    assert store.count(EdgeKind.RESOURCE_ORG) == 6
    assert store.count(EdgeKind.ORG_ADMIN) == 0
    assert store.count(EdgeKind.GROUP_MEMBER) == 0
    assert store.count(EdgeKind.RESOURCE_MANAGER_USER) == 0
    assert store.count(EdgeKind.RESOURCE_MANAGER_GROUP) == 6
