"""
Seed script to populate relation tuples.

Either generates a deterministic synthetic access graph (organizations with
admins and members, nested groups, resources and ACL grants), or imports a
dataset dump directory (org_memberships.csv, group_memberships.csv, ...).

Usage:
    python -m scripts.seed_relations          # synthetic graph, sized by SEED_* settings
    python -m scripts.seed_relations csv      # import the dump in RELATIONS_CSV_DIR
"""
import asyncio
import random
import sys

from accessgraph.core import config
from accessgraph.core.database.engine import get_db, init_db
from accessgraph.features.relations.models import RelationTuple
from accessgraph.features.relations.sources import CsvDumpSource
from accessgraph.features.relations.store import EdgeKind, RelationEdge, load_store
from accessgraph.features.relations.summary import log_relation_fanouts
from accessgraph.utils import get_logger


log = get_logger(__name__)

BATCH_SIZE = 1000


def generate_relations(
    num_orgs: int,
    users_per_org: int,
    admins_per_org: int,
    groups_per_org: int,
    resources_per_org: int,
    rng: random.Random,
) -> list[RelationEdge]:
    """
    Generate a synthetic relation graph.

    Users are drawn from a global pool, so most users belong to more than one
    organization. Groups nest inside earlier groups of the same organization;
    the first group of every organization is an organization member group.
    """
    edges: list[RelationEdge] = []
    total_users = max(num_orgs * users_per_org // 2, 1)
    next_group = 1
    next_resource = 1

    for org in range(1, num_orgs + 1):
        org_id = str(org)
        users = [str(u) for u in rng.sample(range(1, total_users + 1), k=min(users_per_org, total_users))]
        for idx, user_id in enumerate(users):
            kind = EdgeKind.ORG_ADMIN if idx < admins_per_org else EdgeKind.ORG_MEMBER
            edges.append(RelationEdge.of(kind, user_id, org_id))

        groups = [str(g) for g in range(next_group, next_group + groups_per_org)]
        next_group += groups_per_org
        for group_id in groups:
            if not users:
                continue
            for user_id in rng.sample(users, k=rng.randint(1, max(1, len(users) // 4))):
                edges.append(RelationEdge.of(EdgeKind.GROUP_MEMBER, user_id, group_id))
            edges.append(RelationEdge.of(EdgeKind.GROUP_MANAGER, rng.choice(users), group_id))
        for i, group_id in enumerate(groups[1:], start=1):
            if rng.random() < 0.5:
                edges.append(RelationEdge.of(EdgeKind.GROUP_SUBGROUP_MEMBER, group_id, groups[rng.randrange(i)]))
            if rng.random() < 0.2:
                edges.append(RelationEdge.of(EdgeKind.GROUP_SUBGROUP_MANAGER, group_id, groups[rng.randrange(i)]))
        if groups:
            edges.append(RelationEdge.of(EdgeKind.ORG_MEMBER_GROUP, groups[0], org_id))

        for _ in range(resources_per_org):
            resource_id = str(next_resource)
            next_resource += 1
            edges.append(RelationEdge.of(EdgeKind.RESOURCE_ORG, resource_id, org_id))
            if users:
                edges.append(RelationEdge.of(EdgeKind.RESOURCE_MANAGER_USER, rng.choice(users), resource_id))
                for user_id in rng.sample(users, k=min(len(users), rng.randint(1, 5))):
                    edges.append(RelationEdge.of(EdgeKind.RESOURCE_VIEWER_USER, user_id, resource_id))
            if groups:
                edges.append(RelationEdge.of(EdgeKind.RESOURCE_MANAGER_GROUP, rng.choice(groups), resource_id))
                edges.append(RelationEdge.of(EdgeKind.RESOURCE_VIEWER_GROUP, rng.choice(groups), resource_id))

    return edges


async def write_relations(db, edges: list[RelationEdge]) -> int:
    """Insert edges in batches, returning the number written."""
    written = 0
    for start in range(0, len(edges), BATCH_SIZE):
        batch = edges[start:start + BATCH_SIZE]
        db.add_all([RelationTuple.from_edge(edge) for edge in batch])
        await db.flush()
        written += len(batch)
        log.info(f"Inserted {written}/{len(edges)} relation tuples")
    await db.commit()
    return written


async def main():
    """Main function to seed relation tuples."""
    from_csv = sys.argv[1:] == ["csv"]
    log.info("Starting relation seeding...")

    log.info("Initializing database tables...")
    await init_db()

    if from_csv:
        log.info(f"Reading relation dump from {config.RELATIONS_CSV_DIR}")
        store = load_store(CsvDumpSource(config.RELATIONS_CSV_DIR))
        edges = [edge for kind in EdgeKind for edge in store.edges_of(kind)]
    else:
        rng = random.Random(config.SEED_RANDOM_SEED)
        edges = generate_relations(
            num_orgs=config.SEED_NUM_ORGS,
            users_per_org=config.SEED_USERS_PER_ORG,
            admins_per_org=config.SEED_ADMINS_PER_ORG,
            groups_per_org=config.SEED_GROUPS_PER_ORG,
            resources_per_org=config.SEED_RESOURCES_PER_ORG,
            rng=rng,
        )
    log_relation_fanouts(load_store(edges))

    async for db in get_db():
        try:
            written = await write_relations(db, edges)
            log.info(f"Relation seeding completed successfully: {written} tuples")
        except Exception as e:
            log.error(f"Error seeding relations: {e}", exc_info=True)
            await db.rollback()
            raise

        break  # Only use first session


if __name__ == "__main__":
    asyncio.run(main())
