import asyncio
import os
import tempfile

# Point the application at a throwaway database before anything imports config
_TEST_DB_DIR = tempfile.mkdtemp(prefix="accessgraph-tests-")
os.environ["DATABASE_URL"] = f"sqlite+aiosqlite:///{os.path.join(_TEST_DB_DIR, 'test.db')}"
os.environ["DATASET_RATE_LIMIT"] = "1000/minute"
os.environ.pop("BENCH_LOOKUPRES_MANAGE_USER", None)
os.environ.pop("BENCH_LOOKUPRES_VIEW_USER", None)

import pytest  # noqa: E402
import pytest_asyncio  # noqa: E402
from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine  # noqa: E402
from sqlalchemy.pool import NullPool  # noqa: E402

from accessgraph.core.database.base import Base  # noqa: E402
from accessgraph.features.relations.models import RelationTuple  # noqa: E402, F401
from accessgraph.features.relations.store import EdgeKind, RelationEdge, load_store  # noqa: E402


@pytest.fixture
def example_store():
    """Org O1 owns R1 and R2 and has admin U1; U2 can view R1 directly."""
    return load_store([
        RelationEdge.of(EdgeKind.RESOURCE_ORG, "R1", "O1"),
        RelationEdge.of(EdgeKind.RESOURCE_ORG, "R2", "O1"),
        RelationEdge.of(EdgeKind.ORG_ADMIN, "U1", "O1"),
        RelationEdge.of(EdgeKind.RESOURCE_VIEWER_USER, "U2", "R1"),
    ])


@pytest_asyncio.fixture
async def session_factory(tmp_path):
    """File-backed database; every session opens its own connection."""
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'relations.db'}", poolclass=NullPool)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield async_sessionmaker(engine, expire_on_commit=False)
    await engine.dispose()


@pytest.fixture
def client():
    """TestClient over the application with an emptied database."""
    from fastapi.testclient import TestClient
    from accessgraph.core.database.engine import engine
    from accessgraph.main import app

    async def reset():
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.drop_all)
            await conn.run_sync(Base.metadata.create_all)

    asyncio.run(reset())
    with TestClient(app) as test_client:
        yield test_client
