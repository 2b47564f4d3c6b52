"""
FastAPI dependencies for loading the relation store.
"""
from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from accessgraph.core.database.engine import get_session_factory
from accessgraph.features.relations.sources import database_reader
from accessgraph.features.relations.store import RelationStore, load_store_concurrently


async def get_relation_store(
    session_factory: async_sessionmaker[AsyncSession] = Depends(get_session_factory),
) -> RelationStore:
    """
    Load a fresh relation store snapshot from the database.

    Every request gets its own store; IngestionError propagates to the
    application error handler.
    """
    return await load_store_concurrently(database_reader(session_factory))
