"""
FastAPI dependencies for dataset builds.
"""
from typing import Optional
from fastapi import Depends, Query

from accessgraph.features.access.dataset import DatasetBuild, DatasetOverrides, build_dataset
from accessgraph.features.relations.dependencies import get_relation_store
from accessgraph.features.relations.store import RelationStore


def get_dataset_overrides(
    manage_user: Optional[str] = Query(None, description="Force the heavy manage user"),
    view_user: Optional[str] = Query(None, description="Force the regular view user"),
) -> DatasetOverrides:
    """Environment overrides, with request query parameters taking precedence."""
    return DatasetOverrides.from_config().merged_with(manage_user=manage_user, view_user=view_user)


async def get_dataset_build(
    store: RelationStore = Depends(get_relation_store),
    overrides: DatasetOverrides = Depends(get_dataset_overrides),
) -> DatasetBuild:
    return build_dataset(store, overrides)
