"""
Benchmark dataset API routes.
"""
from fastapi import APIRouter, Depends, HTTPException, Request

from accessgraph.core import config
from accessgraph.core.rate_limit import limiter
from accessgraph.features.access.dataset import DatasetBuild
from accessgraph.features.access.dependencies import get_dataset_build
from accessgraph.features.access.schemas import BenchDatasetResponse, SamplePairResponse, UserAccessResponse
from accessgraph.utils import get_logger


log = get_logger(__name__)
router = APIRouter()


@router.get("", response_model=BenchDatasetResponse)
@limiter.limit(config.DATASET_RATE_LIMIT)
async def get_dataset(request: Request, build: DatasetBuild = Depends(get_dataset_build)):
    """
    Build the benchmark dataset from the stored relations.

    `manage_user` / `view_user` query parameters override the computed
    heavy-manage and regular-view users.
    """
    dataset = build.dataset
    return BenchDatasetResponse(
        direct_manager_pairs=[SamplePairResponse(resource_id=p.resource_id, user_id=p.user_id)
                              for p in dataset.direct_manager_pairs],
        org_admin_pairs=[SamplePairResponse(resource_id=p.resource_id, user_id=p.user_id)
                         for p in dataset.org_admin_pairs],
        group_view_pairs=[SamplePairResponse(resource_id=p.resource_id, user_id=p.user_id)
                          for p in dataset.group_view_pairs],
        heavy_manage_user=dataset.heavy_manage_user,
        regular_view_user=dataset.regular_view_user,
        build_seconds=round(build.elapsed, 6),
    )


@router.get("/users/{user_id}", response_model=UserAccessResponse)
@limiter.limit(config.DATASET_RATE_LIMIT)
async def get_user_access(request: Request, user_id: str, build: DatasetBuild = Depends(get_dataset_build)):
    """Approximate manage/view counts of one user."""
    if not build.snapshot.knows_user(user_id):
        raise HTTPException(status_code=404, detail="User has no access in the current relations")
    manage, view = build.snapshot.counts_for(user_id)
    return UserAccessResponse(user_id=user_id, manage_count=manage, view_count=view)
