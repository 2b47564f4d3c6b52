"""
Pydantic schemas for benchmark dataset responses.
"""
from typing import List, Optional
from pydantic import BaseModel, ConfigDict, Field


class SamplePairResponse(BaseModel):
    """A (resource, user) pair exercising one access path."""
    resource_id: str
    user_id: str

    model_config = ConfigDict(from_attributes=True)


class BenchDatasetResponse(BaseModel):
    """Benchmark inputs; an empty list or null user means that benchmark is skipped."""
    direct_manager_pairs: List[SamplePairResponse] = []
    org_admin_pairs: List[SamplePairResponse] = []
    group_view_pairs: List[SamplePairResponse] = []
    heavy_manage_user: Optional[str] = Field(None, description="User with the most manageable resources")
    regular_view_user: Optional[str] = Field(None, description="Other user with the most viewable resources")
    build_seconds: float = Field(..., description="Time spent building the dataset")

    model_config = ConfigDict(from_attributes=True)


class UserAccessResponse(BaseModel):
    """Approximate manage/view counts of one user."""
    user_id: str
    manage_count: int
    view_count: int
