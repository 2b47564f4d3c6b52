"""
Pydantic schemas for relation tuple ingestion and summaries.
"""
from typing import List

from pydantic import BaseModel, Field, model_validator

from accessgraph.features.relations.store import EdgeKind, RelationEdge


class RelationEdgeBase(BaseModel):
    """Base relation edge schema."""
    subject_kind: str = Field(..., min_length=1, max_length=20, description="Subject kind (user, group, resource)")
    subject_id: str = Field(..., min_length=1, max_length=100, description="Subject identifier")
    relation: EdgeKind = Field(..., description="Relation name (e.g. 'org-admin', 'resource-viewer-group')")
    object_kind: str = Field(..., min_length=1, max_length=20, description="Object kind (organization, group, resource)")
    object_id: str = Field(..., min_length=1, max_length=100, description="Object identifier")


class RelationEdgeCreate(RelationEdgeBase):
    """Schema for creating a relation edge."""

    @model_validator(mode="after")
    def endpoint_kinds_match_relation(self) -> "RelationEdgeCreate":
        """Ensure subject/object kinds are the ones the relation implies."""
        expected = (self.relation.subject_kind, self.relation.object_kind)
        if (self.subject_kind, self.object_kind) != expected:
            raise ValueError(
                f"{self.relation.value} expects {expected[0]} -> {expected[1]}, "
                f"got {self.subject_kind} -> {self.object_kind}"
            )
        return self

    def to_edge(self) -> RelationEdge:
        return RelationEdge.of(self.relation, self.subject_id, self.object_id)


class RelationBulkCreate(BaseModel):
    """Schema for inserting many relation edges at once."""
    edges: List[RelationEdgeCreate] = Field(..., min_length=1, max_length=10000)


class RelationImportResult(BaseModel):
    """Response schema for relation import operations."""
    status: str = Field(..., description="Import status: success, partial, or failed")
    records_processed: int = Field(..., description="Total number of records processed")
    records_inserted: int = Field(..., description="Number of records successfully inserted")
    records_failed: int = Field(..., description="Number of records that failed validation")
    errors: list[dict] = Field(default_factory=list, description="List of errors encountered")


class RelationCSVColumnMapping(BaseModel):
    """Expected columns of a relation tuple CSV upload."""
    subject_kind: str = "subject_kind"
    subject_id: str = "subject_id"
    relation: str = "relation"
    object_kind: str = "object_kind"
    object_id: str = "object_id"


class FanoutSample(BaseModel):
    node_id: str
    count: int


class FanoutSummaryResponse(BaseModel):
    """Fan-out breakdown of one relation (e.g. group->users)."""
    name: str
    source_label: str
    target_label: str
    node_count: int
    average: float
    fewest: List[FanoutSample] = []
    typical: List[FanoutSample] = []
    most: List[FanoutSample] = []


class RelationSummaryResponse(BaseModel):
    """Edge counts per kind plus fan-out breakdowns."""
    total_edges: int
    edge_counts: dict[str, int]
    fanout: List[FanoutSummaryResponse] = []
