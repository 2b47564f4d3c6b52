"""
Relation tuple model.

Every raw relationship fact lives in one table, keyed by an increasing
integer id so that reads can replay edges in insertion order.
"""
from sqlalchemy import Index, String
from sqlalchemy.orm import Mapped, mapped_column

from accessgraph.core.database.base import Base, TimestampMixin
from accessgraph.features.relations.store import RelationEdge


class RelationTuple(Base, TimestampMixin):
    """
    A persisted relation edge: subject --relation--> object.

    Examples:
    - user:7 --org-admin--> organization:1
    - group:3 --group-subgroup-member--> group:2
    - group:3 --resource-viewer-group--> resource:42
    """
    __tablename__ = "relation_tuples"
    __table_args__ = (
        Index("ix_relation_tuples_relation_id", "relation", "id"),
        Index("ix_relation_tuples_subject", "subject_kind", "subject_id"),
    )

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)

    subject_kind: Mapped[str] = mapped_column(String(20), nullable=False)
    subject_id: Mapped[str] = mapped_column(String(100), nullable=False)
    relation: Mapped[str] = mapped_column(String(40), nullable=False)
    object_kind: Mapped[str] = mapped_column(String(20), nullable=False)
    object_id: Mapped[str] = mapped_column(String(100), nullable=False, index=True)

    @classmethod
    def from_edge(cls, edge: RelationEdge) -> "RelationTuple":
        return cls(
            subject_kind=edge.subject_kind,
            subject_id=edge.subject_id,
            relation=edge.relation,
            object_kind=edge.object_kind,
            object_id=edge.object_id,
        )

    def to_edge(self) -> RelationEdge:
        return RelationEdge(self.subject_kind, self.subject_id, self.relation, self.object_kind, self.object_id)

    def __repr__(self) -> str:
        return (
            f"<RelationTuple(id={self.id}, {self.subject_kind}:{self.subject_id} "
            f"--{self.relation}--> {self.object_kind}:{self.object_id})>"
        )
