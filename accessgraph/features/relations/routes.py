"""
Relation tuple API routes.

Features:
- Bulk insert of validated relation edges
- Streaming CSV import of relation tuples with row-level error reporting
- Per-kind edge counts and fan-out summaries of the current snapshot
"""
import csv
from io import StringIO
from fastapi import APIRouter, Depends, File, HTTPException, UploadFile, status
from sqlalchemy.ext.asyncio import AsyncSession

from accessgraph.core.database.engine import get_db
from accessgraph.features.relations.dependencies import get_relation_store
from accessgraph.features.relations.models import RelationTuple
from accessgraph.features.relations.schemas import (
    FanoutSample,
    FanoutSummaryResponse,
    RelationBulkCreate,
    RelationCSVColumnMapping,
    RelationImportResult,
    RelationSummaryResponse,
)
from accessgraph.features.relations.sources import edge_from_tuple_row
from accessgraph.features.relations.store import EdgeKind, IngestionError, RelationStore
from accessgraph.features.relations.summary import relation_fanouts
from accessgraph.features.relations.utils import safe_get
from accessgraph.utils import get_logger

logger = get_logger(__name__)
router = APIRouter()

# Flush pending inserts every this many rows
FLUSH_EVERY = 500
# Limit error list to prevent huge responses
MAX_REPORTED_ERRORS = 100


@router.post("", response_model=RelationImportResult, status_code=status.HTTP_201_CREATED)
async def create_relations(
    payload: RelationBulkCreate,
    db: AsyncSession = Depends(get_db),
):
    """Insert a batch of relation edges. Duplicates are stored as given."""
    db.add_all([RelationTuple.from_edge(edge.to_edge()) for edge in payload.edges])
    await db.commit()
    logger.info(f"Inserted {len(payload.edges)} relation edges")
    return RelationImportResult(
        status="success",
        records_processed=len(payload.edges),
        records_inserted=len(payload.edges),
        records_failed=0,
    )


@router.post("/csv", response_model=RelationImportResult)
async def import_relations_csv(
    file: UploadFile = File(..., description="CSV file containing relation tuples"),
    db: AsyncSession = Depends(get_db),
):
    """
    Import relation tuples from a CSV file.

    Required columns: subject_kind, subject_id, relation, object_kind, object_id.
    Invalid rows are reported and skipped; valid rows are inserted.
    """
    if not file.filename or not file.filename.endswith(".csv"):
        raise HTTPException(status_code=400, detail="File must be a CSV (.csv)")

    content = await file.read()
    try:
        text_content = content.decode("utf-8-sig")
    except UnicodeDecodeError:
        raise HTTPException(status_code=400, detail="File must be UTF-8 encoded")

    reader = csv.DictReader(StringIO(text_content))
    mapping = RelationCSVColumnMapping()
    missing = [column for column in mapping.model_dump().values() if column not in (reader.fieldnames or [])]
    if missing:
        raise HTTPException(status_code=400, detail=f"Missing CSV columns: {', '.join(missing)}")

    records_processed = 0
    records_inserted = 0
    records_failed = 0
    errors: list[dict] = []

    # Start at 2 (header is row 1)
    for row_number, row in enumerate(reader, start=2):
        records_processed += 1
        try:
            edge = edge_from_tuple_row(row, row_number)
        except IngestionError as e:
            records_failed += 1
            errors.append({
                "row_number": row_number,
                "relation": safe_get(row, mapping.relation),
                "error": str(e),
            })
            logger.debug(f"Rejected relation row {row_number}: {e}")
            continue

        db.add(RelationTuple.from_edge(edge))
        records_inserted += 1
        if records_inserted % FLUSH_EVERY == 0:
            await db.flush()
            logger.info(f"Processed {records_processed} records, inserted {records_inserted}")

    await db.commit()

    if records_failed == 0 and records_processed > 0:
        import_status = "success"
    elif records_inserted > 0:
        import_status = "partial"
    else:
        import_status = "failed"

    logger.info(
        f"Relation CSV import completed: {records_processed} processed, "
        f"{records_inserted} inserted, {records_failed} failed"
    )

    return RelationImportResult(
        status=import_status,
        records_processed=records_processed,
        records_inserted=records_inserted,
        records_failed=records_failed,
        errors=errors[:MAX_REPORTED_ERRORS],
    )


@router.get("/column-mapping", response_model=RelationCSVColumnMapping)
async def get_column_mapping():
    """Get the expected relation CSV columns."""
    return RelationCSVColumnMapping()


@router.get("/summary", response_model=RelationSummaryResponse)
async def get_relation_summary(store: RelationStore = Depends(get_relation_store)):
    """Edge counts per kind and fan-out breakdowns of the stored relations."""
    fanout = [
        FanoutSummaryResponse(
            name=s.name,
            source_label=s.source_label,
            target_label=s.target_label,
            node_count=s.node_count,
            average=round(s.average, 2),
            fewest=[FanoutSample(node_id=node, count=count) for node, count in s.fewest],
            typical=[FanoutSample(node_id=node, count=count) for node, count in s.typical],
            most=[FanoutSample(node_id=node, count=count) for node, count in s.most],
        )
        for s in relation_fanouts(store)
    ]
    return RelationSummaryResponse(
        total_edges=len(store),
        edge_counts={kind.value: store.count(kind) for kind in EdgeKind},
        fanout=fanout,
    )
