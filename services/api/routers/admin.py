# services/api/routers/admin.py
from __future__ import annotations

from fastapi import APIRouter

from routers.deps import State
from schemas import OutboxEntryOut, OutboxFlushResult, OutboxStatus

router = APIRouter(prefix="/admin", tags=["admin"])


@router.get("/outbox", response_model=OutboxStatus)
async def outbox_status(state: State):
    """Remote writes still in flight or parked after exhausting their retries."""
    persister = state.persister
    entries = [
        OutboxEntryOut(
            collection=e.collection,
            doc_id=e.doc_id,
            error=e.error,
            attempts=e.attempts,
            queued_at=e.queued_at,
        )
        for e in persister.pending()
    ]
    return OutboxStatus(**persister.status(), entries=entries)


@router.post("/outbox/flush", response_model=OutboxFlushResult)
def flush_outbox(state: State):
    # Sync endpoint: retries block, so FastAPI runs this in its threadpool
    report = state.persister.flush_outbox()
    return OutboxFlushResult(**report.as_dict())
