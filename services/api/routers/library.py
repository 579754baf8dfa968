# services/api/routers/library.py
from __future__ import annotations

import logging
from typing import List, Optional

from fastapi import APIRouter, HTTPException, Query, status

from core.ids import now_ms
from core.lookup import all_mcq_questions, get_mcq_question, mcq_questions_by_subject
from core.search import search_library_mcqs
from core.sync import sync_all_desks_from_library
from core.validation import ensure_ref_safe_id, validate_question_fields
from models import AssetUsageRef, CanonicalQuestion
from routers.deps import State
from schemas import (
    LibraryEditResponse,
    LibraryMCQCreate,
    LibraryMCQCreated,
    LibraryQuestionOut,
    QuestionPatch,
    SyncCountsOut,
    UsageRefIn,
    UsageRefOut,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/library", tags=["library"])


# ---------- Helpers ----------

def _question_out(asset_id: str, q: CanonicalQuestion) -> LibraryQuestionOut:
    return LibraryQuestionOut(asset_id=asset_id, question_id=q.id, **q.shared_fields())


def _require_question(state, asset_id: str, question_id: str) -> CanonicalQuestion:
    q = get_mcq_question(state.library, asset_id, question_id)
    if q is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"QUESTION_NOT_FOUND: {asset_id}:{question_id}",
        )
    return q


def _broadcast(state, asset_id: str, question_id: str) -> SyncCountsOut:
    counts = sync_all_desks_from_library(
        state.library, state.desks, asset_id, question_id, state.persister
    )
    return SyncCountsOut(**counts.as_dict())


# ---------- Endpoints ----------

@router.get("/search", response_model=List[LibraryQuestionOut])
async def search_library(
    state: State,
    q: str = Query("", description="Case-insensitive substring to match"),
    limit: Optional[int] = Query(None, ge=1, description="Maximum number of results"),
):
    """
    Search canonical questions by question text, options and explanation.
    Results follow library order and are not ranked.
    """
    settings = state.settings
    effective_limit = min(limit or settings.search_default_limit, settings.search_max_limit)

    cache_key = (q.lower(), effective_limit)
    cached = state.search_cache.get(cache_key)
    if cached is not None:
        return cached

    hits = search_library_mcqs(state.library, q, effective_limit)
    result = [LibraryQuestionOut(**h.as_dict()) for h in hits]
    state.search_cache[cache_key] = result
    return result


@router.get("/questions", response_model=List[LibraryQuestionOut])
async def list_library_questions(
    state: State,
    subject_id: Optional[str] = Query(None, description="Only questions of this subject"),
):
    if subject_id:
        pairs = mcq_questions_by_subject(state.library, subject_id)
    else:
        pairs = all_mcq_questions(state.library)
    return [_question_out(asset_id, q) for asset_id, q in pairs]


@router.post("/mcqs", response_model=LibraryMCQCreated, status_code=status.HTTP_201_CREATED)
async def add_library_mcq(payload: LibraryMCQCreate, state: State):
    validate_question_fields(payload.model_dump())
    created = state.library.add_single_mcq(
        question=payload.question,
        options=payload.options,
        correct_index=payload.correct_index,
        user_id=payload.user_id,
        subject_id=payload.subject_id,
        topic_id=payload.topic_id,
        explanation=payload.explanation,
        difficulty=payload.difficulty,
        subtopic_id=payload.subtopic_id,
    )
    return LibraryMCQCreated(**created)


@router.get(
    "/assets/{asset_id}/questions/{question_id}",
    response_model=LibraryQuestionOut,
)
async def get_library_question(asset_id: str, question_id: str, state: State):
    return _question_out(asset_id, _require_question(state, asset_id, question_id))


@router.patch(
    "/assets/{asset_id}/questions/{question_id}",
    response_model=LibraryEditResponse,
)
async def edit_library_question(
    asset_id: str,
    question_id: str,
    patch: QuestionPatch,
    state: State,
):
    """
    Edit a canonical question, then broadcast the new shared fields to every
    desk copy that references it.
    """
    current = _require_question(state, asset_id, question_id)

    changes = patch.model_dump(exclude_unset=True)
    merged = {**current.shared_fields(), **changes}
    validate_question_fields(merged)

    state.library.update_canonical_question(asset_id, question_id, changes)
    synced = _broadcast(state, asset_id, question_id)
    logger.info(f"Library question {asset_id}:{question_id} edited; {synced.total} desk copies synced")

    updated = _require_question(state, asset_id, question_id)
    return LibraryEditResponse(question=_question_out(asset_id, updated), synced=synced)


@router.post(
    "/assets/{asset_id}/questions/{question_id}/sync",
    response_model=SyncCountsOut,
)
async def sync_library_question(asset_id: str, question_id: str, state: State):
    """Broadcast without editing. Unknown questions yield all-zero counts."""
    return _broadcast(state, asset_id, question_id)


@router.delete(
    "/assets/{asset_id}/questions/{question_id}",
    status_code=status.HTTP_204_NO_CONTENT,
)
async def remove_library_question(asset_id: str, question_id: str, state: State):
    """
    Remove a question from the library. Desk copies keep their data; their
    references simply stop resolving.
    """
    _require_question(state, asset_id, question_id)
    state.library.remove_single_mcq(asset_id, question_id)


@router.post(
    "/assets/{asset_id}/usage",
    response_model=List[UsageRefOut],
    status_code=status.HTTP_201_CREATED,
)
async def add_asset_usage(asset_id: str, payload: UsageRefIn, state: State):
    if state.library.get_asset(asset_id) is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="ASSET_NOT_FOUND")
    ensure_ref_safe_id("desk_id", payload.desk_id)

    added = state.library.add_usage_ref(
        asset_id,
        AssetUsageRef(
            desk_type=payload.desk_type,
            desk_id=payload.desk_id,
            desk_name=payload.desk_name,
            added_at=now_ms(),
        ),
    )
    if not added:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="ALREADY_ADDED_TO_DESK")

    asset = state.library.get_asset(asset_id)
    return [UsageRefOut(**u.__dict__) for u in asset.used_in]


@router.delete(
    "/assets/{asset_id}/usage/{desk_type}/{desk_id}",
    status_code=status.HTTP_204_NO_CONTENT,
)
async def remove_asset_usage(asset_id: str, desk_type: str, desk_id: str, state: State):
    if not state.library.remove_usage_ref(asset_id, desk_type, desk_id):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="USAGE_NOT_FOUND")
