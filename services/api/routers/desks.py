# services/api/routers/desks.py
from __future__ import annotations

import dataclasses
import logging

from fastapi import APIRouter, HTTPException, status

from core.importer import import_to_coaching, import_to_group, import_to_personal
from core.sync import sync_desk_to_library
from core.validation import ensure_ref_safe_id, validate_question_fields
from models import DeskKind, DeskRecord
from routers.deps import State
from schemas import DeskImportRequest, DeskRecordEditResponse, DeskRecordList, DeskRecordPatch

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/desks", tags=["desks"])


def _require_record(state, kind: DeskKind, record_id: str) -> DeskRecord:
    record = state.desks.for_kind(kind).get_record(record_id)
    if record is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="RECORD_NOT_FOUND")
    return record


def _require_scope(value, name: str) -> str:
    if not value:
        raise HTTPException(status_code=400, detail=f"{name} is required for this desk")
    return value


@router.get("/{kind}/records", response_model=DeskRecordList)
async def list_desk_records(kind: DeskKind, state: State):
    records = state.desks.for_kind(kind).get_current_records()
    return DeskRecordList(kind=kind.value, records=[r.to_storage() for r in records])


@router.get("/{kind}/records/{record_id}")
async def get_desk_record(kind: DeskKind, record_id: str, state: State):
    return _require_record(state, kind, record_id).to_storage()


@router.post("/{kind}/import", status_code=status.HTTP_201_CREATED)
async def import_question(kind: DeskKind, payload: DeskImportRequest, state: State):
    """
    Copy a library question into a desk as a new tracked record.

    - personal: needs course_id
    - group: needs group_id, records the importer as creator
    - coaching: needs course_id, record is also written to the remote store
    """
    ensure_ref_safe_id("asset_id", payload.asset_id)
    ensure_ref_safe_id("question_id", payload.question_id)

    desk = state.desks.for_kind(kind)
    if kind is DeskKind.PERSONAL:
        record = import_to_personal(
            state.library, desk,
            payload.asset_id, payload.question_id,
            course_id=_require_scope(payload.course_id, "course_id"),
            category_id=payload.category_id,
            user_id=payload.user_id,
        )
    elif kind is DeskKind.GROUP:
        record = import_to_group(
            state.library, desk,
            payload.asset_id, payload.question_id,
            group_id=_require_scope(payload.group_id, "group_id"),
            category_id=payload.category_id,
            user_id=payload.user_id,
            user_name=payload.user_name,
        )
    else:
        record = import_to_coaching(
            state.library, desk,
            payload.asset_id, payload.question_id,
            course_id=_require_scope(payload.course_id, "course_id"),
            category_id=payload.category_id,
            user_id=payload.user_id,
            user_name=payload.user_name,
            persister=state.persister,
        )

    if record is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"QUESTION_NOT_FOUND: {payload.asset_id}:{payload.question_id}",
        )

    logger.info(f"Imported {payload.asset_id}:{payload.question_id} into {kind.value} desk as {record.id}")
    return record.to_storage()


@router.patch("/{kind}/records/{record_id}", response_model=DeskRecordEditResponse)
async def edit_desk_record(
    kind: DeskKind,
    record_id: str,
    patch: DeskRecordPatch,
    state: State,
):
    """
    Edit a desk record's shared fields. Tracked records push the new values
    to their canonical question; other desk copies are not updated.
    """
    current = _require_record(state, kind, record_id)

    changes = patch.model_dump(exclude_unset=True)
    validate_question_fields({**current.shared_fields(), **changes})

    updated = dataclasses.replace(current, **changes)
    desk = state.desks.for_kind(kind)
    desk.update_record(updated)
    if kind.persists_remotely:
        state.persister.persist(kind.collection, updated.id, updated.to_storage())

    pushed = sync_desk_to_library(state.library, desk, record_id)
    return DeskRecordEditResponse(record=updated.to_storage(), pushed_to_library=pushed)


@router.post("/{kind}/records/{record_id}/push", response_model=DeskRecordEditResponse)
async def push_desk_record(kind: DeskKind, record_id: str, state: State):
    """Push an unchanged record to the library, e.g. after an offline edit."""
    record = _require_record(state, kind, record_id)
    pushed = sync_desk_to_library(state.library, state.desks.for_kind(kind), record_id)
    if not pushed:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="RECORD_NOT_LINKED_TO_LIBRARY",
        )
    return DeskRecordEditResponse(record=record.to_storage(), pushed_to_library=True)
