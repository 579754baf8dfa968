# services/api/core/importer.py
"""
Import a library question into a desk as a new tracked copy.
"""
from __future__ import annotations

import logging
from typing import Optional

from adapters.base import DeskStore, LibraryStore
from core.asset_ref import InvalidAssetRefError, encode_asset_ref
from core.ids import generate_id, now_ms
from core.lookup import resolve
from core.remote_persist import RemotePersister
from models import CanonicalQuestion, CoachingMCQ, DeskKind, GroupMCQ, PersonalMCQ

logger = logging.getLogger(__name__)

DEFAULT_COACHING_DIFFICULTY = "medium"


def _resolve_for_import(
    library: LibraryStore,
    asset_id: str,
    question_id: str,
) -> Optional[tuple]:
    try:
        asset_ref = encode_asset_ref(asset_id, question_id)
    except InvalidAssetRefError as e:
        logger.warning(f"Import skipped: {e}")
        return None

    canonical = resolve(library, asset_ref)
    if canonical is None:
        logger.info(f"Import skipped: {asset_ref} not found in library")
        return None
    return asset_ref, canonical


def import_to_personal(
    library: LibraryStore,
    desk: DeskStore,
    asset_id: str,
    question_id: str,
    course_id: str,
    category_id: str,
    user_id: str,
) -> Optional[PersonalMCQ]:
    resolved = _resolve_for_import(library, asset_id, question_id)
    if resolved is None:
        return None
    asset_ref, canonical = resolved

    record = PersonalMCQ(
        id=generate_id(DeskKind.PERSONAL.id_prefix),
        course_id=course_id,
        category_id=category_id,
        user_id=user_id,
        asset_ref=asset_ref,
        created_at=now_ms(),
        **canonical.shared_fields(),
    )
    desk.insert_record(record)
    return record


def import_to_group(
    library: LibraryStore,
    desk: DeskStore,
    asset_id: str,
    question_id: str,
    group_id: str,
    category_id: str,
    user_id: str,
    user_name: str,
) -> Optional[GroupMCQ]:
    resolved = _resolve_for_import(library, asset_id, question_id)
    if resolved is None:
        return None
    asset_ref, canonical = resolved

    record = GroupMCQ(
        id=generate_id(DeskKind.GROUP.id_prefix),
        group_id=group_id,
        category_id=category_id,
        created_by=user_id,
        created_by_name=user_name,
        asset_ref=asset_ref,
        created_at=now_ms(),
        **canonical.shared_fields(),
    )
    desk.insert_record(record)
    return record


def _coaching_fields(canonical: CanonicalQuestion) -> dict:
    fields = canonical.shared_fields()
    fields["difficulty"] = fields["difficulty"] or DEFAULT_COACHING_DIFFICULTY
    return fields


def import_to_coaching(
    library: LibraryStore,
    desk: DeskStore,
    asset_id: str,
    question_id: str,
    course_id: str,
    category_id: str,
    user_id: str,
    user_name: str,
    persister: Optional[RemotePersister] = None,
) -> Optional[CoachingMCQ]:
    """
    Coaching copies start with one mark, no negative marking, no lesson, and
    "medium" difficulty when the library question has none. The new record is
    also written to the remote store in the background; the in-memory insert
    stands whatever that write does.
    """
    resolved = _resolve_for_import(library, asset_id, question_id)
    if resolved is None:
        return None
    asset_ref, canonical = resolved

    record = CoachingMCQ(
        id=generate_id(DeskKind.COACHING.id_prefix),
        course_id=course_id,
        lesson_id="",
        category_id=category_id,
        marks=1,
        negative_marks=0,
        order=0,
        created_by=user_id,
        created_by_name=user_name,
        asset_ref=asset_ref,
        created_at=now_ms(),
        **_coaching_fields(canonical),
    )
    desk.insert_record(record)

    if persister is not None:
        persister.persist(DeskKind.COACHING.collection, record.id, record.to_storage())
    return record
