# services/api/core/lookup.py
"""
Resolve references against the canonical library.

Absence is a normal outcome here: every helper returns None (or an empty
list) instead of raising.
"""
from __future__ import annotations

import logging
from typing import List, Optional, Tuple

from adapters.base import LibraryStore
from core.asset_ref import parse_asset_ref
from models import CanonicalAsset, CanonicalQuestion

logger = logging.getLogger(__name__)


def get_mcq_asset(library: LibraryStore, asset_id: str) -> Optional[CanonicalAsset]:
    asset = library.get_asset(asset_id)
    if asset is None or not asset.is_mcq:
        return None
    return asset


def get_mcq_question(
    library: LibraryStore,
    asset_id: str,
    question_id: str,
) -> Optional[CanonicalQuestion]:
    asset = get_mcq_asset(library, asset_id)
    if asset is None:
        return None
    return asset.find_question(question_id)


def resolve(library: LibraryStore, ref: Optional[str]) -> Optional[CanonicalQuestion]:
    """
    Return the canonical question a reference points at, or None when the
    reference is malformed, the asset is missing or not an mcq asset, or the
    question no longer exists.
    """
    parsed = parse_asset_ref(ref)
    if parsed is None:
        return None

    question = get_mcq_question(library, parsed.asset_id, parsed.question_id)
    if question is None:
        logger.debug(f"Asset reference {ref!r} does not resolve")
    return question


def all_mcq_questions(library: LibraryStore) -> List[Tuple[str, CanonicalQuestion]]:
    """Every canonical question as (asset_id, question), in corpus order."""
    return [
        (asset.id, q)
        for asset in library.get_canonical_assets()
        if asset.is_mcq
        for q in asset.quiz_questions
    ]


def mcq_questions_by_subject(
    library: LibraryStore,
    subject_id: str,
) -> List[Tuple[str, CanonicalQuestion]]:
    return [
        (asset.id, q)
        for asset in library.get_canonical_assets()
        if asset.is_mcq and asset.subject_id == subject_id
        for q in asset.quiz_questions
    ]
