"""
Validation utilities for the desk sync service.
Ensures question payloads are usable before they reach the library or a desk.
"""
from typing import Any, Dict, List, Optional

from fastapi import HTTPException

from core.asset_ref import SEPARATOR
from models import DIFFICULTIES


def validate_options(options: List[str], correct_index: int) -> None:
    """
    Validate an option list together with its correct answer index.

    Rules:
    - At least two options
    - No blank options
    - correct_index must point into options

    Raises:
        HTTPException: 400 if validation fails
    """
    if len(options) < 2:
        raise HTTPException(
            status_code=400,
            detail=f"At least 2 options are required, got {len(options)}"
        )
    if any(not str(o).strip() for o in options):
        raise HTTPException(
            status_code=400,
            detail="Options must not be blank"
        )
    if not (0 <= correct_index < len(options)):
        raise HTTPException(
            status_code=400,
            detail=f"correct_index must be in range [0, {len(options) - 1}], got {correct_index}"
        )


def validate_difficulty(difficulty: Optional[str]) -> None:
    if difficulty is not None and difficulty not in DIFFICULTIES:
        raise HTTPException(
            status_code=400,
            detail=f"difficulty must be one of {', '.join(DIFFICULTIES)}, got {difficulty!r}"
        )


def validate_question_fields(fields: Dict[str, Any]) -> None:
    """
    Validate a full set of shared question fields (after merging a patch).

    Args:
        fields: Dict with question, options, correct_index, explanation, difficulty

    Raises:
        HTTPException: 400 if validation fails
    """
    if not (fields.get("question") or "").strip():
        raise HTTPException(
            status_code=400,
            detail="question must not be empty"
        )
    correct_index = fields.get("correct_index")
    if correct_index is None:
        raise HTTPException(
            status_code=400,
            detail="correct_index is required"
        )
    validate_options(list(fields.get("options") or []), correct_index)
    validate_difficulty(fields.get("difficulty"))


def ensure_ref_safe_id(name: str, value: str) -> None:
    """
    Ids that end up inside an asset reference must not contain the separator.

    Raises:
        HTTPException: 400 if the id is empty or contains ':'
    """
    if not value:
        raise HTTPException(
            status_code=400,
            detail=f"{name} must not be empty"
        )
    if SEPARATOR in value:
        raise HTTPException(
            status_code=400,
            detail=f"{name} must not contain '{SEPARATOR}', got {value!r}"
        )
