# services/api/core/search.py
from __future__ import annotations

from dataclasses import asdict, dataclass, field
from typing import Any, Dict, List, Optional

from adapters.base import LibraryStore
from models import CanonicalQuestion

DEFAULT_SEARCH_LIMIT = 50


@dataclass
class SearchHit:
    asset_id: str
    question_id: str
    question: str
    options: List[str] = field(default_factory=list)
    correct_index: int = 0
    explanation: Optional[str] = None
    difficulty: Optional[str] = None

    def as_dict(self) -> Dict[str, Any]:
        return asdict(self)


def _matches(q: CanonicalQuestion, needle: str) -> bool:
    if needle in q.question.lower():
        return True
    if any(needle in o.lower() for o in q.options):
        return True
    return bool(q.explanation) and needle in q.explanation.lower()


def search_library_mcqs(
    library: LibraryStore,
    query: str,
    limit: int = DEFAULT_SEARCH_LIMIT,
) -> List[SearchHit]:
    """
    Case-insensitive substring search over canonical mcq questions.

    Matches the question text, any option, or the explanation. Results follow
    corpus order (assets, then questions within each asset) and scanning stops
    once `limit` hits are collected, so this is not relevance-ranked. An empty
    query matches every question.
    """
    needle = (query or "").lower()
    results: List[SearchHit] = []

    for asset in library.get_canonical_assets():
        if len(results) >= limit:
            break
        if not asset.is_mcq:
            continue

        for q in asset.quiz_questions:
            if len(results) >= limit:
                break
            if _matches(q, needle):
                results.append(
                    SearchHit(
                        asset_id=asset.id,
                        question_id=q.id,
                        question=q.question,
                        options=list(q.options),
                        correct_index=q.correct_index,
                        explanation=q.explanation,
                        difficulty=q.difficulty,
                    )
                )

    return results
