# services/api/models/question.py
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

MCQ_ASSET_TYPE = "mcq"
DIFFICULTIES = ("easy", "medium", "hard")

# Fields mirrored between a canonical question and every desk copy of it.
SHARED_FIELDS = ("question", "options", "correct_index", "explanation", "difficulty")


@dataclass
class CanonicalQuestion:
    """
    The authoritative copy of a single quiz question inside an mcq asset.

    Identity is the pair (asset_id, id); `id` is only unique within its asset.
    """

    id: str
    question: str = ""
    options: List[str] = field(default_factory=list)
    correct_index: int = 0
    explanation: Optional[str] = None
    difficulty: Optional[str] = None

    def shared_fields(self) -> Dict[str, Any]:
        return {
            "question": self.question,
            "options": list(self.options),
            "correct_index": self.correct_index,
            "explanation": self.explanation,
            "difficulty": self.difficulty,
        }

    # ------------ storage layer ------------

    @classmethod
    def from_storage(cls, row: Dict[str, Any]) -> "CanonicalQuestion":
        return cls(
            id=str(row.get("id") or ""),
            question=row.get("question") or "",
            options=[str(o) for o in (row.get("options") or [])],
            correct_index=int(row.get("correctIndex", row.get("correct_index", 0)) or 0),
            explanation=row.get("explanation"),
            difficulty=row.get("difficulty"),
        )

    def to_storage(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "question": self.question,
            "options": list(self.options),
            "correctIndex": self.correct_index,
            "explanation": self.explanation,
            "difficulty": self.difficulty,
        }


@dataclass
class AssetUsageRef:
    """Which desk an asset has been added to."""

    desk_type: str
    desk_id: str
    desk_name: str = ""
    added_at: int = 0

    @classmethod
    def from_storage(cls, row: Dict[str, Any]) -> "AssetUsageRef":
        return cls(
            desk_type=row.get("deskType") or "",
            desk_id=row.get("deskId") or "",
            desk_name=row.get("deskName") or "",
            added_at=int(row.get("addedAt") or 0),
        )

    def to_storage(self) -> Dict[str, Any]:
        return {
            "deskType": self.desk_type,
            "deskId": self.desk_id,
            "deskName": self.desk_name,
            "addedAt": self.added_at,
        }


@dataclass
class CanonicalAsset:
    """
    A library asset. Only assets of type "mcq" carry quiz questions and take
    part in desk synchronization.
    """

    id: str
    type: str = MCQ_ASSET_TYPE
    title: str = ""
    subject_id: Optional[str] = None
    topic_id: Optional[str] = None
    subtopic_id: Optional[str] = None
    created_by: Optional[str] = None
    quiz_questions: List[CanonicalQuestion] = field(default_factory=list)
    used_in: List[AssetUsageRef] = field(default_factory=list)
    created_at: int = 0
    updated_at: int = 0

    @property
    def is_mcq(self) -> bool:
        return self.type == MCQ_ASSET_TYPE

    def find_question(self, question_id: str) -> Optional[CanonicalQuestion]:
        return next((q for q in self.quiz_questions if q.id == question_id), None)

    # ------------ storage layer ------------

    @classmethod
    def from_storage(cls, row: Dict[str, Any]) -> "CanonicalAsset":
        return cls(
            id=str(row.get("id") or ""),
            type=row.get("type") or MCQ_ASSET_TYPE,
            title=row.get("title") or "",
            subject_id=row.get("subjectId"),
            topic_id=row.get("topicId"),
            subtopic_id=row.get("subtopicId"),
            created_by=row.get("userId") or row.get("createdBy"),
            quiz_questions=[
                CanonicalQuestion.from_storage(q) for q in (row.get("quizQuestions") or [])
            ],
            used_in=[AssetUsageRef.from_storage(u) for u in (row.get("usedIn") or [])],
            created_at=int(row.get("createdAt") or 0),
            updated_at=int(row.get("updatedAt") or 0),
        )

    def to_storage(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "type": self.type,
            "title": self.title,
            "subjectId": self.subject_id,
            "topicId": self.topic_id,
            "subtopicId": self.subtopic_id,
            "userId": self.created_by,
            "quizQuestions": [q.to_storage() for q in self.quiz_questions],
            "usedIn": [u.to_storage() for u in self.used_in],
            "createdAt": self.created_at,
            "updatedAt": self.updated_at,
        }
