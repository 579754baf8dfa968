# services/api/models/desk.py
from __future__ import annotations

import dataclasses
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, ClassVar, Dict, List, Optional, Type

from .question import CanonicalQuestion


class DeskKind(str, Enum):
    """
    The three working areas a library question can be copied into.

    Only the coaching desk writes its records to the remote document store
    from the sync/import paths. Personal and group desks persist through
    their own save flows, so the engine leaves them in memory only.
    """

    PERSONAL = "personal"
    GROUP = "group"
    COACHING = "coaching"

    @property
    def id_prefix(self) -> str:
        return {"personal": "p", "group": "g", "coaching": "c"}[self.value]

    @property
    def collection(self) -> str:
        return {
            "personal": "personal-mcqs",
            "group": "group-mcqs",
            "coaching": "coaching-mcqs",
        }[self.value]

    @property
    def persists_remotely(self) -> bool:
        return self is DeskKind.COACHING


@dataclass
class DeskRecord:
    """
    A desk-local copy of a quiz question.

    `asset_ref` binds the copy to its canonical origin ("assetId:questionId").
    Records without it are independent and never touched by sync.
    """

    kind: ClassVar[DeskKind]

    id: str = ""
    question: str = ""
    options: List[str] = field(default_factory=list)
    correct_index: int = 0
    explanation: Optional[str] = None
    difficulty: Optional[str] = None
    asset_ref: Optional[str] = None
    created_at: int = 0

    def shared_fields(self) -> Dict[str, Any]:
        return {
            "question": self.question,
            "options": list(self.options),
            "correct_index": self.correct_index,
            "explanation": self.explanation,
            "difficulty": self.difficulty,
        }

    def with_shared_fields(self, source: CanonicalQuestion) -> "DeskRecord":
        """Copy of this record with the shared fields taken from `source`."""
        return dataclasses.replace(self, **source.shared_fields())

    # ------------ storage layer ------------

    @classmethod
    def _local_from_storage(cls, row: Dict[str, Any]) -> Dict[str, Any]:
        return {}

    def _local_to_storage(self) -> Dict[str, Any]:
        return {}

    @classmethod
    def from_storage(cls, row: Dict[str, Any]) -> "DeskRecord":
        return cls(
            id=str(row.get("id") or ""),
            question=row.get("question") or "",
            options=[str(o) for o in (row.get("options") or [])],
            correct_index=int(row.get("correctIndex") or 0),
            explanation=row.get("explanation"),
            difficulty=row.get("difficulty"),
            asset_ref=row.get("assetRef") or None,
            created_at=int(row.get("createdAt") or 0),
            **cls._local_from_storage(row),
        )

    def to_storage(self) -> Dict[str, Any]:
        doc: Dict[str, Any] = {"id": self.id}
        doc.update(self._local_to_storage())
        doc.update(
            {
                "question": self.question,
                "options": list(self.options),
                "correctIndex": self.correct_index,
                "explanation": self.explanation,
                "difficulty": self.difficulty,
                "createdAt": self.created_at,
            }
        )
        if self.asset_ref:
            doc["assetRef"] = self.asset_ref
        return doc


@dataclass
class PersonalMCQ(DeskRecord):
    kind: ClassVar[DeskKind] = DeskKind.PERSONAL

    course_id: str = ""
    category_id: str = ""
    user_id: str = ""

    @classmethod
    def _local_from_storage(cls, row: Dict[str, Any]) -> Dict[str, Any]:
        return {
            "course_id": row.get("courseId") or "",
            "category_id": row.get("categoryId") or "",
            "user_id": row.get("userId") or "",
        }

    def _local_to_storage(self) -> Dict[str, Any]:
        return {
            "courseId": self.course_id,
            "categoryId": self.category_id,
            "userId": self.user_id,
        }


@dataclass
class GroupMCQ(DeskRecord):
    kind: ClassVar[DeskKind] = DeskKind.GROUP

    group_id: str = ""
    category_id: str = ""
    sub_topic_id: Optional[str] = None
    created_by: str = ""
    created_by_name: str = ""

    @classmethod
    def _local_from_storage(cls, row: Dict[str, Any]) -> Dict[str, Any]:
        return {
            "group_id": row.get("groupId") or "",
            "category_id": row.get("categoryId") or "",
            "sub_topic_id": row.get("subTopicId"),
            "created_by": row.get("createdBy") or "",
            "created_by_name": row.get("createdByName") or "",
        }

    def _local_to_storage(self) -> Dict[str, Any]:
        doc = {
            "groupId": self.group_id,
            "categoryId": self.category_id,
            "createdBy": self.created_by,
            "createdByName": self.created_by_name,
        }
        if self.sub_topic_id:
            doc["subTopicId"] = self.sub_topic_id
        return doc


@dataclass
class CoachingMCQ(DeskRecord):
    kind: ClassVar[DeskKind] = DeskKind.COACHING

    course_id: str = ""
    lesson_id: str = ""
    mock_test_id: Optional[str] = None
    category_id: str = ""
    marks: float = 1
    negative_marks: float = 0
    order: int = 0
    created_by: str = ""
    created_by_name: str = ""

    @classmethod
    def _local_from_storage(cls, row: Dict[str, Any]) -> Dict[str, Any]:
        return {
            "course_id": row.get("courseId") or "",
            "lesson_id": row.get("lessonId") or "",
            "mock_test_id": row.get("mockTestId"),
            "category_id": row.get("categoryId") or "",
            "marks": row.get("marks", 1),
            "negative_marks": row.get("negativeMarks", 0),
            "order": int(row.get("order") or 0),
            "created_by": row.get("createdBy") or "",
            "created_by_name": row.get("createdByName") or "",
        }

    def _local_to_storage(self) -> Dict[str, Any]:
        doc = {
            "courseId": self.course_id,
            "lessonId": self.lesson_id,
            "categoryId": self.category_id,
            "marks": self.marks,
            "negativeMarks": self.negative_marks,
            "order": self.order,
            "createdBy": self.created_by,
            "createdByName": self.created_by_name,
        }
        if self.mock_test_id:
            doc["mockTestId"] = self.mock_test_id
        return doc


RECORD_TYPES: Dict[DeskKind, Type[DeskRecord]] = {
    DeskKind.PERSONAL: PersonalMCQ,
    DeskKind.GROUP: GroupMCQ,
    DeskKind.COACHING: CoachingMCQ,
}
