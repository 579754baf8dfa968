"""
Pydantic schemas for desk records.
"""
from typing import Any, Dict, List, Optional
from pydantic import BaseModel, Field

from .library import QuestionPatch


class DeskImportRequest(BaseModel):
    """
    Import a library question into a desk.

    Which scope id is required depends on the desk:
    - personal, coaching → course_id
    - group → group_id
    """
    asset_id: str = Field(..., min_length=1)
    question_id: str = Field(..., min_length=1)
    category_id: str = Field("", description="Desk category")
    user_id: str = Field(..., min_length=1, description="Importing user")
    user_name: str = Field("", description="Display name (group/coaching)")
    course_id: Optional[str] = None
    group_id: Optional[str] = None


class DeskRecordPatch(QuestionPatch):
    """Desk-side edit of the shared fields. Desk-local fields are not editable here."""


class DeskRecordEditResponse(BaseModel):
    record: Dict[str, Any]
    pushed_to_library: bool = Field(
        False, description="Whether the edit was pushed to the canonical question"
    )


class DeskRecordList(BaseModel):
    kind: str
    records: List[Dict[str, Any]]


class OutboxEntryOut(BaseModel):
    collection: str
    doc_id: str
    error: str = ""
    attempts: int = 0
    queued_at: int = 0


class OutboxStatus(BaseModel):
    enabled: bool
    in_flight: int
    pending: int
    entries: List[OutboxEntryOut] = Field(default_factory=list)


class OutboxFlushResult(BaseModel):
    flushed: int
    superseded: int = 0
    still_pending: int
