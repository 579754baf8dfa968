"""
Pydantic schemas for the canonical library.
"""
from typing import List, Literal, Optional
from pydantic import BaseModel, Field

Difficulty = Literal["easy", "medium", "hard"]


class LibraryQuestionOut(BaseModel):
    """A canonical question together with the asset that owns it."""
    asset_id: str
    question_id: str
    question: str
    options: List[str]
    correct_index: int
    explanation: Optional[str] = None
    difficulty: Optional[str] = None


class QuestionPatch(BaseModel):
    """Partial update of the shared question fields."""
    question: Optional[str] = Field(None, min_length=1, description="Question text")
    options: Optional[List[str]] = Field(None, description="Answer options (at least 2)")
    correct_index: Optional[int] = Field(None, ge=0, description="Index of the correct option")
    explanation: Optional[str] = Field(None, description="Explanation shown after answering")
    difficulty: Optional[Difficulty] = None


class LibraryMCQCreate(BaseModel):
    """Schema for adding a single question to the library."""
    question: str = Field(..., min_length=1)
    options: List[str] = Field(..., min_length=2)
    correct_index: int = Field(..., ge=0)
    user_id: str = Field(..., description="Author ID")
    subject_id: str
    topic_id: str
    subtopic_id: Optional[str] = None
    explanation: Optional[str] = None
    difficulty: Optional[Difficulty] = None


class LibraryMCQCreated(BaseModel):
    asset_id: str
    question_id: str


class SyncCountsOut(BaseModel):
    """How many desk copies a broadcast touched."""
    personal: int = 0
    group: int = 0
    coaching: int = 0
    total: int = 0


class LibraryEditResponse(BaseModel):
    question: LibraryQuestionOut
    synced: SyncCountsOut


class UsageRefIn(BaseModel):
    """Record that an asset was added to a desk."""
    desk_type: str = Field(..., min_length=1, description="personal / group / teacher")
    desk_id: str = Field(..., min_length=1, description="Course or group ID")
    desk_name: str = Field("", description="Display name of the desk")


class UsageRefOut(BaseModel):
    desk_type: str
    desk_id: str
    desk_name: str = ""
    added_at: int = 0
