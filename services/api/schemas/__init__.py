"""
Pydantic schemas for API request/response validation.
"""
from .library import (
    LibraryEditResponse,
    LibraryMCQCreate,
    LibraryMCQCreated,
    LibraryQuestionOut,
    QuestionPatch,
    SyncCountsOut,
    UsageRefIn,
    UsageRefOut,
)
from .desk import (
    DeskImportRequest,
    DeskRecordEditResponse,
    DeskRecordList,
    DeskRecordPatch,
    OutboxEntryOut,
    OutboxFlushResult,
    OutboxStatus,
)
