from __future__ import annotations

from .question import (
    DIFFICULTIES,
    MCQ_ASSET_TYPE,
    SHARED_FIELDS,
    AssetUsageRef,
    CanonicalAsset,
    CanonicalQuestion,
)
from .desk import (
    RECORD_TYPES,
    CoachingMCQ,
    DeskKind,
    DeskRecord,
    GroupMCQ,
    PersonalMCQ,
)
