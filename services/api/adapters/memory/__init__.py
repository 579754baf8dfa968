"""
In-memory desk and library stores.
Process-local mutable collections, the default home of desk and library state.
Not shared between processes.
"""
from __future__ import annotations

import dataclasses
import logging
from typing import Any, Dict, Iterable, List, Optional

from adapters.base import Listener, Unsubscribe
from core.ids import generate_id, now_ms
from models import (
    MCQ_ASSET_TYPE,
    SHARED_FIELDS,
    AssetUsageRef,
    CanonicalAsset,
    CanonicalQuestion,
    DeskKind,
    DeskRecord,
)

logger = logging.getLogger(__name__)

TITLE_MAX_CHARS = 50


class _Observable:
    def __init__(self) -> None:
        self._listeners: List[Listener] = []

    def subscribe(self, listener: Listener) -> Unsubscribe:
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _notify(self) -> None:
        for listener in list(self._listeners):
            listener()


class MemoryDeskStore(_Observable):
    """
    Records of one desk, kept in insertion order.
    """

    def __init__(self, kind: DeskKind, records: Optional[Iterable[DeskRecord]] = None):
        super().__init__()
        self.kind = kind
        self._records: List[DeskRecord] = list(records or [])

    def get_current_records(self) -> List[DeskRecord]:
        return list(self._records)

    def get_record(self, record_id: str) -> Optional[DeskRecord]:
        return next((r for r in self._records if r.id == record_id), None)

    def update_record(self, record: DeskRecord) -> None:
        for i, existing in enumerate(self._records):
            if existing.id == record.id:
                self._records[i] = record
                self._notify()
                return
        logger.debug(f"{self.kind.value} desk: update for unknown record {record.id}")

    def insert_record(self, record: DeskRecord) -> None:
        self._records.append(record)
        self._notify()


def _title_from_question(text: str) -> str:
    if len(text) > TITLE_MAX_CHARS:
        return text[:TITLE_MAX_CHARS] + "..."
    return text


class MemoryLibraryStore(_Observable):
    """
    Canonical assets, kept in corpus order.
    """

    def __init__(self, assets: Optional[Iterable[CanonicalAsset]] = None):
        super().__init__()
        self._assets: List[CanonicalAsset] = list(assets or [])

    @classmethod
    def from_documents(cls, documents: Iterable[Dict[str, Any]]) -> "MemoryLibraryStore":
        return cls(CanonicalAsset.from_storage(d) for d in documents)

    def get_canonical_assets(self) -> List[CanonicalAsset]:
        return list(self._assets)

    def get_asset(self, asset_id: str) -> Optional[CanonicalAsset]:
        return next((a for a in self._assets if a.id == asset_id), None)

    def _replace_asset(self, asset: CanonicalAsset) -> None:
        self._assets = [asset if a.id == asset.id else a for a in self._assets]

    def update_canonical_question(
        self,
        asset_id: str,
        question_id: str,
        fields: Dict[str, Any],
    ) -> None:
        asset = self.get_asset(asset_id)
        if asset is None or asset.type != MCQ_ASSET_TYPE or asset.find_question(question_id) is None:
            logger.debug(f"Library update skipped: no mcq question {asset_id}:{question_id}")
            return

        changes = {k: v for k, v in fields.items() if k in SHARED_FIELDS}
        if "options" in changes:
            changes["options"] = list(changes["options"])

        questions = [
            dataclasses.replace(q, **changes) if q.id == question_id else q
            for q in asset.quiz_questions
        ]
        title = asset.title
        if changes.get("question"):
            title = _title_from_question(changes["question"])

        self._replace_asset(
            dataclasses.replace(
                asset,
                quiz_questions=questions,
                title=title,
                updated_at=now_ms(),
            )
        )
        self._notify()

    def add_single_mcq(
        self,
        question: str,
        options: List[str],
        correct_index: int,
        user_id: str,
        subject_id: str,
        topic_id: str,
        explanation: Optional[str] = None,
        difficulty: Optional[str] = None,
        subtopic_id: Optional[str] = None,
    ) -> Dict[str, str]:
        question_id = generate_id("q")
        asset_id = generate_id("mcq")
        now = now_ms()

        self._assets.append(
            CanonicalAsset(
                id=asset_id,
                type=MCQ_ASSET_TYPE,
                title=_title_from_question(question),
                subject_id=subject_id,
                topic_id=topic_id,
                subtopic_id=subtopic_id,
                created_by=user_id,
                quiz_questions=[
                    CanonicalQuestion(
                        id=question_id,
                        question=question,
                        options=list(options),
                        correct_index=correct_index,
                        explanation=explanation,
                        difficulty=difficulty,
                    )
                ],
                created_at=now,
                updated_at=now,
            )
        )
        self._notify()
        return {"asset_id": asset_id, "question_id": question_id}

    def remove_single_mcq(self, asset_id: str, question_id: str) -> None:
        asset = self.get_asset(asset_id)
        if asset is None or asset.type != MCQ_ASSET_TYPE:
            return

        if len(asset.quiz_questions) <= 1:
            self._assets = [a for a in self._assets if a.id != asset_id]
        else:
            self._replace_asset(
                dataclasses.replace(
                    asset,
                    quiz_questions=[q for q in asset.quiz_questions if q.id != question_id],
                    updated_at=now_ms(),
                )
            )
        self._notify()

    def add_usage_ref(self, asset_id: str, usage: AssetUsageRef) -> bool:
        asset = self.get_asset(asset_id)
        if asset is None:
            return False

        exists = any(
            u.desk_type == usage.desk_type and u.desk_id == usage.desk_id
            for u in asset.used_in
        )
        if exists:
            return False

        self._replace_asset(
            dataclasses.replace(asset, used_in=[*asset.used_in, usage], updated_at=now_ms())
        )
        self._notify()
        return True

    def remove_usage_ref(self, asset_id: str, desk_type: str, desk_id: str) -> bool:
        asset = self.get_asset(asset_id)
        if asset is None:
            return False

        kept = [
            u for u in asset.used_in
            if not (u.desk_type == desk_type and u.desk_id == desk_id)
        ]
        if len(kept) == len(asset.used_in):
            return False

        self._replace_asset(dataclasses.replace(asset, used_in=kept, updated_at=now_ms()))
        self._notify()
        return True


class MemoryDocumentStore:
    """
    Document store kept in a dict of collections. Used when no remote
    backend is configured, and in tests.
    """

    def __init__(self) -> None:
        self._collections: Dict[str, Dict[str, Dict[str, Any]]] = {}

    def set_document(self, collection: str, doc_id: str, document: Dict[str, Any]) -> None:
        self._collections.setdefault(collection, {})[doc_id] = dict(document)

    def get_document(self, collection: str, doc_id: str) -> Optional[Dict[str, Any]]:
        doc = self._collections.get(collection, {}).get(doc_id)
        return dict(doc) if doc is not None else None

    def list_documents(self, collection: str) -> List[Dict[str, Any]]:
        return [dict(d) for d in self._collections.get(collection, {}).values()]

    def delete_document(self, collection: str, doc_id: str) -> None:
        self._collections.get(collection, {}).pop(doc_id, None)
