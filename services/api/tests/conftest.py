"""
Shared fixtures: an in-memory library with a few mcq assets and empty desks.
"""
import os
import sys
from typing import Any, Dict, List, Optional

import pytest

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from adapters.memory import MemoryDeskStore, MemoryDocumentStore, MemoryLibraryStore
from core.remote_persist import RemotePersister
from core.sync import DeskSet
from models import CanonicalAsset, CanonicalQuestion, DeskKind


def make_question(qid: str, text: str, **kwargs) -> CanonicalQuestion:
    return CanonicalQuestion(
        id=qid,
        question=text,
        options=kwargs.pop("options", ["A", "B", "C", "D"]),
        correct_index=kwargs.pop("correct_index", 0),
        **kwargs,
    )


def make_asset(asset_id: str, questions: List[CanonicalQuestion], **kwargs) -> CanonicalAsset:
    return CanonicalAsset(
        id=asset_id,
        type=kwargs.pop("type", "mcq"),
        title=kwargs.pop("title", questions[0].question if questions else asset_id),
        subject_id=kwargs.pop("subject_id", "physics"),
        topic_id=kwargs.pop("topic_id", "mechanics"),
        quiz_questions=questions,
        **kwargs,
    )


class FlakyDocumentStore(MemoryDocumentStore):
    """Fails the first `failures` writes, then behaves."""

    def __init__(self, failures: int = 0):
        super().__init__()
        self.failures = failures
        self.calls = 0

    def set_document(self, collection: str, doc_id: str, document: Dict[str, Any]) -> None:
        self.calls += 1
        if self.failures > 0:
            self.failures -= 1
            raise ConnectionError("remote store unavailable")
        super().set_document(collection, doc_id, document)


@pytest.fixture
def library() -> MemoryLibraryStore:
    return MemoryLibraryStore(
        [
            make_asset(
                "a1",
                [
                    make_question("q1", "What is the unit of force?",
                                  options=["Newton", "Joule", "Watt", "Pascal"],
                                  explanation="F = m * a", difficulty="easy"),
                    make_question("q2", "Speed of light in vacuum?",
                                  options=["3e8 m/s", "3e6 m/s"]),
                ],
            ),
            make_asset("notes1", [], type="note", title="Kinematics notes"),
            make_asset(
                "a2",
                [make_question("q1", "Which gas do plants absorb?",
                               options=["Oxygen", "Carbon dioxide"], correct_index=1)],
                subject_id="biology",
            ),
        ]
    )


@pytest.fixture
def desks() -> DeskSet:
    return DeskSet(
        personal=MemoryDeskStore(DeskKind.PERSONAL),
        group=MemoryDeskStore(DeskKind.GROUP),
        coaching=MemoryDeskStore(DeskKind.COACHING),
    )


@pytest.fixture
def document_store() -> MemoryDocumentStore:
    return MemoryDocumentStore()


@pytest.fixture
def persister(document_store):
    p = RemotePersister(document_store, max_workers=1, max_attempts=2, retry_wait_max=0)
    yield p
    p.shutdown()


def wait_for(persister: Optional[RemotePersister]) -> None:
    if persister is not None:
        persister.wait(timeout=5)
