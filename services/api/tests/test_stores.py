"""
Tests for the in-memory library/desk stores and the document store backends.

Run with: pytest tests/test_stores.py -v
"""
import pytest

from adapters.json import JsonDocumentStore
from adapters.memory import MemoryDeskStore, MemoryDocumentStore, MemoryLibraryStore
from adapters.sqlite import SqliteDocumentStore
from models import AssetUsageRef, CanonicalAsset, CoachingMCQ, DeskKind, PersonalMCQ


class TestMemoryLibraryStore:
    """Tests for library editing."""

    def test_update_merges_shared_fields(self, library):
        library.update_canonical_question("a1", "q1", {"correct_index": 2, "course_id": "ignored"})

        q = library.get_asset("a1").find_question("q1")
        assert q.correct_index == 2
        assert q.question == "What is the unit of force?"

    def test_update_bumps_updated_at(self, library):
        library.update_canonical_question("a1", "q2", {"difficulty": "hard"})
        assert library.get_asset("a1").updated_at > 0

    def test_short_question_becomes_title(self, library):
        library.update_canonical_question("a1", "q1", {"question": "Short?"})
        assert library.get_asset("a1").title == "Short?"

    def test_update_unknown_is_noop(self, library):
        before = library.get_canonical_assets()
        library.update_canonical_question("zz", "q1", {"question": "x"})
        library.update_canonical_question("a1", "zz", {"question": "x"})
        library.update_canonical_question("notes1", "q1", {"question": "x"})
        assert library.get_canonical_assets() == before

    def test_add_single_mcq(self, library):
        created = library.add_single_mcq(
            question="New?", options=["a", "b"], correct_index=0,
            user_id="u1", subject_id="s", topic_id="t",
        )

        asset = library.get_asset(created["asset_id"])
        assert created["asset_id"].startswith("mcq_")
        assert created["question_id"].startswith("q_")
        assert asset.created_by == "u1"
        assert [q.id for q in asset.quiz_questions] == [created["question_id"]]
        assert library.get_canonical_assets()[-1] is asset

    def test_remove_one_of_many(self, library):
        library.remove_single_mcq("a1", "q2")
        assert [q.id for q in library.get_asset("a1").quiz_questions] == ["q1"]

    def test_usage_refs_dedupe(self, library):
        usage = AssetUsageRef(desk_type="personal", desk_id="course1", desk_name="Physics")

        assert library.add_usage_ref("a1", usage) is True
        assert library.add_usage_ref("a1", usage) is False
        assert library.add_usage_ref("zz", usage) is False
        assert len(library.get_asset("a1").used_in) == 1

        assert library.remove_usage_ref("a1", "personal", "course1") is True
        assert library.remove_usage_ref("a1", "personal", "course1") is False

    def test_listeners_and_unsubscribe(self, library):
        calls = []
        unsubscribe = library.subscribe(lambda: calls.append(1))

        library.update_canonical_question("a1", "q1", {"question": "x"})
        unsubscribe()
        library.update_canonical_question("a1", "q1", {"question": "y"})

        assert calls == [1]

    def test_from_documents(self):
        library = MemoryLibraryStore.from_documents(
            [
                {
                    "id": "a1",
                    "type": "mcq",
                    "title": "t",
                    "userId": "u1",
                    "quizQuestions": [
                        {"id": "q1", "question": "2+2?", "options": ["3", "4"], "correctIndex": 1}
                    ],
                }
            ]
        )
        q = library.get_asset("a1").find_question("q1")
        assert (q.question, q.correct_index) == ("2+2?", 1)


class TestMemoryDeskStore:
    def test_snapshot_is_a_copy(self):
        desk = MemoryDeskStore(DeskKind.PERSONAL, [PersonalMCQ(id="p1")])
        snapshot = desk.get_current_records()
        desk.insert_record(PersonalMCQ(id="p2"))

        assert [r.id for r in snapshot] == ["p1"]
        assert [r.id for r in desk.get_current_records()] == ["p1", "p2"]

    def test_update_unknown_is_ignored(self):
        desk = MemoryDeskStore(DeskKind.PERSONAL)
        desk.update_record(PersonalMCQ(id="ghost"))
        assert desk.get_current_records() == []


class TestRecordStorage:
    def test_coaching_round_trip(self):
        record = CoachingMCQ(
            id="c1", question="2+2?", options=["3", "4"], correct_index=1,
            asset_ref="a1:q1", course_id="course1", marks=4, negative_marks=1,
        )
        doc = record.to_storage()

        assert doc["assetRef"] == "a1:q1"
        assert doc["negativeMarks"] == 1
        assert CoachingMCQ.from_storage(doc) == record

    def test_untracked_record_has_no_asset_ref_key(self):
        assert "assetRef" not in PersonalMCQ(id="p1").to_storage()

    def test_asset_round_trip(self, library):
        asset = library.get_asset("a1")
        assert CanonicalAsset.from_storage(asset.to_storage()) == asset


@pytest.fixture(params=["memory", "json", "sqlite"])
def store(request, tmp_path):
    if request.param == "json":
        return JsonDocumentStore(str(tmp_path / "data"))
    if request.param == "sqlite":
        return SqliteDocumentStore.from_url(f"sqlite:///{tmp_path / 'sync.db'}")
    return MemoryDocumentStore()


class TestDocumentStores:
    """The same contract across every backend."""

    def test_set_and_get(self, store):
        store.set_document("coaching-mcqs", "c1", {"id": "c1", "options": ["a", "b"]})
        assert store.get_document("coaching-mcqs", "c1") == {"id": "c1", "options": ["a", "b"]}

    def test_get_missing(self, store):
        assert store.get_document("coaching-mcqs", "nope") is None

    def test_overwrite(self, store):
        store.set_document("coaching-mcqs", "c1", {"v": 1})
        store.set_document("coaching-mcqs", "c1", {"v": 2})
        assert store.get_document("coaching-mcqs", "c1") == {"v": 2}
        assert store.list_documents("coaching-mcqs") == [{"v": 2}]

    def test_list_in_insertion_order(self, store):
        for doc_id in ["c3", "c1", "c2"]:
            store.set_document("coaching-mcqs", doc_id, {"id": doc_id})
        assert [d["id"] for d in store.list_documents("coaching-mcqs")] == ["c3", "c1", "c2"]

    def test_collections_are_separate(self, store):
        store.set_document("assets", "x", {"id": "x"})
        assert store.list_documents("coaching-mcqs") == []

    def test_delete(self, store):
        store.set_document("coaching-mcqs", "c1", {"id": "c1"})
        store.delete_document("coaching-mcqs", "c1")
        store.delete_document("coaching-mcqs", "never-existed")
        assert store.get_document("coaching-mcqs", "c1") is None


class TestJsonDocumentStore:
    def test_survives_reopen(self, tmp_path):
        JsonDocumentStore(str(tmp_path)).set_document("assets", "a1", {"id": "a1"})
        assert JsonDocumentStore(str(tmp_path)).get_document("assets", "a1") == {"id": "a1"}

    def test_no_directory_until_first_write(self, tmp_path):
        JsonDocumentStore(str(tmp_path / "lazy")).list_documents("assets")
        assert not (tmp_path / "lazy").exists()
