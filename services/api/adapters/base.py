"""
Storage interfaces for the desk sync service.
Defines the contracts the sync engine needs from its collaborators.
"""

from typing import Any, Callable, Dict, List, Optional, Protocol

from models import AssetUsageRef, CanonicalAsset, DeskKind, DeskRecord

Listener = Callable[[], None]
Unsubscribe = Callable[[], None]


class DeskStore(Protocol):
    """
    Protocol for a single desk's record store (personal, group or coaching).

    The sync engine only reads current records and writes whole records back;
    it never deletes.
    """

    kind: DeskKind

    def get_current_records(self) -> List[DeskRecord]:
        """
        Return all records owned by this desk.

        Callers iterate the returned list, so implementations must return a
        snapshot rather than their live collection.
        """
        ...

    def get_record(self, record_id: str) -> Optional[DeskRecord]:
        """
        Fetch a record by its desk-local id.

        Returns:
            The record, or None if not found.
        """
        ...

    def update_record(self, record: DeskRecord) -> None:
        """
        Replace the stored record with the same id.
        Unknown ids are ignored.
        """
        ...

    def insert_record(self, record: DeskRecord) -> None:
        """
        Add a new record to the desk.
        """
        ...

    def subscribe(self, listener: Listener) -> Unsubscribe:
        """
        Register a callback invoked after every change.

        Returns:
            A callable that removes the listener.
        """
        ...


class LibraryStore(Protocol):
    """
    Protocol for the canonical asset library.
    """

    def get_canonical_assets(self) -> List[CanonicalAsset]:
        """
        Return all assets (any type) in corpus order.
        """
        ...

    def get_asset(self, asset_id: str) -> Optional[CanonicalAsset]:
        """
        Fetch an asset by id, whatever its type.
        """
        ...

    def update_canonical_question(
        self,
        asset_id: str,
        question_id: str,
        fields: Dict[str, Any],
    ) -> None:
        """
        Merge `fields` into one question of an mcq asset.

        Implementations should:
            - bump the asset's updated_at
            - refresh the asset title when the question text changes
            - silently ignore unknown assets or questions
        """
        ...

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
        """
        Create a new mcq asset holding one question.

        Returns:
            {"asset_id": ..., "question_id": ...}
        """
        ...

    def remove_single_mcq(self, asset_id: str, question_id: str) -> None:
        """
        Remove one question. Removing the last question removes the asset.
        """
        ...

    def add_usage_ref(self, asset_id: str, usage: AssetUsageRef) -> bool:
        """
        Record that an asset is used by a desk.

        Returns:
            False if the asset is missing or the desk is already recorded.
        """
        ...

    def remove_usage_ref(self, asset_id: str, desk_type: str, desk_id: str) -> bool:
        """
        Forget a desk usage.

        Returns:
            True if a usage ref was removed.
        """
        ...

    def subscribe(self, listener: Listener) -> Unsubscribe:
        """
        Register a callback invoked after every change.
        """
        ...


class DocumentStore(Protocol):
    """
    Protocol for the remote document store (opaque key-value collections).

    This allows swapping between a JSON directory, SQLite, etc.
    without changing the sync engine.
    """

    def set_document(self, collection: str, doc_id: str, document: Dict[str, Any]) -> None:
        """
        Create or overwrite a document.

        Raises:
            Any backend error; callers decide whether a failed write is fatal.
        """
        ...

    def get_document(self, collection: str, doc_id: str) -> Optional[Dict[str, Any]]:
        """
        Fetch one document, or None if not found.
        """
        ...

    def list_documents(self, collection: str) -> List[Dict[str, Any]]:
        """
        Return every document in a collection, in insertion order.
        """
        ...

    def delete_document(self, collection: str, doc_id: str) -> None:
        """
        Delete a document. Missing documents are ignored.
        """
        ...
