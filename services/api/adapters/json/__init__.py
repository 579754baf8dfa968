"""
JSON file document store for the desk sync service.
Simple file-based storage for quick demos and testing.
Not production-ready (no cross-process locking, not suitable for concurrent writers).
"""
import json
import re
import threading
from pathlib import Path
from typing import Any, Dict, List, Optional

_SAFE_NAME = re.compile(r"[^A-Za-z0-9_.-]")


class JsonDocumentStore:
    """
    JSON file-based document store.
    Stores each collection as a JSON object {doc_id: document} in its own file
    under the data directory. Uses atomic file operations for basic consistency.
    """

    def __init__(self, data_dir: str = "data"):
        """
        Initialize the JSON store.

        The directory is created lazily on the first write.

        Args:
            data_dir: Directory to store JSON files
        """
        self.data_dir = Path(data_dir)
        # Remote writes arrive from the persister's worker threads
        self._lock = threading.Lock()

    def _collection_file(self, collection: str) -> Path:
        return self.data_dir / f"{_SAFE_NAME.sub('_', collection)}.json"

    def _read_file(self, filepath: Path) -> Dict[str, Dict[str, Any]]:
        """Read and parse a JSON file."""
        try:
            with open(filepath, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (FileNotFoundError, json.JSONDecodeError):
            return {}
        return data if isinstance(data, dict) else {}

    def _write_file(self, filepath: Path, data: Dict[str, Dict[str, Any]]) -> None:
        """Write data to a JSON file atomically."""
        self.data_dir.mkdir(parents=True, exist_ok=True)

        # Write to temporary file first
        tmp_file = filepath.with_suffix(".tmp")
        with open(tmp_file, "w", encoding="utf-8") as f:
            json.dump(data, f, indent=2, ensure_ascii=False, default=str)

        # Atomic rename
        tmp_file.replace(filepath)

    def set_document(self, collection: str, doc_id: str, document: Dict[str, Any]) -> None:
        """Create or overwrite a document."""
        filepath = self._collection_file(collection)
        with self._lock:
            docs = self._read_file(filepath)
            docs[doc_id] = document
            self._write_file(filepath, docs)

    def get_document(self, collection: str, doc_id: str) -> Optional[Dict[str, Any]]:
        """Fetch one document."""
        with self._lock:
            return self._read_file(self._collection_file(collection)).get(doc_id)

    def list_documents(self, collection: str) -> List[Dict[str, Any]]:
        """List every document in a collection."""
        with self._lock:
            return list(self._read_file(self._collection_file(collection)).values())

    def delete_document(self, collection: str, doc_id: str) -> None:
        """Delete a document if present."""
        filepath = self._collection_file(collection)
        with self._lock:
            docs = self._read_file(filepath)
            if docs.pop(doc_id, None) is not None:
                self._write_file(filepath, docs)
