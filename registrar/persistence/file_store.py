"""
File-based record storage: one JSON document per collection.
"""

import json
import logging
import os
import tempfile
import threading
from datetime import datetime, timezone
from typing import Any, Dict, List

from ..core.exceptions import PersistenceError
from ..core.interfaces import RecordRepository

logger = logging.getLogger(__name__)

FORMAT_VERSION = 1


class JsonFileRepository(RecordRepository):
    """Stores a whole collection as ``<base_path>/<collection>.json``."""

    def __init__(self, base_path: str, collection: str):
        self._base_path = base_path
        self._collection = collection
        self._lock = threading.RLock()

    @property
    def path(self) -> str:
        return os.path.join(self._base_path, f"{self._collection}.json")

    @property
    def collection(self) -> str:
        return self._collection

    def _ensure_directory_exists(self) -> None:
        os.makedirs(self._base_path, exist_ok=True)

    def exists(self) -> bool:
        return os.path.exists(self.path)

    def load_all(self) -> List[Dict[str, Any]]:
        """Read every record; an absent file means an empty collection."""
        with self._lock:
            if not self.exists():
                logger.info("No existing %s data file found. Starting fresh.", self._collection)
                return []

            try:
                with open(self.path, "r", encoding="utf-8") as f:
                    document = json.load(f)
            except (OSError, json.JSONDecodeError) as e:
                raise PersistenceError(f"Error loading {self._collection} data: {e}",
                                       details={'path': self.path})

            if isinstance(document, list):
                records = document
            elif isinstance(document, dict) and isinstance(document.get("records"), list):
                records = document["records"]
            else:
                raise PersistenceError(f"Unrecognised {self._collection} data file layout",
                                       details={'path': self.path})
            return records

    def save_all(self, records: List[Dict[str, Any]]) -> None:
        """Write the collection atomically; the old file survives a failed write."""
        with self._lock:
            document = {
                "collection": self._collection,
                "format_version": FORMAT_VERSION,
                "saved_at": datetime.now(timezone.utc).isoformat(),
                "records": records,
            }
            tmp_path = None
            try:
                self._ensure_directory_exists()
                fd, tmp_path = tempfile.mkstemp(prefix=f".{self._collection}.",
                                                suffix=".tmp", dir=self._base_path)
                with os.fdopen(fd, "w", encoding="utf-8") as f:
                    json.dump(document, f, indent=2)
                os.replace(tmp_path, self.path)
                tmp_path = None
            except (OSError, TypeError, ValueError) as e:
                raise PersistenceError(f"Error saving {self._collection} data: {e}",
                                       details={'path': self.path})
            finally:
                if tmp_path and os.path.exists(tmp_path):
                    os.remove(tmp_path)
            logger.info("%s data saved to file: %s", self._collection.capitalize(), self.path)
