"""
In-memory keyed storage shared by the services.
"""

import threading
from typing import Callable, Dict, Generic, Iterable, Iterator, List, Optional, TypeVar

from ..core.exceptions import DuplicateEntityError, NotFoundError

T = TypeVar('T')


class EntityStore(Generic[T]):
    """
    Unique-key map with O(1) lookup.

    ``values()`` hands out a copy in insertion order, so callers can sort or
    filter it freely without touching the store.
    """

    def __init__(self, entity_type: str):
        self._entity_type = entity_type
        self._items: Dict[str, T] = {}
        self._lock = threading.RLock()

    @property
    def entity_type(self) -> str:
        return self._entity_type

    def put(self, key: str, value: T) -> T:
        """Insert a new entry; fails if the key is taken."""
        with self._lock:
            if key in self._items:
                raise DuplicateEntityError(
                    f"{self._entity_type} with ID already exists: {key}",
                    details={'entity_type': self._entity_type, 'id': key})
            self._items[key] = value
            return value

    def replace(self, key: str, value: T) -> T:
        """Overwrite an existing entry."""
        with self._lock:
            if key not in self._items:
                raise NotFoundError(f"{self._entity_type} not found: {key}",
                                    details={'entity_type': self._entity_type, 'id': key})
            self._items[key] = value
            return value

    def get(self, key: str) -> Optional[T]:
        with self._lock:
            return self._items.get(key)

    def exists(self, key: str) -> bool:
        with self._lock:
            return key in self._items

    def remove(self, key: str) -> T:
        """Remove and return an entry."""
        with self._lock:
            if key not in self._items:
                raise NotFoundError(f"{self._entity_type} not found: {key}",
                                    details={'entity_type': self._entity_type, 'id': key})
            return self._items.pop(key)

    def values(self) -> List[T]:
        with self._lock:
            return list(self._items.values())

    def keys(self) -> List[str]:
        with self._lock:
            return list(self._items.keys())

    def find(self, predicate: Callable[[T], bool]) -> List[T]:
        """All values matching the predicate, in store order."""
        return [value for value in self.values() if predicate(value)]

    def clear(self) -> None:
        with self._lock:
            self._items.clear()

    def load(self, items: Iterable[T], key_func: Callable[[T], str]) -> None:
        """Replace the whole contents, keying each item with key_func."""
        rebuilt: Dict[str, T] = {}
        for item in items:
            rebuilt[key_func(item)] = item
        with self._lock:
            self._items = rebuilt

    def __len__(self) -> int:
        with self._lock:
            return len(self._items)

    def __contains__(self, key: object) -> bool:
        with self._lock:
            return key in self._items

    def __iter__(self) -> Iterator[T]:
        return iter(self.values())
