"""
Core interfaces and abstract base classes for the Registrar platform.
"""

from abc import ABC, abstractmethod
from typing import Any, Dict, List


class Searchable(ABC):
    """Interface for entities that can be looked up from free-text input."""

    @abstractmethod
    def matches_id(self, value: str) -> bool:
        """Check if the value identifies this entity."""
        pass

    @abstractmethod
    def matches_name(self, name: str) -> bool:
        """Check if the name appears in this entity's display name."""
        pass

    @abstractmethod
    def matches_keyword(self, keyword: str) -> bool:
        """Check if the keyword appears in any searchable field."""
        pass


class GradeObserver(ABC):
    """Receives a callback every time a grade is set through the sanctioned path."""

    @abstractmethod
    def on_grade_updated(self, student: 'Student', enrollment: 'Enrollment',
                         old_grade: float, new_grade: float) -> None:
        """React to a grade change. Must not mutate the entities passed in."""
        pass


class RecordRepository(ABC):
    """Whole-collection storage for one kind of record."""

    @abstractmethod
    def load_all(self) -> List[Dict[str, Any]]:
        """Load every stored record."""
        pass

    @abstractmethod
    def save_all(self, records: List[Dict[str, Any]]) -> None:
        """Replace the stored collection with the given records."""
        pass

    @abstractmethod
    def exists(self) -> bool:
        """Check if anything has been saved yet."""
        pass
