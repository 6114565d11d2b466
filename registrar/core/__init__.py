"""
Core module containing the entity model, grade pipeline and base classes.
"""

from .entities import *
from .interfaces import *
from .exceptions import *
from .enums import *
from .grading import calculate_gpa, has_passed, letter_grade, validate_grade

__all__ = [
    # Entities
    "AbstractEntity",
    "Person",
    "Student",
    "Course",
    "Enrollment",

    # Interfaces
    "Searchable",
    "GradeObserver",
    "RecordRepository",

    # Enums
    "EnrollmentStatus",
    "StudentType",

    # Grade pipeline
    "calculate_gpa",
    "has_passed",
    "letter_grade",
    "validate_grade",

    # Exceptions
    "RegistrarException",
    "NotFoundError",
    "StudentNotFoundError",
    "CourseNotFoundError",
    "EnrollmentNotFoundError",
    "DuplicateEnrollmentError",
    "CapacityExceededError",
    "InvalidGradeError",
    "InvalidRequestError",
    "InvalidTransitionError",
    "ValidationError",
    "DuplicateEntityError",
    "PersistenceError",
    "ConfigurationError",
]
