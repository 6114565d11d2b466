"""
Custom exceptions for the Registrar platform.
"""

from typing import Optional, Any, Dict


class RegistrarException(Exception):
    """Base exception for all Registrar-related errors."""

    default_code = "REGISTRAR_ERROR"

    def __init__(self, message: str, error_code: Optional[str] = None, details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.error_code = error_code or self.default_code
        self.details = details or {}


class NotFoundError(RegistrarException):
    """Raised when a referenced student, course or enrollment does not exist."""
    default_code = "NOT_FOUND"


class StudentNotFoundError(NotFoundError):
    """Raised when a student id is unknown."""

    def __init__(self, student_id: str, message: Optional[str] = None):
        super().__init__(message or f"Student not found with ID: {student_id}",
                         details={"student_id": student_id})
        self.student_id = student_id


class CourseNotFoundError(NotFoundError):
    """Raised when a course id or code is unknown."""

    def __init__(self, course_id: str, message: Optional[str] = None):
        super().__init__(message or f"Course not found: {course_id}",
                         details={"course_id": course_id})
        self.course_id = course_id


class EnrollmentNotFoundError(NotFoundError):
    """Raised when an enrollment id is unknown."""

    def __init__(self, enrollment_id: str, message: Optional[str] = None):
        super().__init__(message or f"Enrollment not found: {enrollment_id}",
                         details={"enrollment_id": enrollment_id})
        self.enrollment_id = enrollment_id


class DuplicateEnrollmentError(RegistrarException):
    """Raised when an active enrollment already links the same student and course."""
    default_code = "DUPLICATE_ENROLLMENT"


class CapacityExceededError(RegistrarException):
    """Raised when a course already holds max_capacity active enrollments."""
    default_code = "CAPACITY_EXCEEDED"


class InvalidGradeError(RegistrarException):
    """Raised when a grade falls outside 0-100."""
    default_code = "INVALID_GRADE"


class InvalidRequestError(RegistrarException):
    """Raised when a required reference is missing from a request."""
    default_code = "INVALID_REQUEST"


class InvalidTransitionError(RegistrarException):
    """Raised when an enrollment is moved out of a terminal status."""
    default_code = "INVALID_TRANSITION"


class ValidationError(RegistrarException):
    """Raised when field-level data validation fails."""
    default_code = "VALIDATION_ERROR"

    def __init__(self, message: str, field: Optional[str] = None, value: Any = None):
        super().__init__(message, details={"field": field, "value": value})
        self.field = field
        self.value = value


class DuplicateEntityError(RegistrarException):
    """Raised when attempting to create a duplicate entity."""
    default_code = "DUPLICATE_ENTITY"


class PersistenceError(RegistrarException):
    """Raised when persistence operations fail."""
    default_code = "PERSISTENCE_ERROR"


class ConfigurationError(RegistrarException):
    """Raised when configuration is invalid."""
    default_code = "CONFIGURATION_ERROR"
