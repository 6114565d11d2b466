"""
Enumerations and constants for the Registrar platform.
"""

from enum import Enum


class EnrollmentStatus(Enum):
    """Status of an enrollment. ACTIVE is the only non-terminal status."""
    ACTIVE = "ACTIVE"
    COMPLETED = "COMPLETED"
    DROPPED = "DROPPED"
    WITHDRAWN = "WITHDRAWN"

    @property
    def is_terminal(self) -> bool:
        return self is not EnrollmentStatus.ACTIVE


class StudentType(Enum):
    """Kinds of students, each with its own good-standing GPA threshold."""
    UNDERGRADUATE = "UNDERGRADUATE"
    GRADUATE = "GRADUATE"

    @property
    def good_standing_threshold(self) -> float:
        return GOOD_STANDING_THRESHOLDS[self]

    @property
    def role(self) -> str:
        return "GRADUATE_STUDENT" if self is StudentType.GRADUATE else "STUDENT"

    @property
    def label(self) -> str:
        return "Graduate" if self is StudentType.GRADUATE else "Undergraduate"


GOOD_STANDING_THRESHOLDS = {
    StudentType.UNDERGRADUATE: 2.0,
    StudentType.GRADUATE: 3.0,
}
