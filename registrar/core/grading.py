"""
Grade pipeline: numeric grade -> letter grade -> pass/fail -> GPA.

Everything here is a pure function of its arguments. The stateful update path
(assign a grade, notify, recompute GPA) lives in EnrollmentService.
"""

from typing import Iterable, List, Optional, Tuple

from .exceptions import InvalidGradeError

MIN_GRADE = 0.0
MAX_GRADE = 100.0
DEFAULT_PASSING_GRADE = 60.0
ATTENDANCE_WEIGHT = 0.3
GPA_DIVISOR = 25.0

# Checked top to bottom; the first threshold the grade reaches wins.
LETTER_THRESHOLDS: List[Tuple[float, str]] = [
    (90.0, "A"),
    (80.0, "B"),
    (70.0, "C"),
    (60.0, "D"),
]


def validate_grade(grade: Optional[float]) -> float:
    """Return the grade as a float or raise InvalidGradeError."""
    if grade is None:
        raise InvalidGradeError("Grade is required", details={"grade": grade})
    try:
        value = float(grade)
    except (TypeError, ValueError):
        raise InvalidGradeError(f"Grade must be a number: {grade!r}", details={"grade": grade})
    if value != value or not MIN_GRADE <= value <= MAX_GRADE:
        raise InvalidGradeError("Grade must be between 0 and 100", details={"grade": grade})
    return value


def letter_grade(grade: float) -> str:
    """Map a numeric grade to A/B/C/D/F."""
    for threshold, letter in LETTER_THRESHOLDS:
        if grade >= threshold:
            return letter
    return "F"


def has_passed(grade: float, passing_grade: float = DEFAULT_PASSING_GRADE) -> bool:
    """Check whether a numeric grade meets the passing grade."""
    return grade >= passing_grade


def estimate_from_attendance(attendance_percentage: float) -> float:
    """Stand-in grade used before a real grade has been assigned."""
    return attendance_percentage * ATTENDANCE_WEIGHT


def effective_grade(grade: Optional[float], attendance_percentage: float) -> float:
    """The assigned grade, or the attendance estimate when none is set."""
    if grade is not None:
        return grade
    return estimate_from_attendance(attendance_percentage)


def calculate_gpa(grades: Iterable[Optional[float]]) -> float:
    """
    Average the given percentage grades onto a 4.0 scale.

    Absent grades are skipped. With no grades left the GPA is 0.0.
    """
    graded = [g for g in grades if g is not None]
    if not graded:
        return 0.0
    return (sum(graded) / len(graded)) / GPA_DIVISOR
