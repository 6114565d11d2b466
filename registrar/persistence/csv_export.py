"""
CSV export of students and courses.
"""

import csv
import logging
from typing import Iterable

from ..core.entities import Course, Student
from ..core.exceptions import PersistenceError

logger = logging.getLogger(__name__)

STUDENT_HEADER = ["StudentID", "FirstName", "LastName", "Email", "Phone",
                  "Program", "Semester", "GPA", "Type"]
COURSE_HEADER = ["CourseID", "CourseCode", "CourseName", "Department",
                 "Instructor", "Credits", "MaxCapacity"]


def export_students_csv(students: Iterable[Student], path: str) -> int:
    """Write one row per student; returns the number of rows written."""
    rows = [
        [s.student_id, s.first_name, s.last_name, s.email, s.phone, s.program,
         s.semester, f"{s.gpa:.2f}", s.student_type.label]
        for s in students
    ]
    _write(path, STUDENT_HEADER, rows)
    logger.info("Students exported to CSV: %s", path)
    return len(rows)


def export_courses_csv(courses: Iterable[Course], path: str) -> int:
    """Write one row per course; returns the number of rows written."""
    rows = [
        [c.course_id, c.course_code, c.course_name, c.department, c.instructor,
         c.credits, c.max_capacity]
        for c in courses
    ]
    _write(path, COURSE_HEADER, rows)
    logger.info("Courses exported to CSV: %s", path)
    return len(rows)


def _write(path: str, header, rows) -> None:
    try:
        with open(path, "w", newline="", encoding="utf-8") as f:
            writer = csv.writer(f)
            writer.writerow(header)
            writer.writerows(rows)
    except OSError as e:
        raise PersistenceError(f"Error exporting to CSV: {e}", details={'path': path})
