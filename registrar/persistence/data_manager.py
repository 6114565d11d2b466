"""
Whole-collection save and load for the three record services.
"""

import logging
from contextlib import ExitStack, contextmanager
from typing import Dict, Iterator, List, Optional

from ..core.entities import Course, Enrollment, Student
from ..core.enums import EnrollmentStatus
from ..core.exceptions import PersistenceError
from ..core.interfaces import RecordRepository
from .file_store import JsonFileRepository

logger = logging.getLogger(__name__)


class DataManager:
    """
    Snapshots students, courses and enrollments to one repository each.

    Saving and loading hold every service lock, so no mutation can interleave
    with a snapshot. Loading parses all three collections before touching any
    store; if anything fails the in-memory state is left as it was.
    """

    def __init__(self, student_service, course_service, enrollment_service,
                 base_path: str = "data",
                 repositories: Optional[Dict[str, RecordRepository]] = None):
        self._students = student_service
        self._courses = course_service
        self._enrollments = enrollment_service
        self._repositories = repositories or {
            name: JsonFileRepository(base_path, name)
            for name in ("students", "courses", "enrollments")
        }

    @contextmanager
    def _exclusive(self) -> Iterator[None]:
        with ExitStack() as stack:
            for service in (self._students, self._courses, self._enrollments):
                stack.enter_context(service.lock)
            yield

    def save_all(self) -> Dict[str, int]:
        """Write every collection. Returns the number of records per collection."""
        with self._exclusive():
            snapshot = {
                "students": [s.to_dict() for s in self._students.get_all_students()],
                "courses": [c.to_dict() for c in self._courses.get_all_courses()],
                "enrollments": [e.to_dict() for e in self._enrollments.get_all_enrollments()],
            }
            for name, records in snapshot.items():
                self._repositories[name].save_all(records)
        counts = {name: len(records) for name, records in snapshot.items()}
        logger.info("All data saved: %s", counts)
        return counts

    def load_all(self) -> Dict[str, int]:
        """Replace the in-memory stores with what is on disk."""
        with self._exclusive():
            raw = {name: repo.load_all() for name, repo in self._repositories.items()}
            students, courses, enrollments = self._rebuild(raw)

            self._students.replace_all(students)
            self._courses.replace_all(courses)
            self._enrollments.replace_all(enrollments)

        counts = {"students": len(students), "courses": len(courses),
                  "enrollments": len(enrollments)}
        logger.info("Loaded %d students, %d courses, %d enrollments",
                    counts["students"], counts["courses"], counts["enrollments"])
        return counts

    def _rebuild(self, raw: Dict[str, List[dict]]):
        try:
            students = [Student.from_dict(d) for d in raw.get("students", [])]
            courses = [Course.from_dict(d) for d in raw.get("courses", [])]
        except (KeyError, TypeError, ValueError) as e:
            raise PersistenceError(f"Corrupt record in data files: {e}")

        students_by_id = {s.student_id: s for s in students}
        courses_by_id = {c.course_id: c for c in courses}

        enrollments: List[Enrollment] = []
        for data in raw.get("enrollments", []):
            try:
                student = students_by_id.get(data["student_id"])
                course = courses_by_id.get(data["course_id"])
                if student is None or course is None:
                    logger.warning("Skipping enrollment %s: unknown student or course",
                                   data.get("enrollment_id"))
                    continue
                enrollment = Enrollment.from_dict(data, student, course)
            except (KeyError, TypeError, ValueError) as e:
                raise PersistenceError(f"Corrupt enrollment record: {e}")
            enrollments.append(enrollment)

        # Back-references cover every enrollment except dropped ones.
        linked: Dict[str, List[Enrollment]] = {}
        for enrollment in sorted(enrollments, key=lambda e: e.enrollment_id):
            if enrollment.status is not EnrollmentStatus.DROPPED:
                linked.setdefault(enrollment.student.student_id, []).append(enrollment)
        for student in students:
            student.restore_enrollments(linked.get(student.student_id, []))

        return students, courses, enrollments
