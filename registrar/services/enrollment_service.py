"""
Enrollment service: admission control and the grade update path.
"""

import logging
import re
import threading
from typing import List, Optional

from ..core.entities import Course, Enrollment, Student
from ..core.enums import EnrollmentStatus
from ..core.exceptions import (
    CapacityExceededError, DuplicateEnrollmentError, EnrollmentNotFoundError,
    InvalidRequestError,
)
from ..core.grading import DEFAULT_PASSING_GRADE, validate_grade
from ..persistence.entity_store import EntityStore
from .notification_service import GradeNotificationManager

logger = logging.getLogger(__name__)

ENROLLMENT_ID_PREFIX = "ENR"


class EnrollmentService:
    """
    Service for enrolling students, moving enrollments through their
    lifecycle and recording grades.

    Capacity is checked against a live count of ACTIVE enrollments taken from
    the store on every call. Every read-decide-write sequence runs under the
    service lock.
    """

    def __init__(self, notification_manager: Optional[GradeNotificationManager] = None,
                 store: Optional[EntityStore[Enrollment]] = None,
                 passing_grade: float = DEFAULT_PASSING_GRADE):
        self._store: EntityStore[Enrollment] = (
            store if store is not None else EntityStore("Enrollment"))
        self._notification_manager = notification_manager or GradeNotificationManager()
        self._passing_grade = passing_grade
        self._id_counter = 1
        self._lock = threading.RLock()

    @property
    def store(self) -> EntityStore[Enrollment]:
        return self._store

    @property
    def lock(self) -> threading.RLock:
        return self._lock

    @property
    def notification_manager(self) -> GradeNotificationManager:
        return self._notification_manager

    @property
    def passing_grade(self) -> float:
        return self._passing_grade

    def _generate_enrollment_id(self) -> str:
        while True:
            enrollment_id = f"{ENROLLMENT_ID_PREFIX}{self._id_counter:06d}"
            self._id_counter += 1
            if not self._store.exists(enrollment_id):
                return enrollment_id

    def _require(self, enrollment_id: str) -> Enrollment:
        enrollment = self._store.get(enrollment_id)
        if enrollment is None:
            raise EnrollmentNotFoundError(enrollment_id)
        return enrollment

    # Admission

    def enroll(self, student: Optional[Student], course: Optional[Course]) -> Enrollment:
        """Enroll a student in a course."""
        if student is None or course is None:
            raise InvalidRequestError("Student and Course cannot be null")

        with self._lock:
            if self._has_active_enrollment(student, course):
                logger.warning("Duplicate enrollment rejected: %s in %s",
                               student.student_id, course.course_code)
                raise DuplicateEnrollmentError(
                    "Student is already enrolled in this course",
                    details={'student_id': student.student_id, 'course_id': course.course_id})

            active = self.get_enrollment_count_for_course(course.course_id)
            if active >= course.max_capacity:
                logger.warning("Enrollment rejected, %s is full (%d/%d)",
                               course.course_code, active, course.max_capacity)
                raise CapacityExceededError(
                    f"Course is full. Max capacity: {course.max_capacity}",
                    details={'course_id': course.course_id, 'max_capacity': course.max_capacity,
                             'active_enrollments': active})

            enrollment = Enrollment(self._generate_enrollment_id(), student, course)
            self._store.put(enrollment.enrollment_id, enrollment)
            student.add_enrollment(enrollment)

        logger.info("Student %s enrolled in %s (%s)", student.full_name,
                    course.course_name, enrollment.enrollment_id)
        return enrollment

    def drop(self, enrollment_id: str) -> Enrollment:
        """Mark an active enrollment DROPPED, unlink it and refresh the student's GPA."""
        with self._lock:
            enrollment = self._require(enrollment_id)
            enrollment.drop()
            enrollment.student.remove_enrollment(enrollment)
            enrollment.student.update_gpa()
        logger.info("Enrollment dropped: %s", enrollment_id)
        return enrollment

    def withdraw(self, enrollment_id: str) -> Enrollment:
        """Mark an active enrollment WITHDRAWN. It stays linked to the student."""
        with self._lock:
            enrollment = self._require(enrollment_id)
            enrollment.withdraw()
        logger.info("Enrollment withdrawn: %s", enrollment_id)
        return enrollment

    def complete(self, enrollment_id: str, final_grade: float) -> Enrollment:
        """Close an active enrollment with a final grade and refresh the GPA."""
        with self._lock:
            enrollment = self._require(enrollment_id)
            grade = validate_grade(final_grade)
            enrollment.complete(grade)
            enrollment.student.update_gpa()
        logger.info("Enrollment completed: %s, final grade %.2f (%s), %s", enrollment_id,
                    grade, enrollment.letter_grade,
                    "PASSED" if enrollment.has_passed(self._passing_grade) else "FAILED")
        return enrollment

    # Grades

    def assign_grade(self, enrollment_id: str, new_grade: float) -> Enrollment:
        """
        Set a grade, notify every observer, then recompute the student's GPA.

        Observers see the GPA as it was before this grade counted.
        """
        with self._lock:
            enrollment = self._require(enrollment_id)
            grade = validate_grade(new_grade)
            old_grade = enrollment.grade if enrollment.grade is not None else 0.0
            student = enrollment.student

            enrollment.set_grade(grade)
            self._notification_manager.notify(student, enrollment, old_grade, grade)
            student.update_gpa()

        logger.info("Grade assigned: %s %.2f -> %.2f", enrollment_id, old_grade, grade)
        return enrollment

    def mark_attendance(self, enrollment_id: str, present: bool) -> Enrollment:
        with self._lock:
            enrollment = self._require(enrollment_id)
            enrollment.mark_attendance(present)
        return enrollment

    def set_feedback(self, enrollment_id: str, feedback: Optional[str]) -> Enrollment:
        with self._lock:
            enrollment = self._require(enrollment_id)
            enrollment.set_feedback(feedback)
        return enrollment

    # Queries

    def _has_active_enrollment(self, student: Student, course: Course) -> bool:
        return any(
            e.is_active
            and e.student.student_id == student.student_id
            and e.course.course_id == course.course_id
            for e in self._store.values()
        )

    def get_enrollment(self, enrollment_id: str) -> Enrollment:
        return self._require(enrollment_id)

    def find_enrollment(self, enrollment_id: str) -> Optional[Enrollment]:
        return self._store.get(enrollment_id)

    def get_all_enrollments(self) -> List[Enrollment]:
        return self._store.values()

    def get_enrollments_for_student(self, student_id: str) -> List[Enrollment]:
        """Every enrollment the student ever had, oldest first."""
        return sorted(self._store.find(lambda e: e.student.student_id == student_id),
                      key=lambda e: e.enrollment_date)

    def get_active_enrollments_for_student(self, student_id: str) -> List[Enrollment]:
        return self._store.find(lambda e: e.student.student_id == student_id and e.is_active)

    def get_enrollments_for_course(self, course_id: str) -> List[Enrollment]:
        """Every enrollment in the course, ordered by student name."""
        return sorted(self._store.find(lambda e: e.course.course_id == course_id),
                      key=lambda e: e.student.full_name)

    def get_enrollment_count_for_course(self, course_id: str) -> int:
        """Live count of ACTIVE enrollments in the course."""
        return sum(1 for e in self._store.values()
                   if e.course.course_id == course_id and e.is_active)

    def get_completed_enrollments(self) -> List[Enrollment]:
        return self._store.find(lambda e: e.status is EnrollmentStatus.COMPLETED)

    def get_enrollments_by_grade_range(self, min_grade: float, max_grade: float) -> List[Enrollment]:
        """Graded enrollments inside [min_grade, max_grade], best first."""
        matching = self._store.find(
            lambda e: e.grade is not None and min_grade <= e.grade <= max_grade)
        return sorted(matching, key=lambda e: e.numeric_grade, reverse=True)

    # Bulk

    def replace_all(self, enrollments: List[Enrollment]) -> None:
        """Swap in a freshly loaded collection and move the id counter past it."""
        with self._lock:
            self._store.load(enrollments, lambda e: e.enrollment_id)
            highest = 0
            pattern = re.compile(rf"^{ENROLLMENT_ID_PREFIX}(\d+)$")
            for enrollment_id in self._store.keys():
                match = pattern.match(enrollment_id)
                if match:
                    highest = max(highest, int(match.group(1)))
            self._id_counter = highest + 1

    def clear_all(self) -> None:
        with self._lock:
            self._store.clear()
            self._id_counter = 1
        logger.info("All enrollments cleared")

    @property
    def enrollment_count(self) -> int:
        return len(self._store)
