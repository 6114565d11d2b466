"""
Grade-change notification fan-out.

A GradeNotificationManager owns an ordered list of GradeObserver handlers and
calls each of them, in registration order, whenever a grade is set through
EnrollmentService.assign_grade. Handlers only format and emit messages; they
never modify the student, enrollment or course they are shown.
"""

import logging
import threading
from datetime import datetime
from typing import Callable, Iterable, List, Optional

from ..core.entities import Enrollment, Student
from ..core.interfaces import GradeObserver

logger = logging.getLogger(__name__)

Writer = Callable[[str], None]

SIGNIFICANT_CHANGE_POINTS = 20.0
PARENT_NOTICE_GRADE = 60.0
PARENT_NOTICE_GPA = 2.0


def _log_writer(message: str) -> None:
    logger.info(message)


def _pass_label(enrollment: Enrollment) -> str:
    return "PASSED" if enrollment.has_passed() else "FAILED"


class WriterObserver(GradeObserver):
    """Base for handlers that emit text through a writer callable."""

    channel = "NOTIFICATION"

    def __init__(self, writer: Optional[Writer] = None):
        self._writer = writer or _log_writer

    def emit(self, lines: Iterable[str]) -> None:
        self._writer("\n".join([f"[{self.channel}]", *lines]))


class EmailNotificationObserver(WriterObserver):
    channel = "EMAIL NOTIFICATION"

    def on_grade_updated(self, student: Student, enrollment: Enrollment,
                         old_grade: float, new_grade: float) -> None:
        course = enrollment.course
        lines = [
            f"To: {student.email}",
            f"Subject: Grade Update for {course.course_name}",
            f"Dear {student.full_name},",
            "Your grade has been updated:",
            f"Course: {course.course_code}",
        ]
        if old_grade > 0:
            lines.append(f"Previous Grade: {old_grade:.2f}%")
        lines.append(f"New Grade: {new_grade:.2f}% ({enrollment.letter_grade})")
        lines.append(f"Status: {_pass_label(enrollment)}")
        self.emit(lines)


class SMSNotificationObserver(WriterObserver):
    channel = "SMS NOTIFICATION"

    def on_grade_updated(self, student: Student, enrollment: Enrollment,
                         old_grade: float, new_grade: float) -> None:
        self.emit([
            f"To: {student.phone}",
            f"Grade updated for {enrollment.course.course_code}: "
            f"{new_grade:.2f}% ({enrollment.letter_grade})",
        ])


class AdminLogObserver(WriterObserver):
    """Records every change and warns about swings larger than 20 points."""

    channel = "ADMIN LOG"

    def __init__(self, writer: Optional[Writer] = None,
                 clock: Callable[[], datetime] = datetime.now):
        super().__init__(writer)
        self._clock = clock

    def on_grade_updated(self, student: Student, enrollment: Enrollment,
                         old_grade: float, new_grade: float) -> None:
        lines = [
            "Grade Change Recorded:",
            f"Student ID: {student.student_id}",
            f"Student Name: {student.full_name}",
            f"Course: {enrollment.course.course_code}",
            f"Old Grade: {f'{old_grade:.2f}' if old_grade > 0 else 'N/A'}",
            f"New Grade: {new_grade:.2f}",
            f"Timestamp: {self._clock().isoformat(timespec='seconds')}",
        ]
        if self.is_significant_change(old_grade, new_grade):
            lines.append(f"WARNING: Significant grade change detected: "
                         f"{new_grade - old_grade:.2f} points")
            logger.warning("Significant grade change for %s in %s: %.2f -> %.2f",
                           student.student_id, enrollment.course.course_code,
                           old_grade, new_grade)
        self.emit(lines)

    @staticmethod
    def is_significant_change(old_grade: float, new_grade: float) -> bool:
        """Only changes to an existing grade count."""
        return old_grade > 0 and abs(new_grade - old_grade) > SIGNIFICANT_CHANGE_POINTS


class ParentNotificationObserver(WriterObserver):
    """
    Writes to parents when the new grade is failing or the student's GPA is low.

    The GPA checked is whatever the student holds when the fan-out runs, which
    is before assign_grade recomputes it for this change.
    """

    channel = "PARENT NOTIFICATION"

    @staticmethod
    def should_notify(student: Student, new_grade: float) -> bool:
        return new_grade < PARENT_NOTICE_GRADE or student.gpa < PARENT_NOTICE_GPA

    def on_grade_updated(self, student: Student, enrollment: Enrollment,
                         old_grade: float, new_grade: float) -> None:
        if not self.should_notify(student, new_grade):
            return
        lines = [
            "Dear Parent/Guardian,",
            f"This is to inform you about {student.full_name}'s grade update:",
            f"Course: {enrollment.course.course_name}",
            f"Grade: {new_grade:.2f}% ({enrollment.letter_grade})",
        ]
        if not enrollment.has_passed():
            lines.append("ATTENTION: Student has not passed this course.")
            lines.append("We recommend scheduling a meeting with the academic advisor.")
        self.emit(lines)


def default_observers(writer: Optional[Writer] = None) -> List[GradeObserver]:
    """Email, SMS, admin log and parent notice, in that order."""
    return [
        EmailNotificationObserver(writer),
        SMSNotificationObserver(writer),
        AdminLogObserver(writer),
        ParentNotificationObserver(writer),
    ]


class GradeNotificationManager:
    """
    Ordered registry of grade observers.

    A handler that raises is logged and skipped so the remaining handlers
    still run; by the time the fan-out happens the grade is already stored.
    """

    def __init__(self, observers: Optional[Iterable[GradeObserver]] = None):
        self._observers: List[GradeObserver] = []
        self._lock = threading.RLock()
        for observer in observers or []:
            self.add_observer(observer)

    @property
    def observers(self) -> List[GradeObserver]:
        with self._lock:
            return list(self._observers)

    def add_observer(self, observer: Optional[GradeObserver]) -> None:
        """Register a handler; None and repeats are ignored."""
        with self._lock:
            if observer is not None and observer not in self._observers:
                self._observers.append(observer)

    def remove_observer(self, observer: GradeObserver) -> None:
        with self._lock:
            if observer in self._observers:
                self._observers.remove(observer)

    def notify(self, student: Student, enrollment: Enrollment,
               old_grade: float, new_grade: float) -> int:
        """Invoke every handler in order. Returns how many failed."""
        failures = 0
        for observer in self.observers:
            try:
                observer.on_grade_updated(student, enrollment, old_grade, new_grade)
            except Exception:
                failures += 1
                logger.exception("Error in grade observer %s for enrollment %s",
                                 observer.__class__.__name__, enrollment.enrollment_id)
        return failures
