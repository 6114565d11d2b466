"""
Shared fixtures for the Registrar test suite.
"""

from datetime import date

import pytest

from registrar.config import RegistrarConfig
from registrar.core.entities import Course, Student
from registrar.core.enums import StudentType
from registrar.main import RegistrarPlatform
from registrar.services import (
    CourseService, EnrollmentService, GradeNotificationManager, ReportService, StudentService,
    default_observers,
)


class MessageSink:
    """Collects notification text instead of logging it."""

    def __init__(self):
        self.messages = []

    def __call__(self, message: str) -> None:
        self.messages.append(message)

    def channel(self, name: str):
        return [m for m in self.messages if m.startswith(f"[{name}]")]


def make_student(student_id="STU00001", first_name="John", last_name="Doe",
                 student_type=StudentType.UNDERGRADUATE, gpa=None, **kwargs):
    kwargs.setdefault("email", f"{first_name.lower()}.{last_name.lower()}@university.edu")
    kwargs.setdefault("phone", "123-456-7890")
    kwargs.setdefault("date_of_birth", date(2002, 5, 15))
    kwargs.setdefault("program", "Computer Science")
    student = Student(student_id, first_name, last_name, student_type=student_type, **kwargs)
    if gpa is not None:
        student.set_gpa(gpa)
    return student


def make_course(course_id="C001", course_code="CS101", max_capacity=30, **kwargs):
    kwargs.setdefault("course_name", "Introduction to Programming")
    kwargs.setdefault("credits", 3)
    kwargs.setdefault("department", "Computer Science")
    kwargs.setdefault("instructor", "Dr. Smith")
    return Course(course_id=course_id, course_code=course_code, max_capacity=max_capacity,
                  **kwargs)


@pytest.fixture
def sink():
    return MessageSink()


@pytest.fixture
def notification_manager(sink):
    return GradeNotificationManager(default_observers(sink))


@pytest.fixture
def student_service():
    return StudentService()


@pytest.fixture
def course_service():
    return CourseService()


@pytest.fixture
def enrollment_service(notification_manager):
    return EnrollmentService(notification_manager)


@pytest.fixture
def report_service(student_service, course_service, enrollment_service):
    return ReportService(student_service, course_service, enrollment_service)


@pytest.fixture
def student():
    return make_student()


@pytest.fixture
def course():
    return make_course()


@pytest.fixture
def platform(tmp_path, sink):
    config = RegistrarConfig(data_directory=str(tmp_path / "data"))
    return RegistrarPlatform(config, GradeNotificationManager(default_observers(sink)))
