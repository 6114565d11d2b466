"""
Tests for the grade-change notification fan-out.
"""

import logging
from datetime import datetime

import pytest

from registrar.core.interfaces import GradeObserver
from registrar.services import (
    AdminLogObserver, EmailNotificationObserver, EnrollmentService, GradeNotificationManager,
    ParentNotificationObserver, SMSNotificationObserver,
)
from tests.conftest import MessageSink, make_course, make_student


class RecordingObserver(GradeObserver):

    def __init__(self, name, calls):
        self.name = name
        self.calls = calls

    def on_grade_updated(self, student, enrollment, old_grade, new_grade):
        self.calls.append((self.name, student.gpa, old_grade, new_grade))


class FailingObserver(GradeObserver):

    def on_grade_updated(self, student, enrollment, old_grade, new_grade):
        raise RuntimeError("mail server down")


def test_default_handlers_fire_in_order(enrollment_service, student, course, sink):
    enrollment = enrollment_service.enroll(student, course)
    enrollment_service.assign_grade(enrollment.enrollment_id, 45.0)
    channels = [m.splitlines()[0] for m in sink.messages]
    assert channels == ["[EMAIL NOTIFICATION]", "[SMS NOTIFICATION]", "[ADMIN LOG]",
                        "[PARENT NOTIFICATION]"]


def test_email_content(enrollment_service, student, course, sink):
    enrollment = enrollment_service.enroll(student, course)
    enrollment_service.assign_grade(enrollment.enrollment_id, 92.0)
    email = sink.channel("EMAIL NOTIFICATION")[0]
    assert f"To: {student.email}" in email
    assert "New Grade: 92.00% (A)" in email
    assert "Status: PASSED" in email
    assert "Previous Grade" not in email

    enrollment_service.assign_grade(enrollment.enrollment_id, 85.0)
    assert "Previous Grade: 92.00%" in sink.channel("EMAIL NOTIFICATION")[1]


def test_sms_goes_to_phone(enrollment_service, student, course, sink):
    enrollment = enrollment_service.enroll(student, course)
    enrollment_service.assign_grade(enrollment.enrollment_id, 72.0)
    sms = sink.channel("SMS NOTIFICATION")[0]
    assert "To: 123-456-7890" in sms
    assert "CS101: 72.00% (C)" in sms


def test_handler_failure_does_not_stop_the_rest(student, course, caplog):
    calls = []
    manager = GradeNotificationManager([
        RecordingObserver("first", calls),
        FailingObserver(),
        RecordingObserver("third", calls),
    ])
    service = EnrollmentService(manager)
    enrollment = service.enroll(student, course)

    with caplog.at_level(logging.ERROR):
        service.assign_grade(enrollment.enrollment_id, 70.0)

    assert [c[0] for c in calls] == ["first", "third"]
    assert enrollment.grade == 70.0
    assert student.gpa == pytest.approx(2.8)
    assert "FailingObserver" in caplog.text


def test_notify_returns_failure_count(student, course):
    manager = GradeNotificationManager([FailingObserver(), FailingObserver()])
    service = EnrollmentService(manager)
    enrollment = service.enroll(student, course)
    assert manager.notify(student, enrollment, 0.0, 50.0) == 2


def test_registry_ignores_none_and_repeats():
    observer = EmailNotificationObserver(MessageSink())
    manager = GradeNotificationManager()
    manager.add_observer(observer)
    manager.add_observer(observer)
    manager.add_observer(None)
    assert manager.observers == [observer]
    manager.remove_observer(observer)
    assert manager.observers == []


def test_handlers_see_gpa_before_recompute(student, course):
    calls = []
    service = EnrollmentService(GradeNotificationManager([RecordingObserver("r", calls)]))
    enrollment = service.enroll(student, course)

    service.assign_grade(enrollment.enrollment_id, 80.0)

    _, gpa_seen, old_grade, new_grade = calls[0]
    assert gpa_seen == 0.0
    assert (old_grade, new_grade) == (0.0, 80.0)
    assert student.gpa == pytest.approx(3.2)


def test_parent_notice_uses_previous_gpa(course):
    """
    A passing grade that lifts the GPA above 2.0 still triggers the parent
    notice, because the GPA is read before this grade is counted.
    """
    sink = MessageSink()
    service = EnrollmentService(GradeNotificationManager([ParentNotificationObserver(sink)]))
    student = make_student()
    enrollment = service.enroll(student, course)

    service.assign_grade(enrollment.enrollment_id, 95.0)

    assert len(sink.channel("PARENT NOTIFICATION")) == 1
    assert student.gpa == pytest.approx(3.8)

    service.assign_grade(enrollment.enrollment_id, 96.0)
    assert len(sink.channel("PARENT NOTIFICATION")) == 1


def test_parent_notice_for_failing_grade():
    student = make_student(gpa=3.5)
    assert ParentNotificationObserver.should_notify(student, 59.9)
    assert not ParentNotificationObserver.should_notify(student, 60.0)
    assert ParentNotificationObserver.should_notify(make_student(gpa=1.9), 90.0)


def test_parent_notice_flags_failed_course(enrollment_service, course, sink):
    student = make_student(gpa=3.0)
    enrollment = enrollment_service.enroll(student, course)
    enrollment_service.assign_grade(enrollment.enrollment_id, 40.0)
    notice = sink.channel("PARENT NOTIFICATION")[0]
    assert "ATTENTION: Student has not passed this course." in notice


@pytest.mark.parametrize("old,new,expected", [
    (0.0, 95.0, False),
    (50.0, 70.0, False),
    (50.0, 70.01, True),
    (90.0, 65.0, True),
])
def test_significant_change_rule(old, new, expected):
    assert AdminLogObserver.is_significant_change(old, new) is expected


def test_admin_log_warns_on_significant_change(student, course, caplog):
    sink = MessageSink()
    clock = lambda: datetime(2024, 1, 15, 10, 30, 0)
    service = EnrollmentService(GradeNotificationManager([AdminLogObserver(sink, clock)]))
    enrollment = service.enroll(student, course)
    service.assign_grade(enrollment.enrollment_id, 90.0)

    with caplog.at_level(logging.WARNING):
        service.assign_grade(enrollment.enrollment_id, 60.0)

    first, second = sink.channel("ADMIN LOG")
    assert "Old Grade: N/A" in first
    assert "WARNING" not in first
    assert "Timestamp: 2024-01-15T10:30:00" in second
    assert "WARNING: Significant grade change detected: -30.00 points" in second
    assert "Significant grade change" in caplog.text


def test_handlers_do_not_mutate_entities(enrollment_service, student, course):
    enrollment = enrollment_service.enroll(student, course)
    course_version = course.version
    observers = [EmailNotificationObserver(MessageSink()), SMSNotificationObserver(MessageSink()),
                 AdminLogObserver(MessageSink()), ParentNotificationObserver(MessageSink())]
    enrollment_service.assign_grade(enrollment.enrollment_id, 50.0)
    student_version, enrollment_version = student.version, enrollment.version
    for observer in observers:
        observer.on_grade_updated(student, enrollment, 50.0, 50.0)
    assert (student.version, enrollment.version, course.version) == (
        student_version, enrollment_version, course_version)
