"""
Services module containing the record-keeping and reporting services.
"""

from .student_service import StudentService
from .course_service import CourseService
from .enrollment_service import EnrollmentService
from .notification_service import (
    GradeNotificationManager, EmailNotificationObserver, SMSNotificationObserver,
    AdminLogObserver, ParentNotificationObserver, default_observers,
)
from .report_service import ReportService

__all__ = [
    "StudentService",
    "CourseService",
    "EnrollmentService",
    "GradeNotificationManager",
    "EmailNotificationObserver",
    "SMSNotificationObserver",
    "AdminLogObserver",
    "ParentNotificationObserver",
    "default_observers",
    "ReportService",
]
