"""
Main entry point for the Registrar platform.
"""

import argparse
import logging
import threading
from datetime import date
from typing import Optional

from .config import RegistrarConfig
from .core.enums import StudentType
from .core.exceptions import ConfigurationError, PersistenceError
from .persistence import DataManager
from .services import (
    CourseService, EnrollmentService, GradeNotificationManager, ReportService,
    StudentService, default_observers,
)

logger = logging.getLogger(__name__)


class RegistrarPlatform:
    """Wires configuration, services, persistence and the optional HTTP API together."""

    def __init__(self, config: Optional[RegistrarConfig] = None,
                 notification_manager: Optional[GradeNotificationManager] = None):
        self._config = config or RegistrarConfig()
        self._notification_manager = (
            notification_manager or GradeNotificationManager(default_observers()))
        self._student_service = StudentService()
        self._course_service = CourseService(
            default_capacity=self._config.max_students_per_course)
        self._enrollment_service = EnrollmentService(
            self._notification_manager, passing_grade=self._config.passing_grade)
        self._report_service = ReportService(
            self._student_service, self._course_service, self._enrollment_service,
            passing_grade=self._config.passing_grade)
        self._data_manager = DataManager(
            self._student_service, self._course_service, self._enrollment_service,
            base_path=self._config.data_directory)
        self._rest_api = None
        self._rest_thread: Optional[threading.Thread] = None
        logger.info("%s initialized", self._config.application_name)

    @property
    def config(self) -> RegistrarConfig:
        return self._config

    @property
    def students(self) -> StudentService:
        return self._student_service

    @property
    def courses(self) -> CourseService:
        return self._course_service

    @property
    def enrollments(self) -> EnrollmentService:
        return self._enrollment_service

    @property
    def reports(self) -> ReportService:
        return self._report_service

    @property
    def data(self) -> DataManager:
        return self._data_manager

    @property
    def notifications(self) -> GradeNotificationManager:
        return self._notification_manager

    @property
    def rest_api(self):
        """The FastAPI wrapper, built on first use."""
        if self._rest_api is None:
            from .api.rest_api import RegistrarRestAPI
            self._rest_api = RegistrarRestAPI(self)
        return self._rest_api

    def enroll(self, student_id: str, course_ref: str):
        """Enroll by student id and course id or code."""
        student = self._student_service.get_student(student_id)
        course = self._course_service.resolve_course(course_ref)
        return self._enrollment_service.enroll(student, course)

    def is_empty(self) -> bool:
        return self._student_service.student_count == 0

    def load_sample_data(self) -> None:
        """Seed three courses, three students and three graded enrollments."""
        cs101 = self._course_service.register(
            course_id="C001", course_name="Introduction to Programming", course_code="CS101",
            credits=3, department="Computer Science", instructor="Dr. Smith", max_capacity=30)
        cs201 = self._course_service.register(
            course_id="C002", course_name="Data Structures", course_code="CS201",
            credits=4, department="Computer Science", instructor="Dr. Johnson", max_capacity=25)
        self._course_service.register(
            course_id="C003", course_name="Calculus I", course_code="MATH101",
            credits=4, department="Mathematics", instructor="Dr. Williams", max_capacity=40)

        john = self._student_service.register(
            student_id="STU001", first_name="John", last_name="Doe",
            email="john.doe@university.edu", phone="123-456-7890",
            date_of_birth=date(2002, 5, 15), program="Computer Science", semester=3)
        jane = self._student_service.register(
            student_id="STU002", first_name="Jane", last_name="Smith",
            email="jane.smith@university.edu", phone="123-456-7891",
            date_of_birth=date(2003, 8, 22), program="Computer Science", semester=2)
        alice = self._student_service.register(
            student_id="GRAD001", first_name="Alice", last_name="Johnson",
            email="alice.johnson@university.edu", phone="123-456-7892",
            date_of_birth=date(1998, 3, 10), program="Computer Science - MS", semester=4,
            student_type=StudentType.GRADUATE, thesis_title="Machine Learning in Healthcare",
            advisor="Dr. Smith", research_area="Artificial Intelligence")

        # Seeded GPAs go through the back door; seeded grades skip notification.
        for student, gpa, attendance in ((john, 3.5, 95), (jane, 3.8, 98), (alice, 3.9, 100)):
            student.set_gpa(gpa)
            student.set_attendance_percentage(attendance)

        for student, course, grade in ((john, cs101, 88.5), (jane, cs101, 92.0),
                                       (alice, cs201, 95.5)):
            self._enrollment_service.enroll(student, course).set_grade(grade)

        logger.info("Sample data loaded: 3 courses, 3 students, 3 enrollments")

    def start_rest_server(self, host: str = "127.0.0.1", port: int = 8000,
                          background: bool = False) -> None:
        """Serve the HTTP API with uvicorn."""
        import uvicorn

        app = self.rest_api.app
        if not background:
            uvicorn.run(app, host=host, port=port, log_level="info")
            return

        def run_server():
            uvicorn.run(app, host=host, port=port, log_level="info")

        self._rest_thread = threading.Thread(target=run_server, daemon=True)
        self._rest_thread.start()
        logger.info("REST API started on http://%s:%d", host, port)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Student, course and enrollment records manager")
    parser.add_argument("--config", type=str, help="Configuration file (.properties or .json)")
    parser.add_argument("--serve", action="store_true", help="Run the HTTP API instead of the menu")
    parser.add_argument("--host", type=str, default="127.0.0.1", help="HTTP API host")
    parser.add_argument("--port", type=int, default=8000, help="HTTP API port")
    parser.add_argument("--sample-data", action="store_true",
                        help="Seed sample records when nothing was loaded")
    parser.add_argument("--no-load", action="store_true", help="Skip loading saved data at start")
    parser.add_argument("--log-level", type=str, default="WARNING",
                        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
                        help="Logging level")
    return parser


def main(argv=None) -> int:
    """Main entry point."""
    args = build_parser().parse_args(argv)
    logging.basicConfig(level=getattr(logging, args.log_level),
                        format="%(asctime)s %(levelname)s %(name)s: %(message)s")

    try:
        config = RegistrarConfig.load(args.config)
    except ConfigurationError as e:
        logger.warning("%s. Using default configuration.", e.message)
        config = RegistrarConfig()
    platform = RegistrarPlatform(config)

    if not args.no_load:
        try:
            platform.data.load_all()
        except PersistenceError as e:
            logger.error("Could not load saved data: %s. Starting with empty records.",
                         e.message)
    if args.sample_data and platform.is_empty():
        platform.load_sample_data()

    if args.serve:
        platform.start_rest_server(args.host, args.port)
        return 0

    from .cli import MenuApp
    return MenuApp(platform).run()


if __name__ == "__main__":
    raise SystemExit(main())
