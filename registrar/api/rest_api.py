"""
REST API implementation for the Registrar platform using FastAPI.
"""

import logging
import threading
from datetime import date, datetime, timezone
from typing import Any, Dict, List, Optional

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from ..core.entities import Course, Enrollment, Student
from ..core.exceptions import (
    CapacityExceededError, DuplicateEnrollmentError, DuplicateEntityError, InvalidGradeError,
    InvalidRequestError, InvalidTransitionError, NotFoundError, PersistenceError,
    RegistrarException, ValidationError,
)
from ..core.schemas import (
    CourseCreate, CourseUpdate, EnrollmentRequest, GradeAssignment, StudentCreate, StudentUpdate,
)

logger = logging.getLogger(__name__)

# Most specific first; the first match wins.
STATUS_CODES = (
    (NotFoundError, 404),
    (DuplicateEnrollmentError, 409),
    (DuplicateEntityError, 409),
    (CapacityExceededError, 409),
    (InvalidGradeError, 422),
    (ValidationError, 422),
    (InvalidRequestError, 400),
    (InvalidTransitionError, 400),
    (PersistenceError, 500),
)


def status_code_for(error: RegistrarException) -> int:
    for error_type, code in STATUS_CODES:
        if isinstance(error, error_type):
            return code
    return 400


class StudentResponse(BaseModel):
    student_id: str
    first_name: str
    last_name: str
    email: str
    phone: str
    date_of_birth: Optional[date] = None
    program: str
    semester: int
    student_type: str
    role: str
    gpa: float
    attendance_percentage: int
    in_good_standing: bool
    enrollments: List[str] = []
    thesis_title: Optional[str] = None
    advisor: Optional[str] = None
    research_area: Optional[str] = None
    created_at: datetime
    updated_at: datetime
    version: int


class CourseResponse(BaseModel):
    course_id: str
    course_code: str
    course_name: str
    department: str
    instructor: str
    credits: int
    max_capacity: int
    active_enrollments: int
    description: Optional[str] = None
    prerequisites: List[str] = []
    created_at: datetime
    updated_at: datetime
    version: int


class EnrollmentResponse(BaseModel):
    enrollment_id: str
    student_id: str
    course_id: str
    course_code: str
    enrollment_date: date
    status: str
    grade: Optional[float] = None
    letter_grade: Optional[str] = None
    attendance_percentage: float
    feedback: Optional[str] = None


class StatisticsResponse(BaseModel):
    success: bool
    message: str
    statistics: Dict[str, Any]


class RegistrarRestAPI:
    """REST API implementation for the Registrar platform."""

    def __init__(self, platform):
        self._platform = platform
        self._students = platform.students
        self._courses = platform.courses
        self._enrollments = platform.enrollments
        self._reports = platform.reports

        self._lock = threading.RLock()

        self.app = FastAPI(
            title="Registrar API",
            description="Student, course and enrollment records",
            version="1.0.0",
            docs_url="/docs",
            redoc_url="/redoc"
        )

        self.app.add_middleware(
            CORSMiddleware,
            allow_origins=["*"],
            allow_credentials=True,
            allow_methods=["*"],
            allow_headers=["*"],
        )

        self._setup_error_handlers()
        self._setup_routes()

    def _setup_error_handlers(self):

        @self.app.exception_handler(RegistrarException)
        async def registrar_error(request: Request, exc: RegistrarException):
            code = status_code_for(exc)
            if code >= 500:
                logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
            return JSONResponse(
                status_code=code,
                content={"detail": exc.message, "error_code": exc.error_code},
            )

    def _setup_routes(self):
        """Setup API routes."""

        @self.app.get("/", response_model=Dict[str, str])
        async def root():
            """Root endpoint."""
            return {
                "message": self._platform.config.application_name,
                "version": "1.0.0",
                "docs": "/docs"
            }

        @self.app.get("/health", response_model=Dict[str, str])
        async def health_check():
            """Health check endpoint."""
            return {"status": "healthy", "timestamp": datetime.now(timezone.utc).isoformat()}

        # Student endpoints
        @self.app.post("/students", response_model=StudentResponse,
                       status_code=status.HTTP_201_CREATED)
        async def create_student(student_data: StudentCreate):
            """Create a new student."""
            with self._lock:
                student = self._students.register(**student_data.model_dump())
                return self._student_to_response(student)

        @self.app.get("/students", response_model=List[StudentResponse])
        async def list_students(skip: int = 0, limit: int = 100, q: Optional[str] = None):
            """List students, optionally filtered by a search keyword."""
            with self._lock:
                students = self._students.search(q) if q else self._students.get_all_students()
                students = students[skip:skip + limit]
                return [self._student_to_response(s) for s in students]

        @self.app.get("/students/{student_id}", response_model=StudentResponse)
        async def get_student(student_id: str):
            with self._lock:
                return self._student_to_response(self._students.get_student(student_id))

        @self.app.put("/students/{student_id}", response_model=StudentResponse)
        async def update_student(student_id: str, changes: StudentUpdate):
            with self._lock:
                student = self._students.update_student(
                    student_id, **changes.model_dump(exclude_none=True))
                return self._student_to_response(student)

        @self.app.delete("/students/{student_id}", response_model=Dict[str, str])
        async def delete_student(student_id: str):
            with self._lock:
                self._students.delete_student(student_id)
                return {"deleted": student_id}

        @self.app.get("/students/{student_id}/enrollments",
                      response_model=List[EnrollmentResponse])
        async def get_student_enrollments(student_id: str):
            """Every enrollment the student ever had."""
            with self._lock:
                self._students.get_student(student_id)
                return [self._enrollment_to_response(e)
                        for e in self._enrollments.get_enrollments_for_student(student_id)]

        # Course endpoints
        @self.app.post("/courses", response_model=CourseResponse,
                       status_code=status.HTTP_201_CREATED)
        async def create_course(course_data: CourseCreate):
            """Create a new course."""
            with self._lock:
                course = self._courses.register(**course_data.model_dump())
                return self._course_to_response(course)

        @self.app.get("/courses", response_model=List[CourseResponse])
        async def list_courses(skip: int = 0, limit: int = 100,
                               department: Optional[str] = None):
            with self._lock:
                if department:
                    courses = self._courses.get_courses_by_department(department)
                else:
                    courses = self._courses.get_all_courses()
                courses = courses[skip:skip + limit]
                return [self._course_to_response(c) for c in courses]

        @self.app.get("/courses/{course_ref}", response_model=CourseResponse)
        async def get_course(course_ref: str):
            """Get a course by id or code."""
            with self._lock:
                return self._course_to_response(self._courses.resolve_course(course_ref))

        @self.app.put("/courses/{course_id}", response_model=CourseResponse)
        async def update_course(course_id: str, changes: CourseUpdate):
            with self._lock:
                course = self._courses.update_course(
                    course_id, **changes.model_dump(exclude_none=True))
                return self._course_to_response(course)

        @self.app.delete("/courses/{course_id}", response_model=Dict[str, str])
        async def delete_course(course_id: str):
            with self._lock:
                self._courses.delete_course(course_id)
                return {"deleted": course_id}

        @self.app.get("/courses/{course_ref}/enrollments",
                      response_model=List[EnrollmentResponse])
        async def get_course_enrollments(course_ref: str):
            with self._lock:
                course = self._courses.resolve_course(course_ref)
                return [self._enrollment_to_response(e)
                        for e in self._enrollments.get_enrollments_for_course(course.course_id)]

        @self.app.get("/courses/{course_ref}/statistics", response_model=StatisticsResponse)
        async def get_course_statistics(course_ref: str):
            with self._lock:
                course = self._courses.resolve_course(course_ref)
                return StatisticsResponse(
                    success=True,
                    message=f"Statistics for {course.course_code}",
                    statistics=self._reports.course_statistics(course.course_id),
                )

        # Enrollment endpoints
        @self.app.post("/enrollments", response_model=EnrollmentResponse,
                       status_code=status.HTTP_201_CREATED)
        async def enroll_student(enrollment_data: EnrollmentRequest):
            """Enroll a student in a course, by course id or code."""
            with self._lock:
                enrollment = self._platform.enroll(enrollment_data.student_id,
                                                   enrollment_data.course)
                return self._enrollment_to_response(enrollment)

        @self.app.get("/enrollments/{enrollment_id}", response_model=EnrollmentResponse)
        async def get_enrollment(enrollment_id: str):
            with self._lock:
                return self._enrollment_to_response(
                    self._enrollments.get_enrollment(enrollment_id))

        @self.app.put("/enrollments/{enrollment_id}/grade", response_model=EnrollmentResponse)
        async def assign_grade(enrollment_id: str, grade_data: GradeAssignment):
            with self._lock:
                enrollment = self._enrollments.assign_grade(enrollment_id, grade_data.grade)
                return self._enrollment_to_response(enrollment)

        @self.app.post("/enrollments/{enrollment_id}/complete",
                       response_model=EnrollmentResponse)
        async def complete_enrollment(enrollment_id: str, grade_data: GradeAssignment):
            with self._lock:
                enrollment = self._enrollments.complete(enrollment_id, grade_data.grade)
                return self._enrollment_to_response(enrollment)

        @self.app.post("/enrollments/{enrollment_id}/drop", response_model=EnrollmentResponse)
        async def drop_enrollment(enrollment_id: str):
            with self._lock:
                return self._enrollment_to_response(self._enrollments.drop(enrollment_id))

        @self.app.post("/enrollments/{enrollment_id}/withdraw",
                       response_model=EnrollmentResponse)
        async def withdraw_enrollment(enrollment_id: str):
            with self._lock:
                return self._enrollment_to_response(self._enrollments.withdraw(enrollment_id))

        # Report endpoints
        @self.app.get("/reports/top-performers", response_model=List[StudentResponse])
        async def top_performers(limit: int = 10):
            with self._lock:
                return [self._student_to_response(s)
                        for s in self._reports.top_performers(limit)]

        @self.app.get("/reports/probation", response_model=List[StudentResponse])
        async def probation_list():
            with self._lock:
                return [self._student_to_response(s) for s in self._reports.probation_list()]

        @self.app.get("/statistics", response_model=StatisticsResponse)
        async def get_statistics():
            """Get system statistics."""
            with self._lock:
                return StatisticsResponse(
                    success=True,
                    message="Statistics retrieved successfully",
                    statistics={
                        "students": self._reports.student_statistics(),
                        "courses": self._reports.course_summary(),
                        "enrollments": self._enrollments.enrollment_count,
                    },
                )

        # Data endpoints
        @self.app.post("/data/save", response_model=Dict[str, int])
        async def save_data():
            with self._lock:
                return self._platform.data.save_all()

        @self.app.post("/data/load", response_model=Dict[str, int])
        async def load_data():
            with self._lock:
                return self._platform.data.load_all()

    def _student_to_response(self, student: Student) -> StudentResponse:
        """Convert Student entity to response model."""
        return StudentResponse(
            student_id=student.student_id,
            first_name=student.first_name,
            last_name=student.last_name,
            email=student.email,
            phone=student.phone,
            date_of_birth=student.date_of_birth,
            program=student.program,
            semester=student.semester,
            student_type=student.student_type.value,
            role=student.role,
            gpa=student.gpa,
            attendance_percentage=student.attendance_percentage,
            in_good_standing=student.is_in_good_standing(),
            enrollments=[e.enrollment_id for e in student.enrollments],
            thesis_title=student.thesis_title,
            advisor=student.advisor,
            research_area=student.research_area,
            created_at=student.created_at,
            updated_at=student.updated_at,
            version=student.version,
        )

    def _course_to_response(self, course: Course) -> CourseResponse:
        """Convert Course entity to response model."""
        return CourseResponse(
            course_id=course.course_id,
            course_code=course.course_code,
            course_name=course.course_name,
            department=course.department,
            instructor=course.instructor,
            credits=course.credits,
            max_capacity=course.max_capacity,
            active_enrollments=self._enrollments.get_enrollment_count_for_course(course.course_id),
            description=course.description,
            prerequisites=course.prerequisites,
            created_at=course.created_at,
            updated_at=course.updated_at,
            version=course.version,
        )

    def _enrollment_to_response(self, enrollment: Enrollment) -> EnrollmentResponse:
        return EnrollmentResponse(
            enrollment_id=enrollment.enrollment_id,
            student_id=enrollment.student.student_id,
            course_id=enrollment.course.course_id,
            course_code=enrollment.course.course_code,
            enrollment_date=enrollment.enrollment_date,
            status=enrollment.status.value,
            grade=enrollment.grade,
            letter_grade=enrollment.letter_grade if enrollment.is_graded else None,
            attendance_percentage=enrollment.attendance_percentage,
            feedback=enrollment.feedback,
        )
