"""
Core entities for the Registrar platform: students, courses and enrollments.
"""

from abc import ABC
from datetime import date, datetime, timezone
from typing import Any, Dict, List, Optional

from .enums import EnrollmentStatus, StudentType
from .exceptions import InvalidTransitionError, ValidationError
from .grading import DEFAULT_PASSING_GRADE, calculate_gpa, effective_grade, has_passed, letter_grade
from .interfaces import Searchable


def _parse_date(value: Optional[str]) -> Optional[date]:
    return date.fromisoformat(value) if value else None


def _format_date(value: Optional[date]) -> Optional[str]:
    return value.isoformat() if value else None


class AbstractEntity(ABC):
    """Base abstract entity with a primary key, timestamps and versioning."""

    def __init__(self, entity_id: str):
        self._id = entity_id
        self._created_at = datetime.now(timezone.utc)
        self._updated_at = self._created_at
        self._version = 1

    @property
    def id(self) -> str:
        """Get the entity ID."""
        return self._id

    @property
    def created_at(self) -> datetime:
        """Get creation timestamp."""
        return self._created_at

    @property
    def updated_at(self) -> datetime:
        """Get last update timestamp."""
        return self._updated_at

    @property
    def version(self) -> int:
        """Get current version."""
        return self._version

    def touch(self) -> None:
        """Record a mutation."""
        self._updated_at = datetime.now(timezone.utc)
        self._version += 1

    def to_dict(self) -> Dict[str, Any]:
        """Convert entity to dictionary."""
        return {
            'id': self._id,
            'created_at': self._created_at.isoformat(),
            'updated_at': self._updated_at.isoformat(),
            'version': self._version,
        }

    def _restore_base(self, data: Dict[str, Any]) -> None:
        if data.get('created_at'):
            self._created_at = datetime.fromisoformat(data['created_at'])
        if data.get('updated_at'):
            self._updated_at = datetime.fromisoformat(data['updated_at'])
        self._version = data.get('version', 1)

    def __eq__(self, other: object) -> bool:
        if self is other:
            return True
        if type(self) is not type(other):
            return NotImplemented
        return self._id == other._id

    def __hash__(self) -> int:
        return hash((type(self).__name__, self._id))

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(id={self._id})"


class Person(AbstractEntity):
    """Base class for people with contact details."""

    def __init__(self, entity_id: str, first_name: str, last_name: str, email: str,
                 phone: str = "", date_of_birth: Optional[date] = None):
        super().__init__(entity_id)
        self._first_name = first_name
        self._last_name = last_name
        self._email = email
        self._phone = phone
        self._date_of_birth = date_of_birth

    @property
    def first_name(self) -> str:
        return self._first_name

    @property
    def last_name(self) -> str:
        return self._last_name

    @property
    def full_name(self) -> str:
        return f"{self._first_name} {self._last_name}"

    @property
    def email(self) -> str:
        return self._email

    @property
    def phone(self) -> str:
        return self._phone

    @property
    def date_of_birth(self) -> Optional[date]:
        return self._date_of_birth

    @property
    def age(self) -> int:
        """Age in whole calendar years, 0 when the birth date is unknown."""
        if self._date_of_birth is None:
            return 0
        return date.today().year - self._date_of_birth.year


class Student(Person, Searchable):
    """
    Student entity.

    Undergraduate and graduate students share this class; ``student_type``
    selects the good-standing threshold and enables the thesis fields.

    ``gpa`` is a cache derived from the grades on ``enrollments``. It is
    recomputed by ``update_gpa`` after every grade change; ``set_gpa`` exists
    only for seeding and bulk loads.
    """

    EDITABLE_FIELDS = (
        'first_name', 'last_name', 'email', 'phone', 'program', 'semester',
        'attendance_percentage', 'thesis_title', 'advisor', 'research_area',
    )

    def __init__(self, student_id: str, first_name: str, last_name: str, email: str,
                 phone: str = "", date_of_birth: Optional[date] = None, program: str = "",
                 semester: int = 1, student_type: StudentType = StudentType.UNDERGRADUATE,
                 thesis_title: Optional[str] = None, advisor: Optional[str] = None,
                 research_area: Optional[str] = None,
                 expected_graduation_date: Optional[date] = None):
        super().__init__(student_id, first_name, last_name, email, phone, date_of_birth)
        self._program = program
        self._semester = semester
        self._student_type = student_type
        self._gpa = 0.0
        self._enrollment_date = date.today()
        self._attendance_percentage = 100
        self._enrollments: List['Enrollment'] = []
        self._thesis_title = thesis_title
        self._advisor = advisor
        self._research_area = research_area
        self._thesis_completed = False
        self._expected_graduation_date = expected_graduation_date
        if student_type is StudentType.GRADUATE and expected_graduation_date is None:
            today = date.today()
            try:
                self._expected_graduation_date = today.replace(year=today.year + 2)
            except ValueError:
                self._expected_graduation_date = today.replace(year=today.year + 2, day=28)

    @property
    def student_id(self) -> str:
        return self._id

    @property
    def program(self) -> str:
        return self._program

    @property
    def semester(self) -> int:
        return self._semester

    @property
    def student_type(self) -> StudentType:
        return self._student_type

    @property
    def is_graduate(self) -> bool:
        return self._student_type is StudentType.GRADUATE

    @property
    def role(self) -> str:
        return self._student_type.role

    @property
    def gpa(self) -> float:
        return self._gpa

    @property
    def enrollment_date(self) -> date:
        return self._enrollment_date

    @property
    def attendance_percentage(self) -> int:
        return self._attendance_percentage

    @property
    def thesis_title(self) -> Optional[str]:
        return self._thesis_title

    @property
    def advisor(self) -> Optional[str]:
        return self._advisor

    @property
    def research_area(self) -> Optional[str]:
        return self._research_area

    @property
    def thesis_completed(self) -> bool:
        return self._thesis_completed

    @property
    def expected_graduation_date(self) -> Optional[date]:
        return self._expected_graduation_date

    @property
    def enrollments(self) -> List['Enrollment']:
        """Copy of the enrollment back-references, in the order they were added."""
        return list(self._enrollments)

    def add_enrollment(self, enrollment: 'Enrollment') -> None:
        """Link an enrollment to this student."""
        self._enrollments.append(enrollment)
        self.touch()

    def remove_enrollment(self, enrollment: 'Enrollment') -> None:
        """Unlink an enrollment; unknown enrollments are ignored."""
        if enrollment in self._enrollments:
            self._enrollments.remove(enrollment)
            self.touch()

    def restore_enrollments(self, enrollments: List['Enrollment']) -> None:
        """Re-link enrollments read back from storage without recording a mutation."""
        self._enrollments.extend(enrollments)

    def clear_enrollments(self) -> None:
        self._enrollments.clear()

    def set_attendance_percentage(self, value: int) -> None:
        """Set overall attendance, clamped to 0-100."""
        self._attendance_percentage = max(0, min(100, int(value)))
        self.touch()

    def set_gpa(self, gpa: float) -> None:
        """Overwrite the cached GPA. Only seeding and bulk-load paths use this."""
        if not 0.0 <= gpa <= 4.0:
            raise ValidationError("GPA must be between 0.0 and 4.0", "gpa", gpa)
        self._gpa = gpa
        self.touch()

    def set_thesis_completed(self, completed: bool) -> None:
        self._thesis_completed = completed
        self.touch()

    def update_details(self, **fields: Any) -> None:
        """Update editable profile fields by name."""
        for name, value in fields.items():
            if name not in self.EDITABLE_FIELDS:
                raise ValidationError(f"Field cannot be updated: {name}", name, value)
            if name == 'attendance_percentage':
                self._attendance_percentage = max(0, min(100, int(value)))
            else:
                setattr(self, f"_{name}", value)
        self.touch()

    def calculate_average_grade(self) -> float:
        """Mean of the assigned grades across linked enrollments, 0.0 if none."""
        graded = [e.grade for e in self._enrollments if e.grade is not None]
        if not graded:
            return 0.0
        return sum(graded) / len(graded)

    def update_gpa(self) -> float:
        """Recompute the GPA from scratch and return it."""
        self._gpa = calculate_gpa(e.grade for e in self._enrollments)
        self.touch()
        return self._gpa

    def is_in_good_standing(self) -> bool:
        return self._gpa >= self._student_type.good_standing_threshold

    def can_graduate(self) -> bool:
        """Graduate students need a finished thesis, a 3.0 GPA and four semesters."""
        if not self.is_graduate:
            return False
        return self._thesis_completed and self._gpa >= 3.0 and self._semester >= 4

    def matches_id(self, value: str) -> bool:
        return self._id.lower() == value.lower()

    def matches_name(self, name: str) -> bool:
        return name.lower() in self.full_name.lower()

    def matches_keyword(self, keyword: str) -> bool:
        lowered = keyword.lower()
        return (self.matches_name(keyword)
                or self.matches_id(keyword)
                or lowered in self._program.lower()
                or lowered in self._email.lower())

    def to_dict(self) -> Dict[str, Any]:
        """Convert student to dictionary. Enrollment links are stored on enrollments."""
        base_dict = super().to_dict()
        base_dict.update({
            'student_id': self._id,
            'first_name': self._first_name,
            'last_name': self._last_name,
            'email': self._email,
            'phone': self._phone,
            'date_of_birth': _format_date(self._date_of_birth),
            'program': self._program,
            'semester': self._semester,
            'student_type': self._student_type.value,
            'gpa': self._gpa,
            'enrollment_date': _format_date(self._enrollment_date),
            'attendance_percentage': self._attendance_percentage,
            'thesis_title': self._thesis_title,
            'advisor': self._advisor,
            'research_area': self._research_area,
            'thesis_completed': self._thesis_completed,
            'expected_graduation_date': _format_date(self._expected_graduation_date),
        })
        return base_dict

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Student':
        """Rebuild a student saved with to_dict."""
        student = cls(
            student_id=data['student_id'],
            first_name=data['first_name'],
            last_name=data['last_name'],
            email=data['email'],
            phone=data.get('phone', ""),
            date_of_birth=_parse_date(data.get('date_of_birth')),
            program=data.get('program', ""),
            semester=data.get('semester', 1),
            student_type=StudentType(data.get('student_type', StudentType.UNDERGRADUATE.value)),
            thesis_title=data.get('thesis_title'),
            advisor=data.get('advisor'),
            research_area=data.get('research_area'),
            expected_graduation_date=_parse_date(data.get('expected_graduation_date')),
        )
        student._gpa = float(data.get('gpa', 0.0))
        student._enrollment_date = _parse_date(data.get('enrollment_date')) or date.today()
        student._attendance_percentage = data.get('attendance_percentage', 100)
        student._thesis_completed = data.get('thesis_completed', False)
        student._restore_base(data)
        return student

    def __str__(self) -> str:
        return (f"Student(student_id={self._id}, name={self.full_name}, "
                f"program={self._program}, semester={self._semester}, gpa={self._gpa:.2f})")


class Course(AbstractEntity, Searchable):
    """Course entity. ``max_capacity`` bounds active enrollments only."""

    EDITABLE_FIELDS = ('course_name', 'department', 'instructor', 'credits',
                       'max_capacity', 'description')

    def __init__(self, course_id: str, course_name: str, course_code: str, credits: int,
                 department: str, instructor: str, max_capacity: int,
                 description: Optional[str] = None):
        super().__init__(course_id)
        self._course_name = course_name
        self._course_code = course_code
        self._credits = credits
        self._department = department
        self._instructor = instructor
        self._max_capacity = max_capacity
        self._description = description
        self._prerequisites: List[str] = []

    @property
    def course_id(self) -> str:
        return self._id

    @property
    def course_name(self) -> str:
        return self._course_name

    @property
    def course_code(self) -> str:
        return self._course_code

    @property
    def credits(self) -> int:
        return self._credits

    @property
    def department(self) -> str:
        return self._department

    @property
    def instructor(self) -> str:
        return self._instructor

    @property
    def max_capacity(self) -> int:
        return self._max_capacity

    @property
    def description(self) -> Optional[str]:
        return self._description

    @property
    def prerequisites(self) -> List[str]:
        """Course codes listed as prerequisites. Not enforced at enrollment."""
        return list(self._prerequisites)

    def add_prerequisite(self, course_code: str) -> None:
        if course_code not in self._prerequisites:
            self._prerequisites.append(course_code)
            self.touch()

    def remove_prerequisite(self, course_code: str) -> None:
        if course_code in self._prerequisites:
            self._prerequisites.remove(course_code)
            self.touch()

    def has_prerequisite(self, course_code: str) -> bool:
        return course_code in self._prerequisites

    def update_details(self, **fields: Any) -> None:
        """Update editable course fields by name."""
        for name, value in fields.items():
            if name not in self.EDITABLE_FIELDS:
                raise ValidationError(f"Field cannot be updated: {name}", name, value)
            setattr(self, f"_{name}", value)
        self.touch()

    def matches_id(self, value: str) -> bool:
        lowered = value.lower()
        return self._id.lower() == lowered or self._course_code.lower() == lowered

    def matches_name(self, name: str) -> bool:
        return name.lower() in self._course_name.lower()

    def matches_keyword(self, keyword: str) -> bool:
        lowered = keyword.lower()
        return (self.matches_name(keyword)
                or self.matches_id(keyword)
                or lowered in self._department.lower()
                or lowered in self._instructor.lower()
                or (self._description is not None and lowered in self._description.lower()))

    def to_dict(self) -> Dict[str, Any]:
        """Convert course to dictionary."""
        base_dict = super().to_dict()
        base_dict.update({
            'course_id': self._id,
            'course_name': self._course_name,
            'course_code': self._course_code,
            'credits': self._credits,
            'department': self._department,
            'instructor': self._instructor,
            'max_capacity': self._max_capacity,
            'description': self._description,
            'prerequisites': list(self._prerequisites),
        })
        return base_dict

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Course':
        """Rebuild a course saved with to_dict."""
        course = cls(
            course_id=data['course_id'],
            course_name=data['course_name'],
            course_code=data['course_code'],
            credits=data['credits'],
            department=data['department'],
            instructor=data['instructor'],
            max_capacity=data['max_capacity'],
            description=data.get('description'),
        )
        course._prerequisites = list(data.get('prerequisites', []))
        course._restore_base(data)
        return course

    def __str__(self) -> str:
        return (f"Course(code={self._course_code}, name={self._course_name}, "
                f"credits={self._credits}, instructor={self._instructor})")


class Enrollment(AbstractEntity):
    """
    Join entity between one student and one course.

    The student and course references are fixed at creation. Status only moves
    forward from ACTIVE; the Registrar never deletes an enrollment.
    """

    def __init__(self, enrollment_id: str, student: Student, course: Course,
                 enrollment_date: Optional[date] = None,
                 status: EnrollmentStatus = EnrollmentStatus.ACTIVE):
        super().__init__(enrollment_id)
        self._student = student
        self._course = course
        self._enrollment_date = enrollment_date or date.today()
        self._status = status
        self._grade: Optional[float] = None
        self._attendance_count = 0
        self._total_classes = 0
        self._feedback: Optional[str] = None

    @property
    def enrollment_id(self) -> str:
        return self._id

    @property
    def student(self) -> Student:
        return self._student

    @property
    def course(self) -> Course:
        return self._course

    @property
    def enrollment_date(self) -> date:
        return self._enrollment_date

    @property
    def status(self) -> EnrollmentStatus:
        return self._status

    @property
    def is_active(self) -> bool:
        return self._status is EnrollmentStatus.ACTIVE

    @property
    def grade(self) -> Optional[float]:
        return self._grade

    @property
    def is_graded(self) -> bool:
        return self._grade is not None

    @property
    def numeric_grade(self) -> float:
        """The assigned grade, 0.0 when none has been set."""
        return self._grade if self._grade is not None else 0.0

    @property
    def attendance_count(self) -> int:
        return self._attendance_count

    @property
    def total_classes(self) -> int:
        return self._total_classes

    @property
    def feedback(self) -> Optional[str]:
        return self._feedback

    @property
    def attendance_percentage(self) -> float:
        """Share of classes attended, 100.0 before any class has been held."""
        if self._total_classes == 0:
            return 100.0
        return (self._attendance_count * 100.0) / self._total_classes

    def set_grade(self, grade: float) -> None:
        """Store a grade. Callers validate the range and handle notification."""
        self._grade = grade
        self.touch()

    def set_feedback(self, feedback: Optional[str]) -> None:
        self._feedback = feedback
        self.touch()

    def mark_attendance(self, present: bool) -> None:
        self._total_classes += 1
        if present:
            self._attendance_count += 1
        self.touch()

    def calculate_grade(self) -> float:
        """The assigned grade, or 30% of attendance while ungraded."""
        return effective_grade(self._grade, self.attendance_percentage)

    @property
    def letter_grade(self) -> str:
        return letter_grade(self.calculate_grade())

    def has_passed(self, passing_grade: float = DEFAULT_PASSING_GRADE) -> bool:
        return has_passed(self.calculate_grade(), passing_grade)

    def _transition(self, target: EnrollmentStatus) -> None:
        if self._status.is_terminal:
            raise InvalidTransitionError(
                f"Enrollment {self._id} is already {self._status.value}",
                details={'enrollment_id': self._id, 'from': self._status.value,
                         'to': target.value})
        self._status = target
        self.touch()

    def complete(self, final_grade: float) -> None:
        self._transition(EnrollmentStatus.COMPLETED)
        self._grade = final_grade

    def drop(self) -> None:
        self._transition(EnrollmentStatus.DROPPED)

    def withdraw(self) -> None:
        self._transition(EnrollmentStatus.WITHDRAWN)

    def to_dict(self) -> Dict[str, Any]:
        """Convert enrollment to dictionary, referencing student and course by id."""
        base_dict = super().to_dict()
        base_dict.update({
            'enrollment_id': self._id,
            'student_id': self._student.student_id,
            'course_id': self._course.course_id,
            'enrollment_date': _format_date(self._enrollment_date),
            'status': self._status.value,
            'grade': self._grade,
            'attendance_count': self._attendance_count,
            'total_classes': self._total_classes,
            'feedback': self._feedback,
        })
        return base_dict

    @classmethod
    def from_dict(cls, data: Dict[str, Any], student: Student, course: Course) -> 'Enrollment':
        """Rebuild an enrollment saved with to_dict, re-linked to live objects."""
        enrollment = cls(
            enrollment_id=data['enrollment_id'],
            student=student,
            course=course,
            enrollment_date=_parse_date(data.get('enrollment_date')),
            status=EnrollmentStatus(data.get('status', EnrollmentStatus.ACTIVE.value)),
        )
        grade = data.get('grade')
        enrollment._grade = float(grade) if grade is not None else None
        enrollment._attendance_count = data.get('attendance_count', 0)
        enrollment._total_classes = data.get('total_classes', 0)
        enrollment._feedback = data.get('feedback')
        enrollment._restore_base(data)
        return enrollment

    def __str__(self) -> str:
        grade = f"{self._grade:.2f}" if self._grade is not None else "N/A"
        return (f"Enrollment(id={self._id}, student={self._student.student_id}, "
                f"course={self._course.course_code}, grade={grade}, status={self._status.value})")
