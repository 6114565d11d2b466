"""
Field-level validation for data entering the Registrar.

The services re-check only the rules they own (grade range, capacity,
duplicates, id existence); everything else is validated here first.
"""

import re
from datetime import date
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic import ValidationError as PydanticValidationError

from .enums import StudentType
from .exceptions import ValidationError

EMAIL_PATTERN = r'^[A-Za-z0-9+_.-]+@[A-Za-z0-9.-]+\.[A-Za-z]{2,}$'
PHONE_PATTERN = r'^[+]?[(]?[0-9]{1,4}[)]?[-\s.]?[(]?[0-9]{1,4}[)]?[-\s.]?[0-9]{1,9}$'
COURSE_CODE_PATTERN = re.compile(r'^[A-Z]{2,4}[0-9]{3,4}$')
STUDENT_ID_PATTERN = re.compile(r'^[A-Z0-9]{6,10}$')


class StudentCreate(BaseModel):
    student_id: Optional[str] = Field(None, min_length=1, max_length=20)
    first_name: str = Field(..., min_length=1, max_length=100)
    last_name: str = Field(..., min_length=1, max_length=100)
    email: str = Field(..., pattern=EMAIL_PATTERN)
    phone: str = Field("", max_length=30)
    date_of_birth: Optional[date] = None
    program: str = Field(..., min_length=1, max_length=100)
    semester: int = Field(1, ge=1, le=12)
    student_type: StudentType = StudentType.UNDERGRADUATE
    thesis_title: Optional[str] = None
    advisor: Optional[str] = None
    research_area: Optional[str] = None

    @field_validator('first_name', 'last_name', 'program')
    @classmethod
    def _not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("cannot be empty")
        return value.strip()

    @field_validator('phone')
    @classmethod
    def _phone_format(cls, value: str) -> str:
        if value and not re.match(PHONE_PATTERN, value):
            raise ValueError("invalid phone number format")
        return value

    @field_validator('date_of_birth')
    @classmethod
    def _plausible_age(cls, value: Optional[date]) -> Optional[date]:
        if value is None:
            return value
        age = date.today().year - value.year
        if age < 15 or age > 100:
            raise ValueError("age must be between 15 and 100")
        return value


class StudentUpdate(BaseModel):
    first_name: Optional[str] = Field(None, min_length=1, max_length=100)
    last_name: Optional[str] = Field(None, min_length=1, max_length=100)
    email: Optional[str] = Field(None, pattern=EMAIL_PATTERN)
    phone: Optional[str] = Field(None, max_length=30)
    program: Optional[str] = Field(None, min_length=1, max_length=100)
    semester: Optional[int] = Field(None, ge=1, le=12)
    attendance_percentage: Optional[int] = Field(None, ge=0, le=100)

    @field_validator('phone')
    @classmethod
    def _phone_format(cls, value: Optional[str]) -> Optional[str]:
        if value and not re.match(PHONE_PATTERN, value):
            raise ValueError("invalid phone number format")
        return value


class CourseCreate(BaseModel):
    course_id: Optional[str] = Field(None, min_length=1, max_length=20)
    course_code: str = Field(..., min_length=1, max_length=20)
    course_name: str = Field(..., min_length=1, max_length=200)
    department: str = Field(..., min_length=1, max_length=100)
    instructor: str = Field(..., min_length=1, max_length=100)
    credits: int = Field(..., ge=1, le=10)
    max_capacity: Optional[int] = Field(None, ge=1)
    description: Optional[str] = Field(None, max_length=1000)
    prerequisites: List[str] = Field(default_factory=list)

    @field_validator('course_code')
    @classmethod
    def _course_code_format(cls, value: str) -> str:
        if not COURSE_CODE_PATTERN.match(value.upper()):
            raise ValueError("course code must be 2-4 letters followed by 3-4 digits (e.g., CS101)")
        return value.upper()

    @field_validator('course_name', 'department', 'instructor')
    @classmethod
    def _not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("cannot be empty")
        return value.strip()


class CourseUpdate(BaseModel):
    model_config = ConfigDict(extra='forbid')

    course_name: Optional[str] = Field(None, min_length=1, max_length=200)
    department: Optional[str] = Field(None, min_length=1, max_length=100)
    instructor: Optional[str] = Field(None, min_length=1, max_length=100)
    credits: Optional[int] = Field(None, ge=1, le=10)
    max_capacity: Optional[int] = Field(None, ge=1)
    description: Optional[str] = Field(None, max_length=1000)

    @field_validator('course_name', 'department', 'instructor')
    @classmethod
    def _not_blank(cls, value: Optional[str]) -> Optional[str]:
        if value is not None and not value.strip():
            raise ValueError("cannot be empty")
        return value.strip() if value is not None else value


class EnrollmentRequest(BaseModel):
    student_id: str = Field(..., min_length=1)
    course: str = Field(..., min_length=1, description="Course id or course code")


class GradeAssignment(BaseModel):
    grade: float = Field(..., ge=0.0, le=100.0)


def validate_model(model_cls, **values):
    """Build a schema instance, converting pydantic errors into ValidationError."""
    try:
        return model_cls(**values)
    except PydanticValidationError as e:
        first = e.errors()[0]
        field = ".".join(str(part) for part in first.get('loc', ())) or None
        raise ValidationError(f"{field}: {first.get('msg')}" if field else first.get('msg'),
                              field, first.get('input'))


def validate_student_id(student_id: str) -> str:
    """Student ids are 6-10 alphanumeric characters, stored upper-case."""
    if not student_id or not student_id.strip():
        raise ValidationError("Student ID cannot be null or empty", "student_id", student_id)
    normalized = student_id.strip().upper()
    if not STUDENT_ID_PATTERN.match(normalized):
        raise ValidationError("Student ID must be 6-10 alphanumeric characters",
                              "student_id", student_id)
    return normalized


def parse_date(text: str, field: str) -> date:
    if not text or not text.strip():
        raise ValidationError(f"{field} cannot be null or empty", field, text)
    try:
        return date.fromisoformat(text.strip())
    except ValueError:
        raise ValidationError(f"Invalid date format for {field}. Use YYYY-MM-DD", field, text)


def parse_int(text: str, field: str) -> int:
    try:
        return int(text.strip())
    except (AttributeError, ValueError):
        raise ValidationError(f"Invalid number format for {field}", field, text)


def parse_float(text: str, field: str) -> float:
    try:
        return float(text.strip())
    except (AttributeError, ValueError):
        raise ValidationError(f"Invalid decimal format for {field}", field, text)
