"""
Course catalogue: creation, lookup, update, delete and search.
"""

import logging
import threading
from typing import Any, List, Optional

from ..core.entities import Course
from ..core.exceptions import CourseNotFoundError, InvalidRequestError, ValidationError
from ..core.schemas import COURSE_CODE_PATTERN, CourseCreate, CourseUpdate, validate_model
from ..persistence.entity_store import EntityStore

logger = logging.getLogger(__name__)

COURSE_ID_PREFIX = "C"


class CourseService:
    """Service for managing courses."""

    def __init__(self, store: Optional[EntityStore[Course]] = None,
                 default_capacity: int = 30):
        self._store: EntityStore[Course] = store if store is not None else EntityStore("Course")
        self._default_capacity = default_capacity
        self._id_counter = 1
        self._lock = threading.RLock()

    @property
    def store(self) -> EntityStore[Course]:
        return self._store

    @property
    def lock(self) -> threading.RLock:
        return self._lock

    @property
    def default_capacity(self) -> int:
        return self._default_capacity

    def generate_course_id(self) -> str:
        """Next unused ``C###`` id."""
        with self._lock:
            while True:
                course_id = f"{COURSE_ID_PREFIX}{self._id_counter:03d}"
                self._id_counter += 1
                if not self._store.exists(course_id):
                    return course_id

    def register(self, **fields: Any) -> Course:
        """Validate raw fields, build the course and add it."""
        data = validate_model(CourseCreate, **fields)
        course = Course(
            course_id=data.course_id.strip() if data.course_id else self.generate_course_id(),
            course_name=data.course_name,
            course_code=data.course_code,
            credits=data.credits,
            department=data.department,
            instructor=data.instructor,
            max_capacity=data.max_capacity or self._default_capacity,
            description=data.description,
        )
        for prerequisite in data.prerequisites:
            course.add_prerequisite(prerequisite.upper())
        return self.add_course(course)

    def add_course(self, course: Course) -> Course:
        if course is None:
            raise InvalidRequestError("Course cannot be null")
        with self._lock:
            self._store.put(course.course_id, course)
        logger.info("Course added: %s (%s)", course.course_name, course.course_code)
        return course

    def get_course(self, course_id: str) -> Course:
        """Look up a course by id, raising CourseNotFoundError when absent."""
        course = self._store.get(course_id)
        if course is None:
            raise CourseNotFoundError(course_id)
        return course

    def find_course(self, course_id: str) -> Optional[Course]:
        return self._store.get(course_id)

    def get_course_by_code(self, course_code: str) -> Optional[Course]:
        for course in self._store.values():
            if course.course_code.lower() == course_code.lower():
                return course
        return None

    def resolve_course(self, id_or_code: str) -> Course:
        """Accept either a course id or a course code."""
        course = self._store.get(id_or_code) or self.get_course_by_code(id_or_code)
        if course is None:
            raise CourseNotFoundError(id_or_code)
        return course

    def get_all_courses(self) -> List[Course]:
        return self._store.values()

    def update_course(self, course_id: str, **fields: Any) -> Course:
        """Apply validated changes to an existing course."""
        changes = validate_model(CourseUpdate, **fields).model_dump(exclude_none=True)
        with self._lock:
            course = self.get_course(course_id)
            if changes:
                course.update_details(**changes)
        logger.info("Course updated: %s", course.course_name)
        return course

    def delete_course(self, course_id: str) -> Course:
        """Remove a course. Enrollments referencing it are left in place."""
        with self._lock:
            if not self._store.exists(course_id):
                raise CourseNotFoundError(course_id)
            removed = self._store.remove(course_id)
        logger.info("Course deleted: %s", removed.course_name)
        return removed

    def add_prerequisite(self, course_id: str, prerequisite_code: str) -> Course:
        code = prerequisite_code.strip().upper()
        if not COURSE_CODE_PATTERN.match(code):
            raise ValidationError("Course code must be 2-4 letters followed by 3-4 digits (e.g., CS101)",
                                  'course_code', prerequisite_code)
        course = self.get_course(course_id)
        course.add_prerequisite(code)
        return course

    def search_by_name(self, name: str) -> List[Course]:
        return sorted(self._store.find(lambda c: c.matches_name(name)),
                      key=lambda c: c.course_name)

    def search(self, keyword: str) -> List[Course]:
        return self._store.find(lambda c: c.matches_keyword(keyword))

    def get_courses_by_department(self, department: str) -> List[Course]:
        return sorted(self._store.find(lambda c: c.department.lower() == department.lower()),
                      key=lambda c: c.course_code)

    def get_courses_by_instructor(self, instructor: str) -> List[Course]:
        return self._store.find(lambda c: c.instructor.lower() == instructor.lower())

    def get_courses_by_credits(self, credits: int) -> List[Course]:
        return self._store.find(lambda c: c.credits == credits)

    def get_all_departments(self) -> List[str]:
        return sorted({c.department for c in self._store.values()})

    def replace_all(self, courses: List[Course]) -> None:
        with self._lock:
            self._store.load(courses, lambda c: c.course_id)

    def clear_all(self) -> None:
        with self._lock:
            self._store.clear()
        logger.info("All courses cleared")

    @property
    def course_count(self) -> int:
        return len(self._store)
