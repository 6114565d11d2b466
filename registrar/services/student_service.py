"""
Student records: creation, lookup, update, delete and search.
"""

import logging
import re
import threading
from typing import Any, List, Optional

from ..core.entities import Student
from ..core.enums import StudentType
from ..core.exceptions import InvalidRequestError, StudentNotFoundError
from ..core.schemas import StudentCreate, StudentUpdate, validate_model, validate_student_id
from ..persistence.entity_store import EntityStore

logger = logging.getLogger(__name__)

STUDENT_ID_PREFIX = "STU"


def create_student(data: StudentCreate, student_id: str) -> Student:
    """Build the right student variant from validated input."""
    student = Student(
        student_id=student_id,
        first_name=data.first_name,
        last_name=data.last_name,
        email=data.email,
        phone=data.phone,
        date_of_birth=data.date_of_birth,
        program=data.program,
        semester=data.semester,
        student_type=data.student_type,
    )
    if data.student_type is StudentType.GRADUATE:
        student.update_details(thesis_title=data.thesis_title, advisor=data.advisor,
                               research_area=data.research_area)
    return student


class StudentService:
    """Service for managing student records."""

    def __init__(self, store: Optional[EntityStore[Student]] = None):
        self._store: EntityStore[Student] = store if store is not None else EntityStore("Student")
        self._id_counter = 1
        self._lock = threading.RLock()

    @property
    def store(self) -> EntityStore[Student]:
        return self._store

    @property
    def lock(self) -> threading.RLock:
        return self._lock

    def generate_student_id(self) -> str:
        """Next unused ``STU#####`` id."""
        with self._lock:
            while True:
                student_id = f"{STUDENT_ID_PREFIX}{self._id_counter:05d}"
                self._id_counter += 1
                if not self._store.exists(student_id):
                    return student_id

    def register(self, **fields: Any) -> Student:
        """Validate raw fields, build the student and add it."""
        data = validate_model(StudentCreate, **fields)
        with self._lock:
            if data.student_id:
                student_id = validate_student_id(data.student_id)
            else:
                student_id = self.generate_student_id()
            student = create_student(data, student_id)
            return self.add_student(student)

    def add_student(self, student: Student) -> Student:
        if student is None:
            raise InvalidRequestError("Student cannot be null")
        with self._lock:
            self._store.put(student.student_id, student)
        logger.info("Student added: %s (%s)", student.full_name, student.student_id)
        return student

    def get_student(self, student_id: str) -> Student:
        """Look up a student, raising StudentNotFoundError when absent."""
        student = self._store.get(student_id)
        if student is None:
            raise StudentNotFoundError(student_id)
        return student

    def find_student(self, student_id: str) -> Optional[Student]:
        return self._store.get(student_id)

    def get_all_students(self) -> List[Student]:
        return self._store.values()

    def update_student(self, student_id: str, **fields: Any) -> Student:
        """Apply validated profile changes to an existing student."""
        changes = validate_model(StudentUpdate, **fields).model_dump(exclude_none=True)
        with self._lock:
            student = self.get_student(student_id)
            if changes:
                student.update_details(**changes)
        logger.info("Student updated: %s (%s)", student.full_name, student_id)
        return student

    def delete_student(self, student_id: str) -> Student:
        """Remove a student. Enrollments referencing it are left in place."""
        with self._lock:
            if not self._store.exists(student_id):
                raise StudentNotFoundError(student_id)
            removed = self._store.remove(student_id)
        logger.info("Student deleted: %s", removed.full_name)
        return removed

    def search_by_name(self, name: str) -> List[Student]:
        return self._store.find(lambda s: s.matches_name(name))

    def search_by_program(self, program: str) -> List[Student]:
        return self._store.find(lambda s: s.program.lower() == program.lower())

    def search(self, keyword: str) -> List[Student]:
        return self._store.find(lambda s: s.matches_keyword(keyword))

    def get_students_by_semester(self, semester: int) -> List[Student]:
        return sorted(self._store.find(lambda s: s.semester == semester),
                      key=lambda s: s.full_name)

    def get_graduate_students(self) -> List[Student]:
        return self._store.find(lambda s: s.is_graduate)

    def replace_all(self, students: List[Student]) -> None:
        """Swap in a freshly loaded collection and move the id counter past it."""
        with self._lock:
            self._store.load(students, lambda s: s.student_id)
            self._id_counter = self._next_counter()

    def _next_counter(self) -> int:
        highest = 0
        pattern = re.compile(rf"^{STUDENT_ID_PREFIX}(\d+)$")
        for student_id in self._store.keys():
            match = pattern.match(student_id)
            if match:
                highest = max(highest, int(match.group(1)))
        return highest + 1

    def clear_all(self) -> None:
        with self._lock:
            self._store.clear()
            self._id_counter = 1
        logger.info("All students cleared")

    @property
    def student_count(self) -> int:
        return len(self._store)

