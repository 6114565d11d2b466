"""
Read-only reports derived from the current contents of the stores.

Nothing here is cached and nothing here mutates an entity.
"""

from collections import Counter
from typing import Any, Dict, List, Optional

from ..core.entities import Enrollment, Student
from ..core.enums import EnrollmentStatus
from ..core.grading import DEFAULT_PASSING_GRADE
from .course_service import CourseService
from .enrollment_service import EnrollmentService
from .student_service import StudentService


class ReportService:
    """Statistics and rankings over students, courses and enrollments."""

    def __init__(self, students: StudentService, courses: CourseService,
                 enrollments: EnrollmentService,
                 passing_grade: float = DEFAULT_PASSING_GRADE):
        self._students = students
        self._courses = courses
        self._enrollments = enrollments
        self._passing_grade = passing_grade

    # Student rankings

    def top_performers(self, limit: int = 10) -> List[Student]:
        """Students by GPA, highest first. Ties keep insertion order."""
        if limit <= 0:
            return []
        ranked = sorted(self._students.get_all_students(), key=lambda s: s.gpa, reverse=True)
        return ranked[:limit]

    def probation_list(self) -> List[Student]:
        """Students below their good-standing threshold, lowest GPA first."""
        on_probation = [s for s in self._students.get_all_students()
                        if not s.is_in_good_standing()]
        return sorted(on_probation, key=lambda s: s.gpa)

    def good_standing_list(self) -> List[Student]:
        in_good_standing = [s for s in self._students.get_all_students()
                            if s.is_in_good_standing()]
        return sorted(in_good_standing, key=lambda s: s.gpa, reverse=True)

    def average_gpa(self) -> float:
        students = self._students.get_all_students()
        if not students:
            return 0.0
        return sum(s.gpa for s in students) / len(students)

    def student_count_by_program(self) -> Dict[str, int]:
        return dict(Counter(s.program for s in self._students.get_all_students()))

    def student_statistics(self) -> Dict[str, Any]:
        students = self._students.get_all_students()
        return {
            'total_students': len(students),
            'average_gpa': self.average_gpa(),
            'good_standing': len(self.good_standing_list()),
            'on_probation': len(self.probation_list()),
            'graduate_students': sum(1 for s in students if s.is_graduate),
            'by_program': self.student_count_by_program(),
        }

    # Course statistics

    def _graded(self, course_id: str) -> List[Enrollment]:
        return [e for e in self._enrollments.get_enrollments_for_course(course_id)
                if e.grade is not None]

    def average_grade(self, course_id: str) -> float:
        """Mean assigned grade in the course, 0.0 when nothing is graded."""
        graded = self._graded(course_id)
        if not graded:
            return 0.0
        return sum(e.numeric_grade for e in graded) / len(graded)

    def pass_rate(self, course_id: str) -> float:
        """Percentage of graded enrollments that passed, 0.0 when nothing is graded."""
        graded = self._graded(course_id)
        if not graded:
            return 0.0
        passed = sum(1 for e in graded if e.has_passed(self._passing_grade))
        return (passed * 100.0) / len(graded)

    def course_statistics(self, course_id: str) -> Dict[str, Any]:
        course_enrollments = self._enrollments.get_enrollments_for_course(course_id)
        graded = [e for e in course_enrollments if e.grade is not None]

        stats: Dict[str, Any] = {
            'total_enrollments': len(course_enrollments),
            'active_enrollments': sum(1 for e in course_enrollments if e.is_active),
            'completed_enrollments': sum(1 for e in course_enrollments
                                         if e.status is EnrollmentStatus.COMPLETED),
            'average_grade': self.average_grade(course_id),
            'pass_rate': self.pass_rate(course_id),
        }
        if graded:
            stats['highest_grade'] = max(e.numeric_grade for e in graded)
            stats['lowest_grade'] = min(e.numeric_grade for e in graded)
        return stats

    def course_count_by_department(self) -> Dict[str, int]:
        return dict(Counter(c.department for c in self._courses.get_all_courses()))

    def course_summary(self) -> Dict[str, Any]:
        return {
            'total_courses': self._courses.course_count,
            'by_department': self.course_count_by_department(),
        }

    def enrollment_report(self, course_id: str) -> Optional[Dict[str, Any]]:
        """Course header, statistics and one row per enrollment; None if empty."""
        course_enrollments = self._enrollments.get_enrollments_for_course(course_id)
        if not course_enrollments:
            return None
        course = course_enrollments[0].course
        return {
            'course_id': course.course_id,
            'course_code': course.course_code,
            'course_name': course.course_name,
            'instructor': course.instructor,
            'statistics': self.course_statistics(course_id),
            'rows': [
                {
                    'enrollment_id': e.enrollment_id,
                    'student_id': e.student.student_id,
                    'student_name': e.student.full_name,
                    'grade': e.grade,
                    'status': e.status.value,
                }
                for e in course_enrollments
            ],
        }
