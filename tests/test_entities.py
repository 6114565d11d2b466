"""
Tests for the Student, Course and Enrollment entities.
"""

import pytest

from registrar.core.entities import Course, Enrollment, Student
from registrar.core.enums import EnrollmentStatus, StudentType
from registrar.core.exceptions import InvalidTransitionError, ValidationError
from tests.conftest import make_course, make_student


class TestStudent:

    def test_defaults(self, student):
        assert student.gpa == 0.0
        assert student.attendance_percentage == 100
        assert student.enrollments == []
        assert student.role == "STUDENT"
        assert not student.is_graduate

    def test_good_standing_threshold_depends_on_type(self):
        undergrad = make_student(gpa=2.5)
        grad = make_student("GRAD0001", "Alice", "Johnson",
                            student_type=StudentType.GRADUATE, gpa=2.5)
        assert undergrad.is_in_good_standing()
        assert not grad.is_in_good_standing()
        assert grad.role == "GRADUATE_STUDENT"

    def test_graduate_gets_expected_graduation_date(self):
        grad = make_student("GRAD0001", student_type=StudentType.GRADUATE)
        assert grad.expected_graduation_date is not None

    def test_can_graduate(self):
        grad = make_student("GRAD0001", student_type=StudentType.GRADUATE, gpa=3.5, semester=4)
        assert not grad.can_graduate()
        grad.set_thesis_completed(True)
        assert grad.can_graduate()
        assert not make_student(gpa=4.0, semester=8).can_graduate()

    def test_set_gpa_rejects_out_of_range(self, student):
        with pytest.raises(ValidationError):
            student.set_gpa(4.5)

    def test_attendance_is_clamped(self, student):
        student.set_attendance_percentage(140)
        assert student.attendance_percentage == 100
        student.set_attendance_percentage(-3)
        assert student.attendance_percentage == 0

    def test_update_details_rejects_unknown_field(self, student):
        with pytest.raises(ValidationError):
            student.update_details(gpa=4.0)

    def test_update_gpa_recomputes_from_links(self, student, course):
        other = make_course("C002", "CS201")
        first = Enrollment("ENR000001", student, course)
        second = Enrollment("ENR000002", student, other)
        student.add_enrollment(first)
        student.add_enrollment(second)
        first.set_grade(80.0)
        assert student.update_gpa() == pytest.approx(3.2)
        second.set_grade(90.0)
        assert student.update_gpa() == pytest.approx(3.4)

    def test_enrollments_returns_a_copy(self, student, course):
        student.add_enrollment(Enrollment("ENR000001", student, course))
        student.enrollments.clear()
        assert len(student.enrollments) == 1

    def test_search(self, student):
        assert student.matches_name("joh")
        assert student.matches_id("stu00001")
        assert student.matches_keyword("computer")
        assert not student.matches_keyword("biology")

    def test_round_trip(self):
        grad = make_student("GRAD0001", "Alice", "Johnson", student_type=StudentType.GRADUATE,
                            gpa=3.9, thesis_title="ML in Healthcare", advisor="Dr. Smith")
        restored = Student.from_dict(grad.to_dict())
        assert restored == grad
        assert restored.gpa == 3.9
        assert restored.student_type is StudentType.GRADUATE
        assert restored.thesis_title == "ML in Healthcare"
        assert restored.date_of_birth == grad.date_of_birth
        assert restored.version == grad.version


class TestCourse:

    def test_prerequisites_are_stored(self, course):
        course.add_prerequisite("MATH101")
        course.add_prerequisite("MATH101")
        assert course.prerequisites == ["MATH101"]
        assert course.has_prerequisite("MATH101")
        course.remove_prerequisite("MATH101")
        assert course.prerequisites == []

    def test_update_details(self, course):
        course.update_details(instructor="Dr. Jones", max_capacity=5)
        assert course.instructor == "Dr. Jones"
        assert course.max_capacity == 5
        with pytest.raises(ValidationError):
            course.update_details(course_code="XX999")

    def test_round_trip(self, course):
        course.add_prerequisite("MATH101")
        restored = Course.from_dict(course.to_dict())
        assert restored == course
        assert restored.prerequisites == ["MATH101"]
        assert restored.max_capacity == course.max_capacity


class TestEnrollment:

    def test_new_enrollment_is_active_and_ungraded(self, student, course):
        enrollment = Enrollment("ENR000001", student, course)
        assert enrollment.status is EnrollmentStatus.ACTIVE
        assert enrollment.grade is None
        assert not enrollment.is_graded
        assert enrollment.attendance_percentage == 100.0

    def test_ungraded_enrollment_uses_attendance_estimate(self, student, course):
        enrollment = Enrollment("ENR000001", student, course)
        for present in (True, True, True, True, False):
            enrollment.mark_attendance(present)
        assert enrollment.attendance_percentage == pytest.approx(80.0)
        assert enrollment.calculate_grade() == pytest.approx(24.0)
        assert not enrollment.has_passed()
        assert enrollment.letter_grade == "F"

    def test_complete_sets_grade(self, student, course):
        enrollment = Enrollment("ENR000001", student, course)
        enrollment.complete(91.0)
        assert enrollment.status is EnrollmentStatus.COMPLETED
        assert enrollment.grade == 91.0
        assert enrollment.letter_grade == "A"

    @pytest.mark.parametrize("first", ["drop", "withdraw"])
    @pytest.mark.parametrize("second", ["drop", "withdraw"])
    def test_terminal_status_cannot_move(self, student, course, first, second):
        enrollment = Enrollment("ENR000001", student, course)
        getattr(enrollment, first)()
        with pytest.raises(InvalidTransitionError):
            getattr(enrollment, second)()
        with pytest.raises(InvalidTransitionError):
            enrollment.complete(70.0)

    def test_round_trip_relinks(self, student, course):
        enrollment = Enrollment("ENR000001", student, course)
        enrollment.set_grade(77.0)
        enrollment.mark_attendance(False)
        enrollment.set_feedback("Solid work")
        restored = Enrollment.from_dict(enrollment.to_dict(), student, course)
        assert restored.student is student
        assert restored.course is course
        assert restored.grade == 77.0
        assert restored.total_classes == 1
        assert restored.feedback == "Solid work"
