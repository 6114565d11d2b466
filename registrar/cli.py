"""
Interactive menu for the Registrar.

Menus:
------
1. Student Management
2. Course Management
3. Enrollment Management
4. Reports & Statistics
5. Save Data
6. Load Data
7. View Configuration
0. Exit

Run with ``python -m registrar`` or the ``registrar`` console script.
"""

from typing import Callable, Dict, List, Tuple

from .core.enums import StudentType
from .core.exceptions import RegistrarException
from .core.schemas import parse_date, parse_float, parse_int
from .persistence import export_courses_csv, export_students_csv

Action = Callable[[], None]

STUDENTS_EXPORT_FILE = "students_export.csv"
COURSES_EXPORT_FILE = "courses_export.csv"


class MenuApp:
    """Menu loop over a RegistrarPlatform. Input and output are injectable."""

    def __init__(self, platform, input_func: Callable[[str], str] = input,
                 output: Callable[[str], None] = print):
        self._platform = platform
        self._input = input_func
        self._out = output

    # Plumbing

    def _ask(self, prompt: str) -> str:
        return self._input(prompt).strip()

    def _confirm(self, prompt: str) -> bool:
        return self._ask(prompt).lower() in ("y", "yes")

    def _run_menu(self, title: str, options: List[Tuple[str, str, Action]]) -> None:
        """Show one menu, run the chosen action once."""
        self._out(f"\n--- {title} ---")
        for key, label, _ in options:
            self._out(f"{key}. {label}")
        self._out("0. Back")
        choice = self._ask("Choice: ")
        if choice == "0":
            return
        actions: Dict[str, Action] = {key: action for key, _, action in options}
        action = actions.get(choice)
        if action is None:
            self._out("Invalid choice")
            return
        action()

    def run(self) -> int:
        """Main loop. Returns the process exit code."""
        self._out(f"=== {self._platform.config.application_name} ===")
        try:
            if self._platform.is_empty():
                if self._confirm("No existing data found. Load sample data? (y/n): "):
                    self._platform.load_sample_data()
                    self._out("Sample data loaded")

            main_menu: Dict[str, Action] = {
                "1": self.student_menu,
                "2": self.course_menu,
                "3": self.enrollment_menu,
                "4": self.reports_menu,
                "5": self.save_data,
                "6": self.load_data,
                "7": self.show_configuration,
            }
            while True:
                self._show_main_menu()
                choice = self._ask("Choice: ")
                if choice == "0":
                    self.shutdown()
                    break
                action = main_menu.get(choice)
                if action is None:
                    self._out("Invalid choice. Please try again.")
                    continue
                try:
                    action()
                except RegistrarException as e:
                    self._out(f"Error: {e.message}")
        except (EOFError, KeyboardInterrupt):
            self._out("")
        self._out(f"\nThank you for using {self._platform.config.application_name}!")
        return 0

    def _show_main_menu(self) -> None:
        self._out("\n=== Main Menu ===")
        self._out("1. Student Management")
        self._out("2. Course Management")
        self._out("3. Enrollment Management")
        self._out("4. Reports & Statistics")
        self._out("5. Save Data")
        self._out("6. Load Data")
        self._out("7. View Configuration")
        self._out("0. Exit")

    # Students

    def student_menu(self) -> None:
        self._run_menu("Student Management", [
            ("1", "Add Student", self.add_student),
            ("2", "View All Students", self.view_all_students),
            ("3", "Search Student", self.search_students),
            ("4", "Update Student", self.update_student),
            ("5", "Delete Student", self.delete_student),
            ("6", "View Student Details", self.view_student_details),
        ])

    def add_student(self) -> None:
        self._out("\n--- Add New Student ---")
        graduate = self._ask("Student Type (1=Undergraduate, 2=Graduate): ") == "2"
        students = self._platform.students
        student_id = students.generate_student_id()
        self._out(f"Generated Student ID: {student_id}")

        fields = {
            'student_id': student_id,
            'student_type': StudentType.GRADUATE if graduate else StudentType.UNDERGRADUATE,
            'first_name': self._ask("First Name: "),
            'last_name': self._ask("Last Name: "),
            'email': self._ask("Email: "),
            'phone': self._ask("Phone: "),
            'date_of_birth': parse_date(self._ask("Date of Birth (YYYY-MM-DD): "), "Date of Birth"),
            'program': self._ask("Program: "),
            'semester': parse_int(self._ask("Semester: "), "Semester"),
        }
        if graduate:
            fields['research_area'] = self._ask("Research Area: ") or None
            fields['advisor'] = self._ask("Advisor: ") or None

        student = students.register(**fields)
        self._out(f"Student added: {student.full_name} ({student.student_id})")

    def view_all_students(self) -> None:
        students = self._platform.students.get_all_students()
        if not students:
            self._out("\nNo students found.")
            return
        self._out("\n--- All Students ---")
        self._out(f"{'Student ID':<12} {'Name':<20} {'Program':<25} {'Semester':<10} GPA")
        self._out("-" * 80)
        for s in students:
            self._out(f"{s.student_id:<12} {s.full_name:<20} {s.program:<25} "
                      f"{s.semester:<10d} {s.gpa:.2f}")
        self._out(f"\nTotal Students: {len(students)}")

    def search_students(self) -> None:
        term = self._ask("\nEnter search term (name or ID): ")
        results = self._platform.students.search(term)
        if not results:
            self._out(f"No students found matching: {term}")
            return
        self._out("\n--- Search Results ---")
        for s in results:
            self._out(str(s))

    def update_student(self) -> None:
        student = self._platform.students.get_student(self._ask("\nEnter Student ID to update: "))
        self._out(str(student))
        choice = self._run_choice("What would you like to update?",
                                  ["Email", "Phone", "Program", "Semester"])
        if choice is None:
            return
        field, prompt = (('email', "New Email: "), ('phone', "New Phone: "),
                         ('program', "New Program: "), ('semester', "New Semester: "))[choice]
        value = self._ask(prompt)
        if field == 'semester':
            value = parse_int(value, "Semester")
        self._platform.students.update_student(student.student_id, **{field: value})
        self._out("Student updated")

    def _run_choice(self, title: str, labels: List[str]):
        self._out(f"\n{title}")
        for index, label in enumerate(labels, 1):
            self._out(f"{index}. {label}")
        choice = self._ask("Choice: ")
        if not choice.isdigit() or not 1 <= int(choice) <= len(labels):
            self._out("Invalid choice")
            return None
        return int(choice) - 1

    def delete_student(self) -> None:
        students = self._platform.students
        student = students.get_student(self._ask("\nEnter Student ID to delete: "))
        if self._confirm(f"Are you sure you want to delete: {student.full_name}? (y/n): "):
            students.delete_student(student.student_id)
            self._out("Student deleted")
        else:
            self._out("Deletion cancelled")

    def view_student_details(self) -> None:
        student = self._platform.students.get_student(self._ask("\nEnter Student ID: "))
        self._out(f"\n--- {student.full_name} ---")
        self._out(f"ID: {student.student_id}")
        self._out(f"Type: {student.student_type.label}")
        self._out(f"Email: {student.email}")
        self._out(f"Phone: {student.phone}")
        self._out(f"Program: {student.program} (semester {student.semester})")
        self._out(f"GPA: {student.gpa:.2f}"
                  f"{'' if student.is_in_good_standing() else ' (probation)'}")
        if student.is_graduate:
            self._out(f"Thesis: {student.thesis_title or 'N/A'}")
            self._out(f"Advisor: {student.advisor or 'N/A'}")
            self._out(f"Research Area: {student.research_area or 'N/A'}")

        enrollments = self._platform.enrollments.get_enrollments_for_student(student.student_id)
        if enrollments:
            self._out("\n--- Enrolled Courses ---")
            for e in enrollments:
                grade = f"{e.grade:.2f}" if e.grade is not None else "N/A"
                self._out(f"{e.course.course_code} - {e.course.course_name} - "
                          f"Grade: {grade} - Status: {e.status.value}")

    # Courses

    def course_menu(self) -> None:
        self._run_menu("Course Management", [
            ("1", "Add Course", self.add_course),
            ("2", "View All Courses", self.view_all_courses),
            ("3", "Search Course", self.search_courses),
            ("4", "View Course Details", self.view_course_details),
        ])

    def add_course(self) -> None:
        self._out("\n--- Add New Course ---")
        courses = self._platform.courses
        course_id = courses.generate_course_id()
        self._out(f"Generated Course ID: {course_id}")
        course = courses.register(
            course_id=course_id,
            course_code=self._ask("Course Code (e.g., CS101): ").upper(),
            course_name=self._ask("Course Name: "),
            department=self._ask("Department: "),
            instructor=self._ask("Instructor: "),
            credits=parse_int(self._ask("Credits: "), "Credits"),
            max_capacity=parse_int(self._ask("Max Capacity: "), "Max Capacity"),
        )
        self._out(f"Course added: {course.course_name} ({course.course_code})")

    def view_all_courses(self) -> None:
        courses = self._platform.courses.get_all_courses()
        if not courses:
            self._out("\nNo courses found.")
            return
        self._out("\n--- All Courses ---")
        self._out(f"{'Code':<10} {'Name':<30} {'Department':<15} {'Credits':<8} Instructor")
        self._out("-" * 90)
        for c in courses:
            self._out(f"{c.course_code:<10} {c.course_name:<30} {c.department:<15} "
                      f"{c.credits:<8d} {c.instructor}")
        self._out(f"\nTotal Courses: {len(courses)}")

    def search_courses(self) -> None:
        term = self._ask("\nEnter search term: ")
        results = self._platform.courses.search_by_name(term)
        if not results:
            self._out(f"No courses found matching: {term}")
            return
        self._out("\n--- Search Results ---")
        for c in results:
            self._out(str(c))

    def view_course_details(self) -> None:
        course = self._platform.courses.resolve_course(self._ask("\nEnter Course ID or Code: "))
        self._out(str(course))
        report = self._platform.reports.enrollment_report(course.course_id)
        if report is None:
            self._out("No enrollments.")
            return
        stats = report['statistics']
        self._out(f"\n--- Enrollment Report: {report['course_code']} ---")
        self._out(f"Instructor: {report['instructor']}")
        self._out(f"Total Enrollments: {stats['total_enrollments']}")
        self._out(f"Active: {stats['active_enrollments']}")
        self._out(f"Average Grade: {stats['average_grade']:.2f}")
        self._out(f"Pass Rate: {stats['pass_rate']:.1f}%")
        for row in report['rows']:
            grade = f"{row['grade']:.2f}" if row['grade'] is not None else "N/A"
            self._out(f"  {row['student_id']:<10} {row['student_name']:<20} "
                      f"{grade:<8} {row['status']}")

    # Enrollments

    def enrollment_menu(self) -> None:
        self._run_menu("Enrollment Management", [
            ("1", "Enroll Student in Course", self.enroll_student),
            ("2", "Assign Grade", self.assign_grade),
            ("3", "Drop Enrollment", self.drop_enrollment),
            ("4", "Complete Enrollment", self.complete_enrollment),
            ("5", "View All Enrollments", self.view_all_enrollments),
        ])

    def enroll_student(self) -> None:
        student_id = self._ask("\nEnter Student ID: ")
        course_ref = self._ask("Enter Course ID or Code: ")
        enrollment = self._platform.enroll(student_id, course_ref)
        self._out(f"Enrolled: {enrollment.enrollment_id}")

    def assign_grade(self) -> None:
        enrollment_id = self._ask("\nEnter Enrollment ID: ")
        grade = parse_float(self._ask("Enter Grade (0-100): "), "Grade")
        enrollment = self._platform.enrollments.assign_grade(enrollment_id, grade)
        self._out(f"Grade recorded: {enrollment.grade:.2f} ({enrollment.letter_grade})")

    def drop_enrollment(self) -> None:
        enrollment = self._platform.enrollments.drop(self._ask("\nEnter Enrollment ID: "))
        self._out(f"Enrollment dropped: {enrollment.enrollment_id}")

    def complete_enrollment(self) -> None:
        enrollment_id = self._ask("\nEnter Enrollment ID: ")
        grade = parse_float(self._ask("Enter Final Grade (0-100): "), "Grade")
        enrollment = self._platform.enrollments.complete(enrollment_id, grade)
        self._out(f"Enrollment completed: {enrollment.enrollment_id} ({enrollment.letter_grade})")

    def view_all_enrollments(self) -> None:
        enrollments = self._platform.enrollments.get_all_enrollments()
        if not enrollments:
            self._out("\nNo enrollments found.")
            return
        self._out("\n--- All Enrollments ---")
        for e in enrollments:
            self._out(str(e))
        self._out(f"\nTotal Enrollments: {len(enrollments)}")

    # Reports

    def reports_menu(self) -> None:
        self._run_menu("Reports & Statistics", [
            ("1", "Student Statistics", self.show_student_statistics),
            ("2", "Course Statistics", self.show_course_statistics),
            ("3", "Top Performers", self.show_top_performers),
            ("4", "Students on Probation", self.show_probation),
            ("5", "Export Students to CSV", self.export_students),
            ("6", "Export Courses to CSV", self.export_courses),
        ])

    def show_student_statistics(self) -> None:
        stats = self._platform.reports.student_statistics()
        self._out("\n=== Student Statistics ===")
        self._out(f"Total Students: {stats['total_students']}")
        self._out(f"Average GPA: {stats['average_gpa']:.2f}")
        self._out(f"Good Standing: {stats['good_standing']}")
        self._out(f"On Probation: {stats['on_probation']}")
        self._out(f"Graduate Students: {stats['graduate_students']}")
        self._out("\nStudents by Program:")
        for program, count in stats['by_program'].items():
            self._out(f"  {program}: {count}")

    def show_course_statistics(self) -> None:
        summary = self._platform.reports.course_summary()
        self._out("\n=== Course Statistics ===")
        self._out(f"Total Courses: {summary['total_courses']}")
        self._out("\nCourses by Department:")
        for department, count in summary['by_department'].items():
            self._out(f"  {department}: {count}")

    def show_top_performers(self) -> None:
        self._out("\n--- Top 10 Performers ---")
        for rank, s in enumerate(self._platform.reports.top_performers(10), 1):
            self._out(f"{rank}. {s.full_name} - GPA: {s.gpa:.2f} - {s.program}")

    def show_probation(self) -> None:
        self._out("\n--- Students on Academic Probation ---")
        on_probation = self._platform.reports.probation_list()
        if not on_probation:
            self._out("No students on probation.")
            return
        for s in on_probation:
            self._out(f"{s.full_name} - GPA: {s.gpa:.2f}")

    def export_students(self) -> None:
        count = export_students_csv(self._platform.students.get_all_students(),
                                    STUDENTS_EXPORT_FILE)
        self._out(f"Exported {count} students to {STUDENTS_EXPORT_FILE}")

    def export_courses(self) -> None:
        count = export_courses_csv(self._platform.courses.get_all_courses(),
                                   COURSES_EXPORT_FILE)
        self._out(f"Exported {count} courses to {COURSES_EXPORT_FILE}")

    # Data and configuration

    def save_data(self) -> None:
        self._out("\n--- Saving Data ---")
        counts = self._platform.data.save_all()
        self._out(f"All data saved: {counts['students']} students, {counts['courses']} courses, "
                  f"{counts['enrollments']} enrollments")

    def load_data(self) -> None:
        self._out("\n--- Loading Data ---")
        counts = self._platform.data.load_all()
        self._out(f"Loaded {counts['students']} students, {counts['courses']} courses, "
                  f"{counts['enrollments']} enrollments")

    def show_configuration(self) -> None:
        config = self._platform.config
        self._out("=== Current Configuration ===")
        self._out(f"Application Name: {config.application_name}")
        self._out(f"Data Directory: {config.data_directory}")
        self._out(f"Max Students Per Course: {config.max_students_per_course}")
        self._out(f"Passing Grade: {config.passing_grade}")

    def shutdown(self) -> None:
        self._out("\n--- Shutting Down ---")
        if self._confirm("Save data before exit? (y/n): "):
            self.save_data()
        self._out("Shutdown complete")
