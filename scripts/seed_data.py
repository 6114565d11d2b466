"""
Seed a running Registrar server with sample records over its REST API.
Start the server first:

    registrar --serve --port 8000

Usage:
    python scripts/seed_data.py

Set REGISTRAR_BASE_URL to target a server other than http://127.0.0.1:8000.
"""

import json
import os
import sys

import requests


BASE_URL = os.environ.get("REGISTRAR_BASE_URL", "http://127.0.0.1:8000").rstrip("/")


def check_server() -> bool:
    """Check if the server is running."""
    try:
        response = requests.get(f"{BASE_URL}/health", timeout=2)
        if response.status_code == 200:
            print(f"[OK] Server is running at {BASE_URL}")
            return True
    except requests.exceptions.RequestException:
        pass
    print("[FAIL] Server is not running!")
    print("\nPlease start the server first:")
    print("  registrar --serve --port 8000")
    return False


def _post(path: str, payload=None, expected=(200, 201)):
    response = requests.post(f"{BASE_URL}{path}", json=payload, timeout=5)
    if response.status_code in expected:
        return response.json()
    detail = response.json().get("detail", response.text)
    print(f"[FAIL] POST {path} failed ({response.status_code}): {detail}")
    return None


def create_student(first_name, last_name, email, program, semester, student_type="UNDERGRADUATE",
                   **extra):
    data = {
        "first_name": first_name,
        "last_name": last_name,
        "email": email,
        "program": program,
        "semester": semester,
        "student_type": student_type,
        **extra,
    }
    student = _post("/students", data)
    if student:
        print(f"[OK] Created student: {first_name} {last_name} ({student['student_id']})")
    return student


def create_course(course_code, course_name, credits, department, instructor, max_capacity,
                  prerequisites=None):
    data = {
        "course_code": course_code,
        "course_name": course_name,
        "credits": credits,
        "department": department,
        "instructor": instructor,
        "max_capacity": max_capacity,
        "prerequisites": prerequisites or [],
    }
    course = _post("/courses", data)
    if course:
        print(f"[OK] Created course: {course_code} - {course_name} ({course['course_id']})")
    return course


def enroll_student(student_id, course_ref):
    enrollment = _post("/enrollments", {"student_id": student_id, "course": course_ref})
    if enrollment:
        print(f"[OK] Enrolled {student_id} in {course_ref}: {enrollment['enrollment_id']}")
    return enrollment


def assign_grade(enrollment_id, grade):
    response = requests.put(f"{BASE_URL}/enrollments/{enrollment_id}/grade",
                            json={"grade": grade}, timeout=5)
    if response.status_code == 200:
        result = response.json()
        print(f"[OK] Graded {enrollment_id}: {grade} ({result['letter_grade']})")
        return result
    print(f"[WARN] Could not grade {enrollment_id}: {response.text}")
    return None


def list_students():
    response = requests.get(f"{BASE_URL}/students", timeout=5)
    response.raise_for_status()
    students = response.json()
    print(f"\n{'='*60}")
    print(f"Students ({len(students)})")
    print(f"{'='*60}")
    for student in students:
        name = f"{student['first_name']} {student['last_name']}"
        print(f"  {student['student_id']:10} | {name:20} | {student['program']:22} "
              f"| GPA {student['gpa']:.2f}")
    return students


def list_courses():
    response = requests.get(f"{BASE_URL}/courses", timeout=5)
    response.raise_for_status()
    courses = response.json()
    print(f"\n{'='*60}")
    print(f"Courses ({len(courses)})")
    print(f"{'='*60}")
    for course in courses:
        prereqs = ", ".join(course.get('prerequisites', [])) or "None"
        print(f"  {course['course_code']:10} | {course['course_name']:30} "
              f"| {course['active_enrollments']}/{course['max_capacity']} | Prereqs: {prereqs}")
    return courses


def get_statistics():
    response = requests.get(f"{BASE_URL}/statistics", timeout=5)
    response.raise_for_status()
    stats = response.json()
    print(f"\n{'='*60}")
    print("System Statistics")
    print(f"{'='*60}")
    print(json.dumps(stats['statistics'], indent=2))
    return stats


def main():
    print("=" * 60)
    print("Registrar - Sample Data Script")
    print("=" * 60)

    if not check_server():
        sys.exit(1)

    print("\nCreating courses...")
    create_course("CS101", "Introduction to Programming", 3, "Computer Science", "Dr. Smith", 30)
    create_course("CS201", "Data Structures", 4, "Computer Science", "Dr. Johnson", 25, ["CS101"])
    create_course("MATH101", "Calculus I", 4, "Mathematics", "Dr. Williams", 40)
    create_course("ENG101", "English Composition", 3, "English", "Dr. Brown", 2)

    print("\nCreating students...")
    students = [
        create_student("John", "Doe", "john.doe@university.edu", "Computer Science", 3),
        create_student("Jane", "Smith", "jane.smith@university.edu", "Computer Science", 2),
        create_student("Carol", "Davis", "carol.davis@university.edu", "Mathematics", 1),
        create_student("Alice", "Johnson", "alice.johnson@university.edu", "Computer Science - MS",
                       4, "GRADUATE", thesis_title="Machine Learning in Healthcare",
                       advisor="Dr. Smith", research_area="Artificial Intelligence"),
    ]
    ids = [s['student_id'] for s in students if s]

    print("\nEnrolling students...")
    grades = [88.5, 92.0, 55.0, 95.5]
    for student_id, grade in zip(ids, grades):
        enrollment = enroll_student(student_id, "CS101")
        if enrollment:
            assign_grade(enrollment['enrollment_id'], grade)

    # ENG101 holds two; the third attempt shows the capacity rejection.
    for student_id in ids[:3]:
        enroll_student(student_id, "ENG101")

    list_students()
    list_courses()
    get_statistics()

    print("\n" + "=" * 60)
    print("[OK] Sample data added successfully!")
    print("=" * 60)
    print(f"\nAPI docs: {BASE_URL}/docs")


if __name__ == "__main__":
    try:
        main()
    except KeyboardInterrupt:
        print("\n\n[FAIL] Interrupted by user")
        sys.exit(1)
    except requests.exceptions.RequestException as e:
        print(f"\n[FAIL] Request failed: {e}")
        sys.exit(1)
