"""
Registrar: an in-memory academic records manager.

Keeps students, courses and enrollments in memory, enforces course capacity
and duplicate-enrollment rules, derives letter grades and GPA from numeric
grades and fans grade changes out to notification handlers. A text menu and a
small HTTP API sit on top of the same services.
"""

__version__ = "1.0.0"
__author__ = "Registrar Development Team"
__description__ = "In-memory student, course and enrollment records manager"
