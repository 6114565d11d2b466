"""
Persistence module: in-memory stores, JSON snapshots and CSV export.
"""

from .entity_store import EntityStore
from .file_store import JsonFileRepository
from .data_manager import DataManager
from .csv_export import export_students_csv, export_courses_csv

__all__ = [
    "EntityStore",
    "JsonFileRepository",
    "DataManager",
    "export_students_csv",
    "export_courses_csv",
]
