"""
API module for the REST API implementation.
"""

from .rest_api import RegistrarRestAPI, status_code_for

__all__ = [
    "RegistrarRestAPI",
    "status_code_for",
]
