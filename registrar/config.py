"""
Process-wide settings for the Registrar.

The entry point builds one RegistrarConfig and hands it to every service; there
is no module-level singleton.
"""

import json
import logging
import os
from typing import Any, Dict, Optional

from pydantic import BaseModel, Field
from pydantic import ValidationError as PydanticValidationError

from .core.exceptions import ConfigurationError

logger = logging.getLogger(__name__)

# properties-file key -> field name
PROPERTY_KEYS = {
    "data.directory": "data_directory",
    "course.max.students": "max_students_per_course",
    "grade.passing": "passing_grade",
    "app.name": "application_name",
}


class RegistrarConfig(BaseModel):
    data_directory: str = "data"
    max_students_per_course: int = Field(30, ge=1)
    passing_grade: float = Field(60.0, ge=0.0, le=100.0)
    application_name: str = "Student Management System"

    @classmethod
    def from_mapping(cls, values: Dict[str, Any]) -> 'RegistrarConfig':
        """Build a config from field names or properties-file keys."""
        fields: Dict[str, Any] = {}
        for key, value in values.items():
            name = PROPERTY_KEYS.get(key, key)
            if name in cls.model_fields:
                fields[name] = value
            else:
                logger.debug("Ignoring unknown configuration key: %s", key)
        try:
            return cls(**fields)
        except PydanticValidationError as e:
            raise ConfigurationError(f"Invalid configuration: {e.errors()[0].get('msg')}",
                                     details={'errors': e.errors()})

    @classmethod
    def load(cls, path: Optional[str]) -> 'RegistrarConfig':
        """
        Load settings from a .properties or .json file.

        A missing file is not an error: the defaults are used. An unreadable
        file or an out-of-range value raises ConfigurationError.
        """
        if not path or not os.path.exists(path):
            if path:
                logger.info("Configuration file not found: %s. Using defaults.", path)
            return cls()

        try:
            with open(path, "r", encoding="utf-8") as f:
                text = f.read()
        except OSError as e:
            raise ConfigurationError(f"Error loading configuration: {e}")

        if path.endswith(".json"):
            try:
                values = json.loads(text)
            except json.JSONDecodeError as e:
                raise ConfigurationError(f"Malformed configuration file {path}: {e}")
            if not isinstance(values, dict):
                raise ConfigurationError(f"Configuration file {path} must hold a JSON object")
        else:
            values = parse_properties(text)

        config = cls.from_mapping(values)
        logger.info("Configuration loaded from: %s", path)
        return config

    def as_properties(self) -> Dict[str, str]:
        return {key: str(getattr(self, name)) for key, name in PROPERTY_KEYS.items()}

    def save_properties(self, path: str) -> None:
        try:
            with open(path, "w", encoding="utf-8") as f:
                f.write(f"# {self.application_name} Configuration\n")
                for key, value in self.as_properties().items():
                    f.write(f"{key}={value}\n")
        except OSError as e:
            raise ConfigurationError(f"Error saving configuration: {e}")
        logger.info("Configuration saved to: %s", path)


def parse_properties(text: str) -> Dict[str, str]:
    """Parse ``key=value`` / ``key: value`` lines, skipping blanks and comments."""
    values: Dict[str, str] = {}
    for raw_line in text.splitlines():
        line = raw_line.strip()
        if not line or line[0] in "#!":
            continue
        separators = [i for i in (line.find("="), line.find(":")) if i != -1]
        if not separators:
            values[line] = ""
            continue
        index = min(separators)
        values[line[:index].strip()] = line[index + 1:].strip()
    return values
