"""
YAML utility functions for PIP Assist.
Handles YAML file operations with proper error handling.
"""

import yaml
from pathlib import Path
from typing import Dict, Any

from pipassist.exceptions import FileSystemError


class YamlUtils:
    """Utility class for YAML operations."""

    @staticmethod
    def load_yaml(file_path: str) -> Dict[str, Any]:
        """Load YAML file and return parsed content."""
        try:
            path = Path(file_path).expanduser()
            with open(path, "r", encoding="utf-8") as f:
                content = yaml.safe_load(f)
                return content if content is not None else {}
        except FileNotFoundError:
            raise FileSystemError(f"YAML file not found: {file_path}")
        except yaml.YAMLError as e:
            raise FileSystemError(f"Invalid YAML in file {file_path}", str(e))
        except OSError as e:
            raise FileSystemError(f"Error reading YAML file {file_path}", str(e))

    @staticmethod
    def save_yaml(data: Dict[str, Any], file_path: str, create_dirs: bool = True) -> None:
        """Save data to YAML file."""
        try:
            path = Path(file_path).expanduser()

            if create_dirs:
                path.parent.mkdir(parents=True, exist_ok=True)

            with open(path, "w", encoding="utf-8") as f:
                yaml.safe_dump(
                    data,
                    f,
                    default_flow_style=False,
                    indent=2,
                    sort_keys=False,
                    allow_unicode=True,
                )
        except (OSError, yaml.YAMLError) as e:
            raise FileSystemError(f"Error writing YAML file {file_path}", str(e))

    @staticmethod
    def dump_yaml_safe(data: Dict[str, Any]) -> str:
        """Convert data to YAML string safely."""
        try:
            return yaml.safe_dump(
                data, default_flow_style=False, indent=2, sort_keys=False, allow_unicode=True
            )
        except yaml.YAMLError as e:
            raise FileSystemError("Error converting data to YAML string", str(e))
