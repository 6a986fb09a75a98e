"""
Utility functions and helpers for PIP Assist.
Common functionality shared across modules.
"""

from .yaml_utils import YamlUtils
from .logging_utils import setup_logging, get_logger, LoggerMixin

__all__ = [
    "YamlUtils",
    "setup_logging",
    "get_logger",
    "LoggerMixin",
]
