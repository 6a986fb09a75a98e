"""
CLI interface module for PIP Assist.
Handles command-line interface and user interactions.
"""

from .main import cli, main

__all__ = ["cli", "main"]
