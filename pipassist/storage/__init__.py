"""
Storage module for PIP Assist.
Local key-value stores and the module unlock registry.
"""

from .stores import InMemoryStore, YamlFileStore
from .unlock_registry import UnlockRegistry

__all__ = ["InMemoryStore", "YamlFileStore", "UnlockRegistry"]
