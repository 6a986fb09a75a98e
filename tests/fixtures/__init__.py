"""
Test fixtures for PIP Assist testing.
"""

from .sample_modules import (
    make_question,
    create_children_module,
    create_rated_module,
    create_compound_module,
    FakeCompletionClient,
    ManualTimer,
    ManualTimerFactory,
    SAMPLE_MODULE_YAML,
    SAMPLE_FORM_CHECK_RESPONSE,
)

__all__ = [
    'make_question',
    'create_children_module',
    'create_rated_module',
    'create_compound_module',
    'FakeCompletionClient',
    'ManualTimer',
    'ManualTimerFactory',
    'SAMPLE_MODULE_YAML',
    'SAMPLE_FORM_CHECK_RESPONSE',
]
