"""
PIP Assist Questionnaire Module

Conditional form questionnaires: content loading, answer state and
navigation, progress persistence and the terminal runner.
"""

from .question_bank import QuestionBank, MODULE_NAMES, MODULE_ORDER
from .engine import QuestionnaireEngine, EngineEvent, visible_questions, is_visible
from .progress_store import ProgressStore, progress_key
from .questionnaire_runner import QuestionnaireRunner

__all__ = [
    "QuestionBank",
    "MODULE_NAMES",
    "MODULE_ORDER",
    "QuestionnaireEngine",
    "EngineEvent",
    "visible_questions",
    "is_visible",
    "ProgressStore",
    "progress_key",
    "QuestionnaireRunner",
]
