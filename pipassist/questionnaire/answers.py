"""
Answer defaults and shape validation.
Each question kind accepts exactly one value shape; writes are checked here
before they reach the engine's answer map.
"""

from decimal import Decimal, InvalidOperation
from typing import Any, Dict, List

from pipassist.exceptions import AnswerValidationError
from pipassist.models import (
    Answer,
    Question,
    QuestionType,
    TEXT_TYPES,
    NUMERIC_TYPES,
)

ANSWER_PROPERTIES = ("value", "rating", "length", "files", "ai_response")
DURABLE_PROPERTIES = ("value", "rating", "length")

MIN_RATING, MAX_RATING = 0, 6
MIN_LENGTH, MAX_LENGTH = 1, 4


def empty_value(question: Question) -> Any:
    """Fresh empty value for a question kind."""
    if question.type in (QuestionType.MULTI_SELECT, QuestionType.FILE):
        return []
    if question.type == QuestionType.GROUP:
        return {}
    return ""


def default_answer(question: Question) -> Answer:
    return Answer(
        question_id=question.id,
        value=empty_value(question),
        rating=1 if question.star_enabled else 0,
        length=1,
    )


def is_empty_value(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, str):
        return not value.strip()
    if isinstance(value, (list, tuple, dict)):
        return len(value) == 0
    return False


def validate_value(question: Question, value: Any) -> Any:
    """Check a value against the question kind and return a normalized copy."""
    kind = question.type

    if kind in TEXT_TYPES:
        if not isinstance(value, str):
            raise _shape_error(question, "a string", value)
        return value

    if kind in NUMERIC_TYPES:
        return _validate_numeric(question, value)

    if kind == QuestionType.SINGLE_SELECT:
        if not isinstance(value, str):
            raise _shape_error(question, "a string", value)
        if value and question.options and value not in question.option_values():
            raise AnswerValidationError(
                f"Invalid option for question '{question.id}'",
                f"'{value}' is not one of {question.option_values()}",
            )
        return value

    if kind == QuestionType.MULTI_SELECT:
        selected = _string_list(question, value)
        allowed = question.option_values()
        for item in selected:
            if allowed and item not in allowed:
                raise AnswerValidationError(
                    f"Invalid option for question '{question.id}'",
                    f"'{item}' is not one of {allowed}",
                )
        # Drop duplicates but keep selection order
        return list(dict.fromkeys(selected))

    if kind == QuestionType.FILE:
        return _string_list(question, value)

    if kind == QuestionType.GROUP:
        return _validate_group(question, value)

    raise AnswerValidationError(f"Unsupported question type: {kind}")


def validate_property(question: Question, prop: str, value: Any) -> Any:
    """Validate any answer property and return the value to store."""
    if prop == "value":
        return validate_value(question, value)

    if prop == "rating":
        return _bounded_int(question, prop, value, MIN_RATING, MAX_RATING)

    if prop == "length":
        return _bounded_int(question, prop, value, MIN_LENGTH, MAX_LENGTH)

    if prop == "files":
        return tuple(_string_list(question, value))

    if prop == "ai_response":
        if value is not None and not isinstance(value, dict):
            raise _shape_error(question, "a mapping or None", value)
        return dict(value) if value is not None else None

    raise AnswerValidationError(
        f"Unknown answer property '{prop}'", f"Expected one of {ANSWER_PROPERTIES}"
    )


def _validate_numeric(question: Question, value: Any) -> str:
    if isinstance(value, bool):
        raise _shape_error(question, "a number", value)
    if isinstance(value, (int, float)):
        return str(value)
    if not isinstance(value, str):
        raise _shape_error(question, "a number", value)

    cleaned = value.strip().replace("£", "").replace(",", "").strip()
    if not cleaned:
        return value
    try:
        Decimal(cleaned)
    except InvalidOperation:
        raise AnswerValidationError(
            f"Invalid number for question '{question.id}'", f"'{value}' is not numeric"
        )
    return value


def _validate_group(question: Question, value: Any) -> Dict[str, Any]:
    if not isinstance(value, dict):
        raise _shape_error(question, "a mapping of sub-answers", value)

    result = {}
    for child_id, child_value in value.items():
        child = question.get_child(child_id)
        if child is None:
            raise AnswerValidationError(
                f"Unknown field '{child_id}' in group '{question.id}'"
            )
        result[child_id] = validate_value(child, child_value)
    return result


def _string_list(question: Question, value: Any) -> List[str]:
    if not isinstance(value, (list, tuple)):
        raise _shape_error(question, "a list of strings", value)
    if not all(isinstance(item, str) for item in value):
        raise _shape_error(question, "a list of strings", value)
    return list(value)


def _bounded_int(question: Question, prop: str, value: Any, low: int, high: int) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise _shape_error(question, f"an integer {prop}", value)
    if value < low or value > high:
        raise AnswerValidationError(
            f"Invalid {prop} for question '{question.id}'",
            f"{value} is outside {low}..{high}",
        )
    return value


def _shape_error(question: Question, expected: str, value: Any) -> AnswerValidationError:
    return AnswerValidationError(
        f"Invalid answer for question '{question.id}' ({question.type.value})",
        f"expected {expected}, got {type(value).__name__}",
    )
