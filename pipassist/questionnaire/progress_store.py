"""
Persistence of questionnaire progress.
Answers are stored per module as a JSON list under a module-scoped key.
"""

import json
from dataclasses import replace
from typing import Any, Dict

from pipassist.exceptions import AnswerValidationError, StorageError
from pipassist.interfaces import KeyValueStoreInterface
from pipassist.models import AnswerMap, FormModule
from pipassist.utils.logging_utils import LoggerMixin
from .answers import default_answer, validate_property, DURABLE_PROPERTIES

PROGRESS_KEY_PREFIX = "form-progress-"


def progress_key(module_id: str) -> str:
    return f"{PROGRESS_KEY_PREFIX}{module_id}"


class ProgressStore(LoggerMixin):
    """Saves and restores the durable part of a module's answers."""

    def __init__(self, store: KeyValueStoreInterface):
        self.store = store

    def default_answers(self, module: FormModule) -> AnswerMap:
        return {question.id: default_answer(question) for question in module.questions}

    def restore(self, module: FormModule) -> AnswerMap:
        """Rebuild the answer map for a module from persisted progress.

        Never raises: unreadable or mismatched data falls back to defaults.
        """
        answers = self.default_answers(module)
        saved = self._load_saved(module.module_id)
        if not saved:
            return answers

        for question in module.questions:
            entry = saved.get(question.id)
            if entry is None:
                continue
            answer = answers[question.id]
            for prop in DURABLE_PROPERTIES:
                if prop not in entry:
                    continue
                try:
                    value = validate_property(question, prop, entry[prop])
                except AnswerValidationError as e:
                    self.logger.warning(
                        f"Discarding saved {prop} for '{question.id}' in "
                        f"'{module.module_id}': {e}"
                    )
                    continue
                answer = replace(answer, **{prop: value})
            answers[question.id] = answer

        orphaned = set(saved) - set(answers)
        if orphaned:
            self.logger.debug(
                f"Ignoring {len(orphaned)} saved answer(s) with no matching question "
                f"in '{module.module_id}': {sorted(orphaned)}"
            )

        return answers

    def persist(self, module_id: str, answers: AnswerMap) -> bool:
        """Write the durable subset of the answers. Returns False on failure."""
        payload = [answer.to_persisted() for answer in answers.values()]
        try:
            self.store.set(progress_key(module_id), json.dumps(payload, ensure_ascii=False))
        except (StorageError, TypeError, ValueError) as e:
            self.logger.error(f"Failed to save form progress for '{module_id}': {e}")
            return False
        return True

    def clear(self, module_id: str) -> None:
        try:
            self.store.delete(progress_key(module_id))
        except StorageError as e:
            self.logger.error(f"Failed to clear form progress for '{module_id}': {e}")

    def _load_saved(self, module_id: str) -> Dict[str, Dict[str, Any]]:
        try:
            raw = self.store.get(progress_key(module_id))
        except StorageError as e:
            self.logger.error(f"Failed to read form progress for '{module_id}': {e}")
            return {}

        if not raw:
            return {}

        try:
            parsed = json.loads(raw)
        except (TypeError, ValueError) as e:
            self.logger.error(f"Failed to parse saved form progress for '{module_id}': {e}")
            return {}

        if not isinstance(parsed, list):
            self.logger.warning(f"Saved form progress for '{module_id}' is not a list")
            return {}

        saved = {}
        for entry in parsed:
            if isinstance(entry, dict) and isinstance(entry.get("questionId"), str):
                saved[entry["questionId"]] = entry
        return saved
