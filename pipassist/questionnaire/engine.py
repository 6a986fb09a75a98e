"""
Conditional questionnaire engine.
Derives the visible subset of a module's questions from the current answers,
keeps a navigation cursor over that subset and persists every change.
"""

import threading
from dataclasses import dataclass, replace
from typing import Any, Callable, List, Optional

from pipassist.exceptions import AnswerValidationError
from pipassist.interfaces import KeyValueStoreInterface
from pipassist.models import Answer, AnswerMap, FormModule, Question
from pipassist.utils.logging_utils import LoggerMixin
from .answers import validate_property
from .progress_store import ProgressStore


def is_visible(question: Question, answers: AnswerMap) -> bool:
    """A question is shown when every `when` condition matches its prior answer.

    A multi-select answer matches when the required value is among its choices.
    """
    if not question.when:
        return True
    for question_id, required in question.when.items():
        answer = answers.get(question_id)
        if answer is None:
            return False
        if isinstance(answer.value, list):
            if required not in answer.value:
                return False
        elif answer.value != required:
            return False
    return True


def visible_questions(all_questions: List[Question], answers: AnswerMap) -> List[Question]:
    """Questions whose conditions hold, in their original order."""
    return [question for question in all_questions if is_visible(question, answers)]


@dataclass(frozen=True)
class EngineEvent:
    """Change notification sent to engine listeners."""

    kind: str  # answer | navigate | reset
    question_id: Optional[str] = None
    property: Optional[str] = None


Listener = Callable[[EngineEvent], None]


class QuestionnaireEngine(LoggerMixin):
    """Answer state and cursor for one form module."""

    def __init__(self, module: FormModule, store: KeyValueStoreInterface):
        self.module = module
        self.progress = ProgressStore(store)
        self._lock = threading.RLock()
        self._listeners: List[Listener] = []
        self._answers: AnswerMap = self.restore()
        self._cursor = 0
        self._current_id: Optional[str] = None
        self._recompute()

    # -- answer state -----------------------------------------------------

    @property
    def answers(self) -> AnswerMap:
        """Snapshot of the answer map."""
        with self._lock:
            return dict(self._answers)

    def get_answer(self, question_id: str) -> Answer:
        with self._lock:
            try:
                return self._answers[question_id]
            except KeyError:
                raise AnswerValidationError(
                    f"Unknown question '{question_id}' in module '{self.module.module_id}'"
                )

    def restore(self) -> AnswerMap:
        return self.progress.restore(self.module)

    def persist(self) -> bool:
        with self._lock:
            return self.progress.persist(self.module.module_id, self._answers)

    def set_answer(self, question_id: str, prop: str, value: Any) -> Answer:
        """Replace one property of an answer, persist, and notify listeners."""
        question = self.module.get_question(question_id)
        if question is None:
            raise AnswerValidationError(
                f"Unknown question '{question_id}' in module '{self.module.module_id}'"
            )
        normalized = validate_property(question, prop, value)

        with self._lock:
            updated = replace(self._answers[question_id], **{prop: normalized})
            answers = dict(self._answers)
            answers[question_id] = updated
            self._answers = answers
            self.progress.persist(self.module.module_id, self._answers)
            self._recompute()

        self.logger.debug(f"Set {prop} for '{question_id}'")
        self._notify(EngineEvent("answer", question_id, prop))
        return updated

    def reset(self) -> None:
        """Forget all answers for the module, including persisted progress."""
        with self._lock:
            self.progress.clear(self.module.module_id)
            self._answers = self.progress.default_answers(self.module)
            self._cursor = 0
            self._current_id = None
            self._recompute()
        self._notify(EngineEvent("reset"))

    # -- visibility and navigation -----------------------------------------

    def visible_questions(self) -> List[Question]:
        with self._lock:
            return visible_questions(self.module.questions, self._answers)

    @property
    def cursor(self) -> int:
        with self._lock:
            self._recompute()
            return self._cursor

    @property
    def current_question(self) -> Optional[Question]:
        """Question under the cursor, or None when nothing is visible."""
        with self._lock:
            visible = self._recompute()
            return visible[self._cursor] if visible else None

    @property
    def current_answer(self) -> Optional[Answer]:
        question = self.current_question
        return self.get_answer(question.id) if question else None

    @property
    def has_questions(self) -> bool:
        return bool(self.visible_questions())

    @property
    def total(self) -> int:
        return len(self.visible_questions())

    @property
    def position(self) -> int:
        """1-based position of the cursor, 0 when there are no questions."""
        with self._lock:
            visible = self._recompute()
            return self._cursor + 1 if visible else 0

    @property
    def is_first(self) -> bool:
        return self.cursor == 0

    @property
    def is_last(self) -> bool:
        with self._lock:
            visible = self._recompute()
            return not visible or self._cursor == len(visible) - 1

    def advance(self) -> bool:
        """Move to the next visible question. Returns False at the end."""
        return self._move(1)

    def retreat(self) -> bool:
        """Move to the previous visible question. Returns False at the start."""
        return self._move(-1)

    def go_to(self, question_id: str) -> bool:
        with self._lock:
            visible = self._recompute()
            ids = [question.id for question in visible]
            if question_id not in ids:
                return False
            self._cursor = ids.index(question_id)
            self._current_id = question_id
        self._notify(EngineEvent("navigate", question_id))
        return True

    def _move(self, step: int) -> bool:
        with self._lock:
            visible = self._recompute()
            target = self._cursor + step
            if not visible or target < 0 or target >= len(visible):
                return False
            self._cursor = target
            self._current_id = visible[target].id
        self._notify(EngineEvent("navigate", self._current_id))
        return True

    def _recompute(self) -> List[Question]:
        """Re-anchor the cursor on the current visible subset.

        The cursor follows the question it points at. If that question has
        become hidden, it falls back to the nearest visible question that
        precedes it in the module definition.
        """
        visible = visible_questions(self.module.questions, self._answers)
        if not visible:
            self._cursor = 0
            return visible

        ids = [question.id for question in visible]
        if self._current_id in ids:
            self._cursor = ids.index(self._current_id)
        elif self._current_id is None:
            self._cursor = min(self._cursor, len(visible) - 1)
        else:
            order = {question.id: i for i, question in enumerate(self.module.questions)}
            anchor = order[self._current_id]
            preceding = [i for i, question in enumerate(visible) if order[question.id] < anchor]
            self._cursor = preceding[-1] if preceding else 0
            self.logger.debug(
                f"Question '{self._current_id}' is hidden, cursor moved to "
                f"'{visible[self._cursor].id}'"
            )

        self._current_id = visible[self._cursor].id
        return visible

    # -- listeners -----------------------------------------------------------

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register a change listener. Returns a function that unsubscribes it."""
        self._listeners.append(listener)

        def unsubscribe():
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _notify(self, event: EngineEvent) -> None:
        for listener in list(self._listeners):
            listener(event)
