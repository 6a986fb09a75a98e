"""
Answer guidance service.
Listens to questionnaire changes and fills each answer's AI response slot
once its fields have stopped changing.
"""

import threading
from typing import Any, Dict, Optional, Set

from pipassist.exceptions import AIServiceError, NetworkError
from pipassist.interfaces import CompletionClientInterface
from pipassist.models import SUPPORTED_LANGUAGES
from pipassist.questionnaire.engine import EngineEvent, QuestionnaireEngine
from pipassist.utils.logging_utils import LoggerMixin
from .guidance_scheduler import GuidanceScheduler
from .prompt_builder import PromptBuilder, should_skip
from .response_parser import error_response, parse_guidance_response

# Answer fields that feed into the prompt
TRIGGER_PROPERTIES = ("value", "rating", "length")


class GuidanceService(LoggerMixin):
    """Debounced AI guidance for the questions of one engine."""

    def __init__(
        self,
        engine: QuestionnaireEngine,
        client: CompletionClientInterface,
        scheduler: Optional[GuidanceScheduler] = None,
        prompt_builder: Optional[PromptBuilder] = None,
        lang: str = "en",
        max_tokens: int = 2000,
        temperature: float = 0.3,
    ):
        self.engine = engine
        self.client = client
        self.scheduler = scheduler or GuidanceScheduler()
        self.prompt_builder = prompt_builder or PromptBuilder()
        self.lang = lang
        self.max_tokens = max_tokens
        self.temperature = temperature
        self._in_flight: Set[str] = set()
        self._lock = threading.Lock()
        self._unsubscribe = engine.subscribe(self._on_event)

    def in_flight(self, question_id: str) -> bool:
        with self._lock:
            return question_id in self._in_flight

    def schedule(self, question_id: str) -> None:
        self.scheduler.schedule(question_id, lambda: self.request_guidance(question_id))

    def set_language(self, lang: str) -> None:
        """Switch output language and refresh guidance for the current question."""
        if lang not in SUPPORTED_LANGUAGES:
            raise ValueError(f"Unsupported language: {lang}")
        if lang == self.lang:
            return
        self.lang = lang
        question = self.engine.current_question
        if question is not None:
            self.schedule(question.id)

    def request_guidance(self, question_id: str) -> Optional[Dict[str, Any]]:
        """Ask the AI about one question and store the result on its answer.

        Reads the answer at call time, so a debounced request always carries
        the latest value. The result is written back to the same question
        whether or not it is still under the cursor.
        """
        question = self.engine.module.get_question(question_id)
        if question is None:
            self.logger.warning(f"Guidance requested for unknown question '{question_id}'")
            return None

        answer = self.engine.get_answer(question_id)
        if should_skip(question, answer):
            if answer.ai_response is not None:
                self.engine.set_answer(question_id, "ai_response", None)
            return None

        lang = self.lang
        with self._lock:
            self._in_flight.add(question_id)
        try:
            self.engine.set_answer(question_id, "ai_response", None)
            prompt = self.prompt_builder.build(
                self.engine.module, question, answer, self.engine.answers, lang
            )
            try:
                text = self.client.send_request(
                    prompt, max_tokens=self.max_tokens, temperature=self.temperature
                )
            except (AIServiceError, NetworkError) as e:
                self.logger.error(f"AI generation failed for '{question_id}': {e}")
                payload = error_response(lang)
            else:
                payload = parse_guidance_response(text, lang)
                if "error" in payload:
                    self.logger.warning(f"Malformed AI response for '{question_id}'")

            self.engine.set_answer(question_id, "ai_response", payload)
            return payload
        finally:
            with self._lock:
                self._in_flight.discard(question_id)

    def close(self) -> None:
        """Stop listening and drop pending requests. In-flight ones still finish."""
        self._unsubscribe()
        self.scheduler.cancel_all()

    def _on_event(self, event: EngineEvent) -> None:
        if event.kind == "reset":
            self.scheduler.cancel_all()
            return

        if event.kind == "answer" and event.property in TRIGGER_PROPERTIES:
            self.schedule(event.question_id)
            return

        if event.kind == "navigate" and event.question_id:
            answer = self.engine.get_answer(event.question_id)
            if answer.ai_response is None and not self.in_flight(event.question_id):
                self.schedule(event.question_id)
