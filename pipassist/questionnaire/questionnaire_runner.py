"""
Interactive questionnaire runner for PIP Assist form modules.
Renders the engine's current question in a terminal and feeds input back.
"""

from typing import Any, Callable, Dict, List, Optional

from pipassist.exceptions import AnswerValidationError
from pipassist.models import Question, QuestionType, localized
from .engine import EngineEvent, QuestionnaireEngine

LABELS = {
    "fa": {
        "guidance": "راهنمایی:",
        "answer": "پاسخ پیشنهادی:",
        "checklist": "چک‌لیست مدارک:",
        "next_steps": "مراحل بعدی:",
        "explanation": "توضیح AI:",
        "generating": "در حال تولید پاسخ...",
        "no_guidance": "هنوز راهنمایی وجود ندارد.",
    },
    "en": {
        "guidance": "Guidance:",
        "answer": "Suggested answer:",
        "checklist": "Evidence Checklist:",
        "next_steps": "Next Steps:",
        "explanation": "AI Explanation:",
        "generating": "Generating response...",
        "no_guidance": "No guidance yet.",
    },
    "uk": {
        "guidance": "Рекомендація:",
        "answer": "Запропонована відповідь:",
        "checklist": "Перелік доказів:",
        "next_steps": "Наступні кроки:",
        "explanation": "Пояснення від ШІ:",
        "generating": "Генерація відповіді...",
        "no_guidance": "Підказки ще немає.",
    },
}

HELP_TEXT = """Commands:
  <text>      answer the current question
  (empty)     next question (same as :n)
  :n / :p     next / previous question
  :r N        impact strength 0-6
  :l N        answer length 1-4
  :f PATH     attach an evidence file
  :g          show AI guidance for this question
  :h          show this help
  :q          save and quit"""


def format_ai_response(payload: Optional[Dict[str, Any]], lang: str, multi_part: bool = False) -> List[str]:
    """Render a stored AI response as display lines."""
    labels = LABELS.get(lang, LABELS["en"])
    if not payload:
        return [labels["no_guidance"]]

    lines = []
    if payload.get("error"):
        lines.append(f"⚠️  {payload['error']}")

    answer = payload.get(f"answer_{lang}")
    if answer:
        heading = labels["guidance"] if multi_part else labels["answer"]
        lines.extend([heading, str(answer)])

    for key, label in (("evidence_checklist", "checklist"), ("next_steps", "next_steps")):
        text = payload.get(f"{key}_{lang}")
        if text:
            lines.extend(["", labels[label], _as_text(text)])

    explanation = payload.get(f"explanation_{lang}")
    if explanation:
        lines.extend(["", labels["explanation"], str(explanation)])

    return lines


def _as_text(value: Any) -> str:
    if isinstance(value, list):
        return "\n".join(f"- {item}" for item in value)
    return str(value)


class QuestionnaireRunner:
    """Terminal front end for one questionnaire engine."""

    def __init__(
        self,
        engine: QuestionnaireEngine,
        lang: str = "en",
        input_func: Callable[[str], str] = input,
        output_func: Callable[[str], None] = print,
        is_pending: Optional[Callable[[str], bool]] = None,
    ):
        self.engine = engine
        self.lang = lang
        self._input = input_func
        self._output = output_func
        self._is_pending = is_pending
        self._unsubscribe = engine.subscribe(self._on_event)

    def run(self) -> bool:
        """Run until the user finishes or quits. Returns True when finished."""
        module = self.engine.module
        self._output("=" * 60)
        self._output(module.title_for(self.lang))
        self._output("=" * 60)
        intro = module.intro_for(self.lang)
        if intro:
            self._output(intro)
        self._output("Type :h for help.\n")

        try:
            while True:
                question = self.engine.current_question
                if question is None:
                    self._output("This form has no questions to answer.")
                    return False

                self._show_question(question)
                try:
                    line = self._input("> ").strip()
                except EOFError:
                    return self._quit()

                result = self._handle(question, line)
                if result is not None:
                    return result
        finally:
            self._unsubscribe()

    def _handle(self, question: Question, line: str) -> Optional[bool]:
        """Process one input line. Returns a result to stop the loop."""
        if line in ("", ":n"):
            if self.engine.advance():
                return None
            if self.engine.is_last:
                return self._finish()
            return None

        if line == ":p":
            if not self.engine.retreat():
                self._output("Already at the first question.")
            return None

        if line == ":q":
            return self._quit()

        if line == ":h":
            self._output(HELP_TEXT)
            return None

        if line == ":g":
            self._show_guidance(question)
            return None

        if line.startswith(":r "):
            return self._set_dial(question, "rating", line[3:], question.star_enabled)

        if line.startswith(":l "):
            return self._set_dial(question, "length", line[3:], question.book_enabled)

        if line.startswith(":f "):
            path = line[3:].strip()
            files = list(self.engine.get_answer(question.id).files)
            self._try_set(question, "files", files + [path])
            return None

        if question.type == QuestionType.GROUP:
            value = self._ask_group(question)
            if value is None:
                return self._quit()
            self._try_set(question, "value", value)
            return None

        self._try_set(question, "value", self.parse_answer(question, line))
        return None

    def parse_answer(self, question: Question, text: str) -> Any:
        """Convert typed input into the value shape for the question kind."""
        if question.type == QuestionType.SINGLE_SELECT:
            return self._pick_option(question, text)
        if question.type == QuestionType.MULTI_SELECT:
            return [self._pick_option(question, part) for part in _split(text)]
        if question.type == QuestionType.FILE:
            return _split(text)
        return text

    def _pick_option(self, question: Question, text: str) -> str:
        text = text.strip()
        if text.isdigit():
            index = int(text) - 1
            if 0 <= index < len(question.options):
                return question.options[index].value
        return text

    def _ask_group(self, question: Question) -> Optional[Dict[str, Any]]:
        current = self.engine.get_answer(question.id).value or {}
        value = dict(current)
        for child in question.children:
            self._output(f"  {child.text(self.lang)}")
            self._show_options(child, indent="    ")
            try:
                line = self._input("  > ").strip()
            except EOFError:
                return None
            if line:
                value[child.id] = self.parse_answer(child, line)
        return value

    def _set_dial(self, question: Question, prop: str, text: str, enabled: bool) -> None:
        if not enabled:
            self._output(f"This question has no {prop} control.")
            return None
        try:
            level = int(text.strip())
        except ValueError:
            self._output(f"Please enter a whole number for {prop}.")
            return None
        self._try_set(question, prop, level)
        return None

    def _try_set(self, question: Question, prop: str, value: Any) -> None:
        try:
            self.engine.set_answer(question.id, prop, value)
        except AnswerValidationError as e:
            self._output(f"❌ {e}")

    def _show_question(self, question: Question) -> None:
        answer = self.engine.get_answer(question.id)
        self._output(f"\nQuestion {self.engine.position}/{self.engine.total}:")
        self._output(question.text(self.lang))

        description = localized(question.description, self.lang)
        if description:
            self._output(description)

        self._show_options(question, indent="  ")
        if question.type == QuestionType.GROUP:
            self._output("  (type any text then Enter to fill in these fields, or just Enter to skip)")

        if question.allow_proof:
            hint = localized(question.proof_hint, self.lang)
            self._output(f"📎 {hint}" if hint else "📎 Evidence files can be attached with :f PATH")
        if question.star_enabled:
            self._output(f"Impact strength: {'★' * answer.rating}{'☆' * (6 - answer.rating)} ({answer.rating}/6)")
        if question.book_enabled:
            self._output(f"Answer length: {answer.length}/4")
        if answer.value:
            self._output(f"Current answer: {answer.value}")
        if answer.files:
            self._output(f"Attached: {', '.join(answer.files)}")

    def _show_options(self, question: Question, indent: str) -> None:
        for i, option in enumerate(question.options, 1):
            line = f"{indent}{i}. {localized(option.label, self.lang)}"
            tip = localized(option.tip, self.lang)
            if tip:
                line += f" ({tip})"
            self._output(line)

    def _show_guidance(self, question: Question) -> None:
        answer = self.engine.get_answer(question.id)
        if answer.ai_response is None and self._is_pending and self._is_pending(question.id):
            self._output(LABELS.get(self.lang, LABELS["en"])["generating"])
            return
        multi_part = bool(answer.ai_response) and f"next_steps_{self.lang}" in answer.ai_response
        for line in format_ai_response(answer.ai_response, self.lang, multi_part):
            self._output(line)

    def _on_event(self, event: EngineEvent) -> None:
        if event.kind == "answer" and event.property == "ai_response":
            answer = self.engine.get_answer(event.question_id)
            current = self.engine.current_question
            if answer.ai_response and current is not None and current.id == event.question_id:
                self._output("\n💡 New guidance is ready, type :g to view it.")

    def _finish(self) -> bool:
        answered = sum(
            1 for question in self.engine.visible_questions()
            if self.engine.get_answer(question.id).value
        )
        self._output("=" * 60)
        self._output("Form completed!")
        self._output(f"Answered {answered} of {self.engine.total} questions.")
        self._output("=" * 60)
        return True

    def _quit(self) -> bool:
        self._output("\nProgress saved. Run the same command again to continue.")
        return False


def _split(text: str) -> List[str]:
    return [part.strip() for part in text.split(",") if part.strip()]
