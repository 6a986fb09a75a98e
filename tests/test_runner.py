"""
Tests for the terminal questionnaire runner.
"""

import unittest

from pipassist.questionnaire.engine import QuestionnaireEngine
from pipassist.questionnaire.questionnaire_runner import (
    LABELS,
    QuestionnaireRunner,
    format_ai_response,
)
from pipassist.storage import InMemoryStore

from fixtures import create_children_module, create_rated_module


class ScriptedIO:
    """Feeds canned input lines and collects output."""

    def __init__(self, lines):
        self.lines = list(lines)
        self.output = []

    def input(self, prompt=""):
        if not self.lines:
            raise EOFError
        return self.lines.pop(0)

    def print(self, text=""):
        self.output.append(str(text))

    @property
    def text(self):
        return "\n".join(self.output)


class TestQuestionnaireRunner(unittest.TestCase):
    """Test cases for QuestionnaireRunner."""

    def _run(self, lines, module=None, **kwargs):
        engine = QuestionnaireEngine(module or create_children_module(), InMemoryStore())
        io = ScriptedIO(lines)
        runner = QuestionnaireRunner(engine, "en", input_func=io.input, output_func=io.print, **kwargs)
        return runner, engine, io, runner.run()

    def test_answers_and_navigation(self):
        runner, engine, io, finished = self._run(["Sara", "", "1", "", "4 and 7", ":q"])

        self.assertFalse(finished)
        self.assertEqual(engine.get_answer("full_name").value, "Sara")
        self.assertEqual(engine.get_answer("has_children").value, "yes")
        self.assertEqual(engine.get_answer("child_ages").value, "4 and 7")
        self.assertIn("Progress saved", io.text)

    def test_eof_quits(self):
        _, _, io, finished = self._run([])
        self.assertFalse(finished)
        self.assertIn("Question 1/6:", io.text)

    def test_previous_at_start(self):
        _, _, io, _ = self._run([":p", ":q"])
        self.assertIn("Already at the first question.", io.text)

    def test_invalid_answer_reported(self):
        _, engine, io, _ = self._run(["", "", "lots", ":q"])
        self.assertIn("Invalid number for question 'savings'", io.text)
        self.assertEqual(engine.get_answer("savings").value, "")

    def test_multi_select_and_group(self):
        lines = ["", "", "", "1, pip", "", "e", "16", "Tesco", ":q"]
        _, engine, _, _ = self._run(lines)

        self.assertEqual(engine.get_answer("benefits").value, ["uc", "pip"])
        self.assertEqual(engine.get_answer("work").value, {"hours": "16", "employer": "Tesco"})

    def test_any_text_opens_group_fields(self):
        _, engine, io, _ = self._run(["", "", "", "", "fill", "40", "Asda", ":q"])

        self.assertIn("type any text then Enter to fill in these fields", io.text)
        self.assertEqual(engine.get_answer("work").value, {"hours": "40", "employer": "Asda"})

    def test_attach_file(self):
        _, engine, io, _ = self._run([":f /tmp/letter.pdf", ":q"])
        self.assertEqual(engine.get_answer("full_name").files, ("/tmp/letter.pdf",))

    def test_finishes_at_last_question(self):
        _, _, io, finished = self._run(["", "", "", "", "", "", ""])
        self.assertTrue(finished)
        self.assertIn("Form completed!", io.text)
        self.assertIn("Answered 0 of 6 questions.", io.text)

    def test_dials(self):
        _, engine, io, _ = self._run([":r 5", ":l 3", ":r 9", ":l x", ":q"], module=create_rated_module())

        answer = engine.get_answer("preparing_food")
        self.assertEqual((answer.rating, answer.length), (5, 3))
        self.assertIn("Invalid rating", io.text)
        self.assertIn("Please enter a whole number for length.", io.text)

    def test_dial_not_available(self):
        _, _, io, _ = self._run([":r 3", ":q"])
        self.assertIn("This question has no rating control.", io.text)

    def test_guidance_pending(self):
        _, _, io, _ = self._run([":g", ":q"], is_pending=lambda question_id: True)
        self.assertIn(LABELS["en"]["generating"], io.text)

    def test_guidance_notice_for_current_question(self):
        engine = QuestionnaireEngine(create_children_module(), InMemoryStore())
        io = ScriptedIO([])
        runner = QuestionnaireRunner(engine, "en", input_func=io.input, output_func=io.print)

        engine.set_answer("full_name", "ai_response", {"answer_en": "Use your legal name."})
        engine.set_answer("savings", "ai_response", {"answer_en": "ignored"})

        notices = [line for line in io.output if "New guidance is ready" in line]
        self.assertEqual(len(notices), 1)
        runner.run()

    def test_parse_single_select_by_value(self):
        engine = QuestionnaireEngine(create_children_module(), InMemoryStore())
        runner = QuestionnaireRunner(engine, "en", input_func=lambda _: "", output_func=lambda _: None)
        question = engine.module.get_question("has_children")

        self.assertEqual(runner.parse_answer(question, "no"), "no")
        self.assertEqual(runner.parse_answer(question, "2"), "no")
        self.assertEqual(runner.parse_answer(engine.module.get_question("documents"), "a.pdf, b.png"), ["a.pdf", "b.png"])


class TestFormatAiResponse:
    """Rendering of stored guidance."""

    def test_no_guidance(self):
        assert format_ai_response(None, "fa") == [LABELS["fa"]["no_guidance"]]

    def test_single_answer(self):
        lines = format_ai_response({"answer_en": "Say you need help.", "explanation_en": "Because."}, "en")
        assert lines == ["Suggested answer:", "Say you need help.", "", "AI Explanation:", "Because."]

    def test_multi_part(self):
        payload = {
            "answer_uk": "Відповідь",
            "evidence_checklist_uk": ["Паспорт", "BRP"],
            "next_steps_uk": "- Подайте заяву",
        }
        lines = format_ai_response(payload, "uk", multi_part=True)

        assert lines[0] == LABELS["uk"]["guidance"]
        assert "- Паспорт\n- BRP" in lines
        assert "- Подайте заяву" in lines

    def test_error_with_raw_text(self):
        lines = format_ai_response({"error": "The received response is not valid.", "answer_en": "raw"}, "en")
        assert lines[0].endswith("The received response is not valid.")
        assert "raw" in lines
