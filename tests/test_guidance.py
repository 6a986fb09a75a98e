"""
Tests for debounced answer guidance.
"""

import threading
import unittest
from dataclasses import replace

from pipassist.ai.guidance_scheduler import GuidanceScheduler
from pipassist.ai.guidance_service import GuidanceService
from pipassist.ai.prompt_builder import should_skip
from pipassist.ai.response_parser import GENERATION_FAILED_MESSAGES, INVALID_RESPONSE_MESSAGES
from pipassist.exceptions import AIServiceError, NetworkError
from pipassist.models import Answer
from pipassist.questionnaire.engine import QuestionnaireEngine
from pipassist.storage import InMemoryStore

from fixtures import (
    FakeCompletionClient,
    ManualTimerFactory,
    create_children_module,
    create_rated_module,
    make_question,
)


class TestGuidanceScheduler(unittest.TestCase):
    """Test cases for per-key debounce."""

    def setUp(self):
        self.timers = ManualTimerFactory()
        self.scheduler = GuidanceScheduler(delay=1.0, timer_factory=self.timers)
        self.calls = []

    def test_reschedule_replaces_pending_task(self):
        self.scheduler.schedule("q1", lambda: self.calls.append("first"))
        self.scheduler.schedule("q1", lambda: self.calls.append("second"))

        self.assertTrue(self.timers.timers[0].cancelled)
        self.timers.fire_all()
        self.assertEqual(self.calls, ["second"])
        self.assertFalse(self.scheduler.pending("q1"))

    def test_keys_are_independent(self):
        self.scheduler.schedule("q1", lambda: self.calls.append("q1"))
        self.scheduler.schedule("q2", lambda: self.calls.append("q2"))

        self.timers.fire_all()
        self.assertEqual(sorted(self.calls), ["q1", "q2"])

    def test_superseded_callback_does_nothing(self):
        self.scheduler.schedule("q1", lambda: self.calls.append("stale"))
        stale = self.timers.timers[0]
        self.scheduler.schedule("q1", lambda: self.calls.append("fresh"))

        # The first timer thread may already be past its cancel check
        stale.callback()
        self.assertEqual(self.calls, [])
        self.assertTrue(self.scheduler.pending("q1"))

    def test_cancel_and_cancel_all(self):
        self.scheduler.schedule("q1", lambda: self.calls.append("q1"))
        self.scheduler.schedule("q2", lambda: self.calls.append("q2"))

        self.assertTrue(self.scheduler.cancel("q1"))
        self.assertFalse(self.scheduler.cancel("q1"))
        self.scheduler.cancel_all()
        self.timers.fire_all()

        self.assertEqual(self.calls, [])
        self.assertEqual(self.timers.live(), [])

    def test_timer_uses_configured_delay(self):
        self.scheduler.schedule("q1", lambda: None)
        self.assertEqual(self.timers.timers[0].delay, 1.0)
        self.assertTrue(self.timers.timers[0].started)

    def test_real_timer_fires(self):
        done = threading.Event()
        scheduler = GuidanceScheduler(delay=0.01)
        scheduler.schedule("q1", done.set)
        self.assertTrue(done.wait(2))


class TestShouldSkip:
    """Requests wait until there is something to send."""

    def test_star_question_waits_for_rating(self):
        question = make_question("pain", "long_text", star_enabled=True)
        assert should_skip(question, Answer("pain", rating=0, value="text"))
        assert not should_skip(question, Answer("pain", rating=2))

    def test_plain_question_waits_for_value(self):
        question = make_question("name")
        assert should_skip(question, Answer("name", value="   "))
        assert not should_skip(question, Answer("name", value="Sara"))

    def test_empty_list_counts_as_empty(self):
        question = make_question("benefits", "multi_select")
        assert should_skip(question, Answer("benefits", value=[]))


class TestGuidanceService(unittest.TestCase):
    """Test cases for GuidanceService."""

    def setUp(self):
        # Universal Credit prompts include the typed value
        self.module = replace(create_children_module(), module_id="uc")
        self.engine = QuestionnaireEngine(self.module, InMemoryStore())
        self.timers = ManualTimerFactory()
        self.client = FakeCompletionClient()
        self.service = GuidanceService(
            self.engine,
            self.client,
            scheduler=GuidanceScheduler(delay=1.0, timer_factory=self.timers),
            lang="en",
        )

    def test_rapid_edits_send_one_request_with_latest_value(self):
        self.engine.set_answer("full_name", "value", "Sa")
        self.engine.set_answer("full_name", "value", "Sara Ahmadi")

        self.assertEqual(len(self.timers.live()), 1)
        self.timers.fire_all()

        self.assertEqual(len(self.client.prompts), 1)
        self.assertIn('"Sara Ahmadi"', self.client.prompts[0])
        self.assertEqual(
            self.engine.get_answer("full_name").ai_response,
            {"answer_en": "ok", "explanation_en": "because"},
        )

    def test_rating_and_length_changes_trigger(self):
        engine = QuestionnaireEngine(create_rated_module(), InMemoryStore())
        service = GuidanceService(
            engine, self.client, scheduler=GuidanceScheduler(timer_factory=self.timers)
        )

        engine.set_answer("preparing_food", "rating", 4)
        engine.set_answer("preparing_food", "length", 3)
        self.timers.fire_all()

        self.assertEqual(len(self.client.prompts), 1)
        self.assertIn("Impact Strength: 4/6", self.client.prompts[0])
        self.assertIn("Answer Length: 3/4", self.client.prompts[0])
        service.close()

    def test_files_change_does_not_trigger(self):
        self.engine.set_answer("child_ages", "files", ["birth.pdf"])
        self.assertEqual(self.timers.live(), [])

    def test_result_lands_on_original_question(self):
        self.engine.set_answer("full_name", "value", "Sara")
        self.engine.advance()
        self.timers.fire_all()

        self.assertEqual(self.engine.current_question.id, "has_children")
        self.assertIsNotNone(self.engine.get_answer("full_name").ai_response)
        self.assertIsNone(self.engine.get_answer("has_children").ai_response)
        # has_children is still empty, so no request was made for it
        self.assertEqual(len(self.client.prompts), 1)

    def test_malformed_response_keeps_raw_text(self):
        self.client.responses = ["Sorry, I cannot help with that."]
        self.engine.set_answer("full_name", "value", "Sara")
        self.timers.fire_all()

        self.assertEqual(
            self.engine.get_answer("full_name").ai_response,
            {
                "error": INVALID_RESPONSE_MESSAGES["en"],
                "answer_en": "Sorry, I cannot help with that.",
            },
        )

    def test_client_error_becomes_error_payload(self):
        for error in (AIServiceError("model down"), NetworkError("timeout")):
            self.client.error = error
            self.engine.set_answer("full_name", "value", f"Sara {error}")
            self.timers.fire_all()

            self.assertEqual(
                self.engine.get_answer("full_name").ai_response,
                {"error": GENERATION_FAILED_MESSAGES["en"]},
            )

    def test_response_in_selected_language(self):
        self.service.set_language("fa")
        self.client.responses = ['```json\n{"answer_fa": "سلام", "explanation_fa": "چون"}\n```']
        self.engine.set_answer("full_name", "value", "سارا")
        self.timers.fire_all()

        self.assertEqual(self.engine.get_answer("full_name").ai_response["answer_fa"], "سلام")
        self.assertIn("answer_fa", self.client.prompts[-1])

    def test_set_language_refreshes_current_question(self):
        self.service.set_language("uk")
        self.assertEqual(len(self.timers.live()), 1)

        with self.assertRaises(ValueError):
            self.service.set_language("de")

    def test_emptied_value_clears_stale_guidance(self):
        self.engine.set_answer("full_name", "value", "Sara")
        self.timers.fire_all()
        self.engine.set_answer("full_name", "value", "")
        self.timers.fire_all()

        self.assertIsNone(self.engine.get_answer("full_name").ai_response)
        self.assertEqual(len(self.client.prompts), 1)

    def test_navigation_requests_missing_guidance_only(self):
        self.engine.set_answer("savings", "value", "£500")
        self.timers.fire_all()
        self.assertEqual(len(self.client.prompts), 1)

        self.engine.go_to("savings")
        self.assertEqual(self.timers.live(), [])

        self.engine.set_answer("savings", "ai_response", None)
        self.engine.go_to("savings")
        self.assertEqual(len(self.timers.live()), 1)

    def test_reset_cancels_pending_requests(self):
        self.engine.set_answer("full_name", "value", "Sara")
        self.engine.reset()

        self.assertEqual(self.timers.live(), [])
        self.timers.fire_all()
        self.assertEqual(self.client.prompts, [])

    def test_close_stops_listening(self):
        self.engine.set_answer("full_name", "value", "Sara")
        self.service.close()
        self.engine.set_answer("full_name", "value", "Sara A")

        self.assertEqual(self.timers.live(), [])

    def test_not_in_flight_after_request(self):
        self.engine.set_answer("full_name", "value", "Sara")
        self.timers.fire_all()
        self.assertFalse(self.service.in_flight("full_name"))
