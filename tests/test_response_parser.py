"""
Tests for parsing AI completion text.
"""

import pytest

from pipassist.ai.response_parser import (
    EMPTY_RESPONSE_MESSAGES,
    GENERATION_FAILED_MESSAGES,
    INVALID_RESPONSE_MESSAGES,
    error_response,
    is_error_response,
    parse_guidance_response,
    parse_json_object,
    strip_code_fences,
)


class TestParseJsonObject:
    """Extracting a JSON object from model output."""

    def test_plain_object(self):
        assert parse_json_object('{"answer_en": "hi"}') == {"answer_en": "hi"}

    @pytest.mark.parametrize(
        "text",
        [
            '```json\n{"answer_en": "hi"}\n```',
            '```\n{"answer_en": "hi"}\n```',
            '```JSON{"answer_en": "hi"}```',
        ],
    )
    def test_fenced_object(self, text):
        assert parse_json_object(text) == {"answer_en": "hi"}

    def test_object_wrapped_in_prose(self):
        text = 'Here is your answer:\n{"answer_en": "hi", "explanation_en": "x"}\nGood luck!'
        assert parse_json_object(text) == {"answer_en": "hi", "explanation_en": "x"}

    @pytest.mark.parametrize("text", ["", "   ", "no json here", "[1, 2]", '"just a string"', "{broken"])
    def test_not_an_object(self, text):
        assert parse_json_object(text) is None

    def test_strip_code_fences(self):
        assert strip_code_fences("```json\n{}\n```") == "{}"
        assert strip_code_fences(None) == ""


class TestParseGuidanceResponse:
    """Payloads stored on an answer."""

    def test_valid_object_returned_as_is(self):
        payload = parse_guidance_response('{"answer_fa": "سلام", "explanation_fa": "چون"}', "fa")
        assert payload == {"answer_fa": "سلام", "explanation_fa": "چون"}
        assert not is_error_response(payload)

    def test_malformed_text_kept_under_answer_key(self):
        payload = parse_guidance_response("  I am not JSON  ", "uk")
        assert payload == {"error": INVALID_RESPONSE_MESSAGES["uk"], "answer_uk": "I am not JSON"}
        assert is_error_response(payload)

    def test_empty_text(self):
        payload = parse_guidance_response("", "en")
        assert payload == {"error": INVALID_RESPONSE_MESSAGES["en"], "answer_en": EMPTY_RESPONSE_MESSAGES["en"]}

    def test_error_response(self):
        assert error_response("fa") == {"error": GENERATION_FAILED_MESSAGES["fa"]}
        assert is_error_response(error_response("en"))
        assert not is_error_response(None)
