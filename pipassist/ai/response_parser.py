"""
Parsing of AI completion text into guidance payloads.
Malformed output never raises; it becomes a localized error marker.
"""

import json
import re
from typing import Any, Dict, Optional

from pipassist.models import localized

INVALID_RESPONSE_MESSAGES = {
    "fa": "پاسخ دریافت شده معتبر نیست.",
    "en": "The received response is not valid.",
    "uk": "Отримана відповідь недійсна.",
}

EMPTY_RESPONSE_MESSAGES = {
    "fa": "پاسخ خالی دریافت شد.",
    "en": "Received an empty response.",
    "uk": "Отримано порожню відповідь.",
}

GENERATION_FAILED_MESSAGES = {
    "fa": "متاسفانه در تولید پاسخ خطایی رخ داد. لطفا دوباره تلاش کنید.",
    "en": "An error occurred while generating the response. Please try again.",
    "uk": "Під час генерації відповіді сталася помилка. Будь ласка, спробуйте ще раз.",
}

_FENCE_PATTERN = re.compile(r"```(?:json)?", re.IGNORECASE)


def strip_code_fences(text: str) -> str:
    return _FENCE_PATTERN.sub("", text or "").strip()


def parse_json_object(text: str) -> Optional[Dict[str, Any]]:
    """Parse a JSON object out of model output, or return None.

    Falls back to the outermost brace pair when the model wrapped the object
    in prose.
    """
    cleaned = strip_code_fences(text)
    if not cleaned:
        return None

    try:
        parsed = json.loads(cleaned)
    except ValueError:
        json_start = cleaned.find("{")
        json_end = cleaned.rfind("}") + 1
        if json_start < 0 or json_end <= json_start:
            return None
        try:
            parsed = json.loads(cleaned[json_start:json_end])
        except ValueError:
            return None

    return parsed if isinstance(parsed, dict) else None


def parse_guidance_response(text: str, lang: str) -> Dict[str, Any]:
    """Turn raw completion text into the payload stored on an answer."""
    parsed = parse_json_object(text)
    if parsed is not None:
        return parsed

    raw = (text or "").strip()
    return {
        "error": localized(INVALID_RESPONSE_MESSAGES, lang),
        f"answer_{lang}": raw or localized(EMPTY_RESPONSE_MESSAGES, lang),
    }


def error_response(lang: str) -> Dict[str, Any]:
    """Payload for a request that failed before any text came back."""
    return {"error": localized(GENERATION_FAILED_MESSAGES, lang)}


def is_error_response(payload: Optional[Dict[str, Any]]) -> bool:
    return bool(payload) and "error" in payload
