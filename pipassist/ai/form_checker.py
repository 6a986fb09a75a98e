"""
Form checker for completed benefit application forms.
Scores an uploaded form and its evidence through the completion service.
"""

import logging
from pathlib import Path
from typing import List, Optional

from pipassist.exceptions import (
    AIServiceError,
    FormCheckError,
    ModuleLockedError,
    NetworkError,
)
from pipassist.interfaces import CompletionClientInterface
from pipassist.models import Attachment, FormCheckResult, localized
from pipassist.storage.unlock_registry import UnlockRegistry
from .response_parser import parse_json_object

FORM_CHECKER_MODULE = "form_checker"

FORM_TYPES = [
    "pip",
    "uc",
    "carers_allowance",
    "nhs_forms",
    "student_finance",
    "immigration",
    "council_tax",
    "blue_badge",
    "dvla_forms",
    "hmrc_forms",
]

ANALYSIS_FAILED_MESSAGES = {
    "fa": "تحلیل انجام نشد. ممکن است فایل پشتیبانی نشده باشد یا خطایی در ارتباط با سرور رخ داده باشد. لطفا دوباره تلاش کنید.",
    "en": "Analysis failed. The file may be unsupported or there was a server error. Please try again.",
    "uk": "Аналіз не вдався. Можливо, файл не підтримується або сталася помилка сервера. Будь ласка, спробуйте ще раз.",
}

DISCLAIMERS = {
    "fa": "این یک تحلیل خودکار است و جایگزین مشاوره حرفه‌ای نمی‌شود.",
    "en": "This is an automated analysis and does not replace professional advice.",
    "uk": "Це автоматизований аналіз, який не замінює професійної консультації.",
}


def build_form_check_prompt(form_name: str, form_type: str, lang: str) -> str:
    """Create AI prompt for reviewing a completed form."""
    return f"""You are an expert AI assistant for reviewing UK benefit application forms.
Analyze the provided form ("{form_name}") and any supporting evidence documents.
The user's primary language is "{lang}", but you must provide all text outputs in English (en), Farsi (fa), and Ukrainian (uk).
The form type is "{form_type}".

Your task is to return a single, valid JSON object and nothing else. The JSON object must match this structure:
{{
  "language": "{lang}",
  "form_type": "{form_type}",
  "overall_stars": "integer (1-6)",
  "scores": {{ "completeness": "int(1-6)", "consistency": "int(1-6)", "evidence_linkage": "int(1-6)", "relevance": "int(1-6)", "tone_clarity": "int(1-6)", "risk_flags": "int(1-6)" }},
  "translation_summary": "string in {lang}",
  "key_findings": ["array of strings in {lang}"],
  "missing_evidence": ["array of strings in {lang}"],
  "improvements": [{{ "section_id": "string", "before_fa": "string", "after_fa": "string", "rationale_fa": "string", "before_en": "string", "after_en": "string", "rationale_en": "string", "before_uk": "string", "after_uk": "string", "rationale_uk": "string" }}],
  "per_question_scores": {{ "Question Name from form": "int(1-6)" }},
  "next_steps_fa": ["array of strings"],
  "next_steps_en": ["array of strings"],
  "next_steps_uk": ["array of strings"],
  "disclaimer_fa": "{DISCLAIMERS['fa']}",
  "disclaimer_en": "{DISCLAIMERS['en']}",
  "disclaimer_uk": "{DISCLAIMERS['uk']}"
}}
Critically evaluate the documents and provide accurate scores and concrete, actionable feedback in the JSON format. Ensure all text fields are correctly translated as requested."""


def export_improvements(result: FormCheckResult, lang: str) -> str:
    """Plain-text rendering of the suggested rewrites in one language."""
    blocks = []
    for improvement in result.improvements:
        blocks.append(
            f"Section: {improvement.section_id}\n"
            f"Before: {improvement.before.get(lang, '')}\n"
            f"After: {improvement.after.get(lang, '')}\n"
            f"Rationale: {improvement.rationale.get(lang, '')}"
        )
    return "\n\n---\n\n".join(blocks)


class FormChecker:
    """Runs paid form reviews against the completion service."""

    def __init__(
        self,
        client: CompletionClientInterface,
        registry: UnlockRegistry,
        max_tokens: int = 4000,
        temperature: float = 0.1,
    ):
        self.client = client
        self.registry = registry
        self.max_tokens = max_tokens
        self.temperature = temperature
        self.logger = logging.getLogger(__name__)

    def analyze(
        self,
        form_path: str,
        evidence_paths: Optional[List[str]] = None,
        form_type: str = "pip",
        lang: str = "en",
    ) -> FormCheckResult:
        """Score a completed form. Consumes one form checker use on success."""
        if form_type not in FORM_TYPES:
            raise FormCheckError(
                f"Unknown form type: {form_type}", f"Expected one of {', '.join(FORM_TYPES)}"
            )

        status = self.registry.status(FORM_CHECKER_MODULE)
        if not status.unlocked or status.uses_left <= 0:
            raise ModuleLockedError(
                "The form checker is locked", "Complete the checkout to get more checks"
            )

        failed = localized(ANALYSIS_FAILED_MESSAGES, lang)
        try:
            attachments = [Attachment.from_path(form_path)]
            attachments.extend(Attachment.from_path(path) for path in evidence_paths or [])
        except OSError as e:
            raise FormCheckError(failed, f"Could not read file: {e}")

        prompt = build_form_check_prompt(Path(form_path).name, form_type, lang)
        self.logger.info(
            f"Checking {form_type} form '{Path(form_path).name}' with "
            f"{len(attachments) - 1} evidence file(s)"
        )

        try:
            text = self.client.send_request(
                prompt,
                max_tokens=self.max_tokens,
                temperature=self.temperature,
                attachments=attachments,
            )
        except (AIServiceError, NetworkError) as e:
            self.logger.error(f"Form check request failed: {e}")
            raise FormCheckError(failed, str(e))

        data = parse_json_object(text)
        if data is None:
            self.logger.error("Form check response is not a JSON object")
            raise FormCheckError(failed, "Response was not valid JSON")

        try:
            result = FormCheckResult.from_dict(data)
        except (KeyError, TypeError, ValueError) as e:
            self.logger.error(f"Form check response has an unexpected shape: {e}")
            raise FormCheckError(failed, f"Unexpected response shape: {e}")

        remaining = self.registry.consume_use(FORM_CHECKER_MODULE)
        self.logger.info(f"Form check complete, {remaining} check(s) left")
        return result
