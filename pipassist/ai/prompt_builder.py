"""
Prompt construction for per-question answer guidance.
Each form module has its own prompt; PIP is the default.
"""

import json
from typing import Any, Callable, Dict, Optional

from pipassist.models import Answer, AnswerMap, FormModule, Question, localized
from pipassist.questionnaire.answers import is_empty_value

IMPACT_MAP = {
    1: "very low impact",
    2: "low impact",
    3: "neutral impact",
    4: "somewhat impactful",
    5: "high impact",
    6: "maximum impact",
}

LENGTH_MAP = {
    1: "a very short answer (1-2 sentences)",
    2: "a medium-short answer (3-4 sentences)",
    3: "a semi-detailed answer (a short paragraph)",
    4: "a full, detailed answer (a long paragraph)",
}

LANGUAGE_DETAILS = {
    "fa": {"name": "Farsi (RTL)", "people": "Iranians"},
    "en": {"name": "English", "people": "users"},
    "uk": {"name": "Ukrainian", "people": "Ukrainians"},
}


def should_skip(question: Question, answer: Answer) -> bool:
    """True when there is nothing to ask the AI about yet.

    Questions with an impact dial wait for a non-zero rating; all others wait
    for a non-empty value.
    """
    if question.star_enabled:
        return answer.rating == 0
    return is_empty_value(answer.value)


def base_instruction(lang: str) -> str:
    details = LANGUAGE_DETAILS.get(lang, LANGUAGE_DETAILS["en"])
    return f"""You are an expert assistant for completing UK government forms. Your goal is to help {details['people']} in the UK.
You MUST return a single, valid JSON object and nothing else. The JSON object must have two keys: "answer_{lang}" and "explanation_{lang}".
- "answer_{lang}" (string): The response in clear, professional {details['name']}.
- "explanation_{lang}" (string): Briefly explain *why* you generated that specific answer, referencing the user's input."""


def multi_part_instruction(lang: str) -> str:
    details = LANGUAGE_DETAILS.get(lang, LANGUAGE_DETAILS["en"])
    return f"""You are an expert assistant for completing UK government forms. Your goal is to help {details['people']} in the UK.
You MUST return a single, valid JSON object and nothing else. The JSON object must have four keys: "answer_{lang}", "evidence_checklist_{lang}", "next_steps_{lang}", and "explanation_{lang}".
- "answer_{lang}" (string): Provide tailored guidance in polite, professional {details['name']}.
- "evidence_checklist_{lang}" (string): Provide a bulleted list (using '-') of documents the user should prepare.
- "next_steps_{lang}" (string): Provide a bulleted list (using '-') of the next actions the user should take.
- "explanation_{lang}" (string): Briefly explain the reasoning for the guidance you provided, referencing the user's input."""


class PromptBuilder:
    """Builds the guidance prompt for one question of a module."""

    def __init__(self):
        self._builders: Dict[str, Callable[..., str]] = {
            "blue_badge": self._blue_badge,
            "council_tax": self._council_tax,
            "dvla_forms": self._dvla,
            "hmrc_forms": self._hmrc,
            "carers_allowance": self._carers_allowance,
            "nhs_forms": self._nhs,
            "student_finance": self._student_finance,
            "uc": self._universal_credit,
            "immigration": self._immigration,
        }

    def build(self, module: FormModule, question: Question, answer: Answer,
              answers: AnswerMap, lang: str) -> str:
        builder = self._builders.get(module.module_id, self._pip)
        return builder(_PromptContext(question, answer, answers, lang))

    def _blue_badge(self, ctx: "_PromptContext") -> str:
        return f"""{base_instruction(ctx.lang)}
You are generating {ctx.language_name} answers for a UK Blue Badge application.
- Impact level (stars): {ctx.answer.rating}/6 ({IMPACT_MAP.get(ctx.answer.rating, '')}) must control assertiveness and emphasis on mobility limitations.
- Length level (books): {ctx.answer.length}/4 ({LENGTH_MAP.get(ctx.answer.length, '')}) must control answer depth and detail.
Current Question: "{ctx.question_text}"
User's input: {ctx.value_json}
Based on these requirements, generate a suitable response. Reflect real functional difficulties: distance limits, pain, fatigue, safety risks, non-visible conditions."""

    def _council_tax(self, ctx: "_PromptContext") -> str:
        return f"""{base_instruction(ctx.lang)}
You are generating {ctx.language_name} answers for a UK Council Tax Reduction application. The tone should be formal and clear.
Current Question: "{ctx.question_text}"
User's input: {ctx.value_json}
Based on the user's input, generate a simple, direct, and professional answer."""

    def _dvla(self, ctx: "_PromptContext") -> str:
        return f"""{multi_part_instruction(ctx.lang)}
Current Question: "{ctx.question_text}"
User's input: {ctx.value_json}
Based on the user's input, provide specific advice in {ctx.language_name}:
- If their foreign license is from a non-exchangeable country, explain that they need to apply for a Provisional Licence and take UK tests.
- If they report a medical condition, advise them they must declare it and may need to fill out specific medical forms (e.g., MED1).
- If they failed a vision test, advise them to see an optician before proceeding."""

    def _hmrc(self, ctx: "_PromptContext") -> str:
        flow = ctx.value_of("hmrc_flow")
        if flow == "self_assessment":
            return f"""{multi_part_instruction(ctx.lang)}
You generate clear {ctx.language_name} guidance for HMRC Self Assessment.
Current Question: "{ctx.question_text}"
User's input for this question: {ctx.value_json}
Full form context: {ctx.form_context}
Return tailored answers, an exact evidence checklist, and concise next steps to file online."""
        if flow == "child_tax_credit":
            return f"""{multi_part_instruction(ctx.lang)}
You generate clear {ctx.language_name} guidance for Child Tax Credit.
Current Question: "{ctx.question_text}"
User's input for this question: {ctx.value_json}
Full form context: {ctx.form_context}
Return tailored answers, an evidence checklist, and next steps on how to apply/update details."""
        return f"{base_instruction(ctx.lang)} Please select a form type to get started."

    def _carers_allowance(self, ctx: "_PromptContext") -> str:
        return f"""{multi_part_instruction(ctx.lang)}
You generate clear {ctx.language_name} guidance for a UK Carer's Allowance claim.
Current Question: "{ctx.question_text}"
User's input for this question: {ctx.value_json}
Full form context: {ctx.form_context}
Return tailored answers, an exact evidence checklist, and next steps on how to submit online.
Provide warnings if user seems ineligible (e.g., <35 hours, high earnings, full-time student)."""

    def _nhs(self, ctx: "_PromptContext") -> str:
        flow = ctx.value_of("form_type")
        if flow == "gp":
            return f"""{multi_part_instruction(ctx.lang)}
You generate clear {ctx.language_name} guidance for NHS GP Registration.
Current Question: "{ctx.question_text}"
User's input for this question: {ctx.value_json}
Explain how to register with a GP using ID, proof of address, and medical history. Return tailored answers, a checklist, and next steps."""
        if flow == "hc1":
            return f"""{multi_part_instruction(ctx.lang)}
You generate clear {ctx.language_name} guidance for NHS HC1/HC2 forms (Low Income Scheme).
Current Question: "{ctx.question_text}"
User's input for this question: {ctx.value_json}
Explain eligibility based on benefits, income, savings, and household. Return tailored answers, a checklist, and next steps."""
        return f"{base_instruction(ctx.lang)} Please select a form type to get started."

    def _student_finance(self, ctx: "_PromptContext") -> str:
        return f"""{multi_part_instruction(ctx.lang)}
You generate clear {ctx.language_name} guidance for Student Finance applications (UK).
Current Question: "{ctx.question_text}"
User's input for this question: {ctx.value_json}
Full form context: {ctx.form_context}
Use inputs: study level, institution, course length, residency status, household income, living arrangements, dependents, and special support needs.
Return tailored answers, an evidence checklist (documents: admission letter, BRP, income proofs, child dependents, disability assessments), and next steps (how to apply online, deadlines, processing times)."""

    def _universal_credit(self, ctx: "_PromptContext") -> str:
        return f"""{multi_part_instruction(ctx.lang)}
You are generating clear {ctx.language_name} guidance for a UK Universal Credit application.
Current Question: "{ctx.question_text}"
User's input for this question: {ctx.value_json}
Full form context: {ctx.form_context}
Based on all user inputs (household, children, housing costs, savings, employment, health), provide tailored advice.
For the 'evidence_checklist_{ctx.lang}', list specific documents like tenancy agreements, payslips, bank statements, or Fit Notes based on their answers.
For 'next_steps_{ctx.lang}', explain how to complete the online application on GOV.UK, report changes, and manage their journal."""

    def _immigration(self, ctx: "_PromptContext") -> str:
        return f"""{multi_part_instruction(ctx.lang)}
You are generating clear {ctx.language_name} guidance for a UK Immigration application.
Current Question: "{ctx.question_text}"
User's input for this question: {ctx.value_json}
Full form context: {ctx.form_context}
Tailor the guidance based on the application type (visa extension, settlement, citizenship).
For 'evidence_checklist_{ctx.lang}', be specific. For Settlement, mention BRP, Life in the UK certificate, English test, and proof of residence. For visa extensions, mention financial documents and proof of ties.
For 'next_steps_{ctx.lang}', explain the online application process, booking biometrics, and typical waiting times. If they mention absences for ILR, explain the rules clearly."""

    def _pip(self, ctx: "_PromptContext") -> str:
        description = localized(ctx.question.description, ctx.lang)
        return f"""{base_instruction(ctx.lang)}
You are generating a {ctx.language_name} response for a UK PIP (Personal Independence Payment) application.
Current Question: "{ctx.question_text}"
Description: "{description}"
User's requirement for the answer:
- Impact Strength: {ctx.answer.rating}/6 ({IMPACT_MAP.get(ctx.answer.rating, '')})
- Answer Length: {ctx.answer.length}/4 ({LENGTH_MAP.get(ctx.answer.length, '')})
Based on these requirements, generate a suitable response. The tone should be supportive but professional."""


class _PromptContext:
    """Values shared by every module prompt."""

    def __init__(self, question: Question, answer: Answer, answers: AnswerMap, lang: str):
        self.question = question
        self.answer = answer
        self.answers = answers
        self.lang = lang

    @property
    def language_name(self) -> str:
        return LANGUAGE_DETAILS.get(self.lang, LANGUAGE_DETAILS["en"])["name"]

    @property
    def question_text(self) -> str:
        return self.question.text(self.lang)

    @property
    def value_json(self) -> str:
        return json.dumps(self.answer.value, ensure_ascii=False)

    @property
    def form_context(self) -> str:
        """Every answer of the form as a compact JSON list of {q, v} pairs."""
        return json.dumps(
            [{"q": answer.question_id, "v": answer.value} for answer in self.answers.values()],
            ensure_ascii=False,
        )

    def value_of(self, question_id: str) -> Optional[Any]:
        answer = self.answers.get(question_id)
        return answer.value if answer else None
