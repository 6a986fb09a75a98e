"""
Core data models for PIP Assist.
Defines data structures for form modules, questions, answers and AI results.
"""

import mimetypes
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional, Any, Tuple
from enum import Enum

SUPPORTED_LANGUAGES = ("fa", "en", "uk")
DEFAULT_LANGUAGE = "en"


def localized(texts: Optional[Dict[str, str]], lang: str) -> str:
    """Pick the text for a language, falling back to English."""
    if not texts:
        return ""
    return texts.get(lang) or texts.get(DEFAULT_LANGUAGE) or ""


class QuestionType(Enum):
    """Input kinds a question can take."""

    SHORT_TEXT = "short_text"
    LONG_TEXT = "long_text"
    SINGLE_SELECT = "single_select"
    MULTI_SELECT = "multi_select"
    NUMBER = "number"
    CURRENCY = "currency"
    DATE = "date"
    FILE = "file"
    GROUP = "group"


TEXT_TYPES = {QuestionType.SHORT_TEXT, QuestionType.LONG_TEXT, QuestionType.DATE}
NUMERIC_TYPES = {QuestionType.NUMBER, QuestionType.CURRENCY}
CHOICE_TYPES = {QuestionType.SINGLE_SELECT, QuestionType.MULTI_SELECT}


@dataclass
class Option:
    """A selectable choice for single/multi-select questions."""

    value: str
    label: Dict[str, str]
    tip: Optional[Dict[str, str]] = None


@dataclass
class Question:
    """Represents a form question."""

    id: str
    type: QuestionType
    question: Dict[str, str]
    description: Optional[Dict[str, str]] = None
    placeholder: Optional[Dict[str, str]] = None
    options: List[Option] = field(default_factory=list)
    when: Dict[str, str] = field(default_factory=dict)
    children: List["Question"] = field(default_factory=list)
    allow_proof: bool = False
    proof_hint: Optional[Dict[str, str]] = None
    star_enabled: bool = False
    book_enabled: bool = False

    def text(self, lang: str) -> str:
        return localized(self.question, lang)

    def option_values(self) -> List[str]:
        return [option.value for option in self.options]

    def get_child(self, child_id: str) -> Optional["Question"]:
        for child in self.children:
            if child.id == child_id:
                return child
        return None


@dataclass
class FormModule:
    """An ordered collection of questions for one government form."""

    module_id: str
    title: Dict[str, str]
    intro: Dict[str, str] = field(default_factory=dict)
    questions: List[Question] = field(default_factory=list)

    def get_question(self, question_id: str) -> Optional[Question]:
        for question in self.questions:
            if question.id == question_id:
                return question
        return None

    def title_for(self, lang: str) -> str:
        return localized(self.title, lang)

    def intro_for(self, lang: str) -> str:
        return localized(self.intro, lang)


@dataclass(frozen=True)
class Answer:
    """Answer state for a single question.

    Instances are never mutated; the engine swaps in a new Answer on every
    change so listeners can compare old and new state safely.
    """

    question_id: str
    value: Any = ""
    rating: int = 0
    length: int = 1
    files: Tuple[str, ...] = ()
    ai_response: Optional[Dict[str, Any]] = None

    def to_persisted(self) -> Dict[str, Any]:
        """Durable subset written to the local store."""
        return {
            "questionId": self.question_id,
            "rating": self.rating,
            "length": self.length,
            "value": self.value,
        }


AnswerMap = Dict[str, Answer]


@dataclass
class UnlockStatus:
    """Per-module unlock flag recorded after a successful checkout."""

    unlocked: bool = False
    uses_left: int = 0


@dataclass
class Attachment:
    """A binary file sent alongside a prompt."""

    name: str
    media_type: str
    data: bytes

    @classmethod
    def from_path(cls, path: str) -> "Attachment":
        file_path = Path(path).expanduser()
        media_type = mimetypes.guess_type(file_path.name)[0] or "application/octet-stream"
        return cls(name=file_path.name, media_type=media_type, data=file_path.read_bytes())


FORM_CHECK_SCORE_KEYS = (
    "completeness",
    "consistency",
    "evidence_linkage",
    "relevance",
    "tone_clarity",
    "risk_flags",
)


@dataclass
class Improvement:
    """A suggested rewrite for one section of a checked form."""

    section_id: str
    before: Dict[str, str] = field(default_factory=dict)
    after: Dict[str, str] = field(default_factory=dict)
    rationale: Dict[str, str] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Improvement":
        data = _mapping(data, "improvement")
        improvement = cls(section_id=str(data.get("section_id", "")))
        for lang in SUPPORTED_LANGUAGES:
            for attr in ("before", "after", "rationale"):
                text = data.get(f"{attr}_{lang}")
                if text is not None:
                    getattr(improvement, attr)[lang] = str(text)
        return improvement


def _mapping(value: Any, name: str) -> Dict[str, Any]:
    if not isinstance(value, dict):
        raise ValueError(f"{name} must be an object, got {type(value).__name__}")
    return value


def _score(value: Any, name: str) -> int:
    score = int(value)
    if score < 1 or score > 6:
        raise ValueError(f"{name} must be between 1 and 6, got {score}")
    return score


@dataclass
class FormCheckResult:
    """Scored review of a completed form."""

    language: str
    form_type: str
    overall_stars: int
    scores: Dict[str, int]
    translation_summary: str = ""
    key_findings: List[str] = field(default_factory=list)
    missing_evidence: List[str] = field(default_factory=list)
    improvements: List[Improvement] = field(default_factory=list)
    per_question_scores: Dict[str, int] = field(default_factory=dict)
    next_steps: Dict[str, List[str]] = field(default_factory=dict)
    disclaimer: Dict[str, str] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "FormCheckResult":
        """Build a result from the AI JSON payload, validating scores."""
        raw_scores = _mapping(data.get("scores") or {}, "scores")
        scores = {key: _score(raw_scores[key], key) for key in FORM_CHECK_SCORE_KEYS}

        per_question = {
            str(name): _score(value, str(name))
            for name, value in _mapping(
                data.get("per_question_scores") or {}, "per_question_scores"
            ).items()
        }

        return cls(
            language=str(data.get("language", "")),
            form_type=str(data.get("form_type", "")),
            overall_stars=_score(data["overall_stars"], "overall_stars"),
            scores=scores,
            translation_summary=str(data.get("translation_summary", "")),
            key_findings=[str(item) for item in data.get("key_findings") or []],
            missing_evidence=[str(item) for item in data.get("missing_evidence") or []],
            improvements=[
                Improvement.from_dict(item) for item in data.get("improvements") or []
            ],
            per_question_scores=per_question,
            next_steps={
                lang: [str(item) for item in data.get(f"next_steps_{lang}") or []]
                for lang in SUPPORTED_LANGUAGES
            },
            disclaimer={
                lang: str(data[f"disclaimer_{lang}"])
                for lang in SUPPORTED_LANGUAGES
                if data.get(f"disclaimer_{lang}")
            },
        )
