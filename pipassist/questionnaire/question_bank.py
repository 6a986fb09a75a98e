"""
Question bank for PIP Assist form modules.
Loads the per-module YAML content tables and checks them before use.
"""

from pathlib import Path
from typing import Any, Dict, List, Optional

from pipassist.exceptions import ContentError, FileSystemError
from pipassist.models import (
    FormModule,
    Option,
    Question,
    QuestionType,
    CHOICE_TYPES,
    localized,
)
from pipassist.utils.logging_utils import LoggerMixin
from pipassist.utils.yaml_utils import YamlUtils

DEFAULT_CONTENT_DIR = Path(__file__).resolve().parent.parent / "content"

# Display order of the module picker
MODULE_ORDER = [
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
    "form_checker",
]

MODULE_NAMES: Dict[str, Dict[str, str]] = {
    "pip": {"fa": "فرم PIP", "en": "PIP Form", "uk": "Форма PIP"},
    "uc": {"fa": "یونیورسال کردیت", "en": "Universal Credit", "uk": "Універсальний кредит"},
    "carers_allowance": {
        "fa": "کمک هزینه مراقب",
        "en": "Carer's Allowance",
        "uk": "Допомога по догляду",
    },
    "nhs_forms": {"fa": "فرم‌های NHS", "en": "NHS Forms", "uk": "Форми NHS"},
    "student_finance": {
        "fa": "کمک هزینه دانشجویی",
        "en": "Student Finance",
        "uk": "Студентське фінансування",
    },
    "immigration": {
        "fa": "امور مهاجرت",
        "en": "Immigration Affairs",
        "uk": "Імміграційні справи",
    },
    "council_tax": {
        "fa": "کاهش مالیات شورا",
        "en": "Council Tax Reduction",
        "uk": "Зниження муніципального податку",
    },
    "blue_badge": {"fa": "بلو بج", "en": "Blue Badge", "uk": "Синій значок"},
    "dvla_forms": {"fa": "فرم‌های DVLA", "en": "DVLA Forms", "uk": "Форми DVLA"},
    "hmrc_forms": {"fa": "فرم‌های HMRC", "en": "HMRC Forms", "uk": "Форми HMRC"},
    "form_checker": {"fa": "چک‌کردن فرم‌ها", "en": "Form Checker", "uk": "Перевірка форм"},
}

# Modules that are not a questionnaire
TOOL_MODULES = {"form_checker"}


class QuestionBank(LoggerMixin):
    """Repository of form modules loaded from YAML content files."""

    def __init__(self, content_dir: Optional[str] = None):
        self.content_dir = Path(content_dir).expanduser() if content_dir else DEFAULT_CONTENT_DIR
        self._modules: Optional[Dict[str, FormModule]] = None

    @property
    def modules(self) -> Dict[str, FormModule]:
        if self._modules is None:
            self._modules = self._load_all()
        return self._modules

    def get_module(self, module_id: str) -> Optional[FormModule]:
        """Get a questionnaire module by id."""
        return self.modules.get(module_id)

    def module_ids(self) -> List[str]:
        """Questionnaire module ids in display order."""
        known = [module_id for module_id in MODULE_ORDER if module_id in self.modules]
        extra = sorted(set(self.modules) - set(known))
        return known + extra

    def list_modules(self, lang: str = "en") -> List[Dict[str, Any]]:
        """Catalog entries for every module, including tool modules."""
        entries = []
        for module_id in self.module_ids():
            module = self.modules[module_id]
            entries.append(
                {
                    "id": module_id,
                    "name": localized(MODULE_NAMES.get(module_id) or module.title, lang),
                    "questions": len(module.questions),
                    "kind": "questionnaire",
                }
            )
        for module_id in MODULE_ORDER:
            if module_id in TOOL_MODULES:
                entries.append(
                    {
                        "id": module_id,
                        "name": localized(MODULE_NAMES[module_id], lang),
                        "questions": 0,
                        "kind": "tool",
                    }
                )
        return entries

    def _load_all(self) -> Dict[str, FormModule]:
        if not self.content_dir.is_dir():
            raise ContentError(f"Content directory not found: {self.content_dir}")

        modules = {}
        for path in sorted(self.content_dir.glob("*.yaml")):
            module = self.load_module_file(str(path))
            if module.module_id in modules:
                raise ContentError(f"Duplicate module id '{module.module_id}'", str(path))
            modules[module.module_id] = module

        self.logger.debug(f"Loaded {len(modules)} form modules from {self.content_dir}")
        return modules

    def load_module_file(self, path: str) -> FormModule:
        try:
            data = YamlUtils.load_yaml(path)
        except FileSystemError as e:
            raise ContentError(f"Could not load module file {path}", str(e))
        return parse_module(data)


def parse_module(data: Dict[str, Any]) -> FormModule:
    """Build and validate a FormModule from its content table."""
    if not isinstance(data, dict) or not data.get("module_id"):
        raise ContentError("Module content must be a mapping with a 'module_id'")

    module_id = str(data["module_id"])
    raw_questions = data.get("questions") or []
    if not isinstance(raw_questions, list):
        raise ContentError(f"Module '{module_id}': 'questions' must be a list")

    questions = [_parse_question(module_id, raw) for raw in raw_questions]
    module = FormModule(
        module_id=module_id,
        title=data.get("title") or {},
        intro=data.get("intro") or {},
        questions=questions,
    )
    validate_module(module)
    return module


def validate_module(module: FormModule) -> None:
    """Reject duplicate ids and conditions that point forward or at bad values."""
    seen: Dict[str, Question] = {}
    for question in module.questions:
        where = f"Module '{module.module_id}', question '{question.id}'"
        if question.id in seen:
            raise ContentError(f"{where}: duplicate question id")

        for ref, required in question.when.items():
            target = seen.get(ref)
            if target is None:
                raise ContentError(
                    f"{where}: condition refers to '{ref}', which is not an earlier question"
                )
            if target.type in CHOICE_TYPES and required not in target.option_values():
                raise ContentError(
                    f"{where}: condition value '{required}' is not an option of '{ref}'"
                )

        _validate_shape(where, question)
        seen[question.id] = question


def _validate_shape(where: str, question: Question) -> None:
    if question.type in CHOICE_TYPES and not question.options:
        raise ContentError(f"{where}: {question.type.value} question has no options")
    if question.type == QuestionType.GROUP:
        if not question.children:
            raise ContentError(f"{where}: group question has no children")
        child_ids = [child.id for child in question.children]
        if len(child_ids) != len(set(child_ids)):
            raise ContentError(f"{where}: duplicate child ids")
        for child in question.children:
            _validate_shape(f"{where}, field '{child.id}'", child)


def _parse_question(module_id: str, raw: Any) -> Question:
    if not isinstance(raw, dict) or not raw.get("id"):
        raise ContentError(f"Module '{module_id}': every question needs an 'id'")

    question_id = str(raw["id"])
    try:
        kind = QuestionType(raw.get("type"))
    except ValueError:
        raise ContentError(
            f"Module '{module_id}', question '{question_id}': unknown type '{raw.get('type')}'"
        )

    when = raw.get("when") or {}
    if not isinstance(when, dict):
        raise ContentError(
            f"Module '{module_id}', question '{question_id}': 'when' must be a mapping"
        )

    return Question(
        id=question_id,
        type=kind,
        question=raw.get("question") or {},
        description=raw.get("description"),
        placeholder=raw.get("placeholder"),
        options=[
            Option(value=str(option["value"]), label=option.get("label") or {}, tip=option.get("tip"))
            for option in raw.get("options") or []
        ],
        when={str(key): str(value) for key, value in when.items()},
        children=[_parse_question(module_id, child) for child in raw.get("children") or []],
        allow_proof=bool(raw.get("allow_proof", False)),
        proof_hint=raw.get("proof_hint"),
        star_enabled=bool(raw.get("star_enabled", False)),
        book_enabled=bool(raw.get("book_enabled", False)),
    )
