"""Load the acronym catalogue and the exam question bank."""
import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from loguru import logger

from secplus_tutor.models import (
    AcronymEntry, BankMeta, Category, ExamQuestion, MultiChoiceQuestion, Option,
    OrderQuestion, QuestionBank, QuestionFlags, ScoringRules, SingleChoiceQuestion,
    Zone, ZoneQuestion,
)

CONTENT_DIR = Path(__file__).parent / "content"

DOMAINS = (1, 2, 3, 4, 5)
DIFFICULTIES = (1, 2, 3)


class CatalogueError(ValueError):
    """Raised when an acronym or question entry is malformed."""


@dataclass(frozen=True)
class Catalogue:
    acronyms: tuple[AcronymEntry, ...]
    index: dict[str, AcronymEntry] = field(init=False, repr=False, compare=False, hash=False)

    def __post_init__(self):
        object.__setattr__(self, "index", {a.id: a for a in self.acronyms})

    def get(self, acronym_id: str) -> Optional[AcronymEntry]:
        return self.index.get(acronym_id)

    def by_domain(self, domain: int) -> list[AcronymEntry]:
        return [a for a in self.acronyms if a.domain == domain]

    def __len__(self) -> int:
        return len(self.acronyms)


def _require(raw: dict, key: str, where: str):
    if key not in raw:
        raise CatalogueError(f"{where}: missing field '{key}'")
    return raw[key]


def _check_range(value, allowed, name: str, where: str) -> int:
    if value not in allowed:
        raise CatalogueError(f"{where}: {name} must be one of {list(allowed)}, got {value!r}")
    return value


def parse_acronym(raw: dict) -> AcronymEntry:
    where = f"acronym {raw.get('id', '?')}"
    category_raw = _require(raw, "category", where)
    try:
        category = Category(category_raw)
    except ValueError:
        raise CatalogueError(f"{where}: unknown category {category_raw!r}") from None
    return AcronymEntry(
        id=_require(raw, "id", where),
        full_name=_require(raw, "fullName", where),
        domain=_check_range(_require(raw, "domain", where), DOMAINS, "domain", where),
        category=category,
        difficulty=_check_range(_require(raw, "difficulty", where), DIFFICULTIES, "difficulty", where),
        phonetic=raw.get("phonetic", ""),
        mnemonic=raw.get("mnemonic", ""),
        example=raw.get("realWorldExample", raw.get("example", "")),
        exam_tip=raw.get("examTip", ""),
        confused_with=tuple(raw.get("confusedWith") or ()),
    )


def _options(raw_list, where: str) -> tuple[Option, ...]:
    return tuple(Option(id=o["id"], text=o.get("text", o.get("label", ""))) for o in raw_list or [])


def parse_question(raw: dict) -> ExamQuestion:
    """Build the typed question variant for one raw bank entry."""
    where = f"question {raw.get('id', '?')}"
    qtype = _require(raw, "type", where)
    flags_raw = raw.get("flags") or {}
    common = dict(
        id=_require(raw, "id", where),
        domain=_check_range(_require(raw, "domain", where), DOMAINS, "domain", where),
        subdomain=raw.get("subdomain", ""),
        topic=raw.get("topic", ""),
        difficulty=_check_range(_require(raw, "difficulty", where), DIFFICULTIES, "difficulty", where),
        stem=_require(raw, "stem", where),
        explanation=raw.get("explanation", ""),
        flags=QuestionFlags(
            scenario_based=bool(flags_raw.get("scenario_based", False)),
            acronym_focus=bool(flags_raw.get("acronym_focus", False)),
            requires_elimination=bool(flags_raw.get("requires_elimination", False)),
        ),
    )

    if qtype == "mcq":
        options = _options(_require(raw, "options", where), where)
        correct = _require(raw, "correct_answer", where)
        if correct not in {o.id for o in options}:
            raise CatalogueError(f"{where}: correct_answer {correct!r} is not an option")
        return SingleChoiceQuestion(options=options, correct_answer=correct, **common)

    if qtype == "msq":
        options = _options(_require(raw, "options", where), where)
        correct = frozenset(_require(raw, "correct_answers", where))
        if len(correct) < 2:
            raise CatalogueError(f"{where}: multi-select needs at least 2 correct answers")
        if not correct <= {o.id for o in options}:
            raise CatalogueError(f"{where}: correct_answers reference unknown options")
        return MultiChoiceQuestion(options=options, correct_answers=correct, **common)

    if qtype == "pbq_order":
        items = _options(_require(raw, "items", where), where)
        order = tuple(_require(raw, "correct_order", where))
        if sorted(order) != sorted(i.id for i in items):
            raise CatalogueError(f"{where}: correct_order must list every item exactly once")
        return OrderQuestion(items=items, correct_order=order, **common)

    if qtype == "pbq_drag":
        items = _options(_require(raw, "items", where), where)
        zones = tuple(Zone(id=z["id"], label=z.get("label", "")) for z in _require(raw, "zones", where))
        mapping = dict(_require(raw, "correct_mapping", where))
        zone_ids = {z.id for z in zones}
        if set(mapping) != {i.id for i in items} or not set(mapping.values()) <= zone_ids:
            raise CatalogueError(f"{where}: correct_mapping must place every item in a known zone")
        return ZoneQuestion(items=items, zones=zones, correct_mapping=mapping, **common)

    raise CatalogueError(f"{where}: unknown question type {qtype!r}")


def parse_scoring(raw: dict) -> ScoringRules:
    defaults = ScoringRules()
    return ScoringRules(
        mcq_points=raw.get("mcq", {}).get("points", defaults.mcq_points),
        msq_points=raw.get("msq", {}).get("points", defaults.msq_points),
        pbq_order_points=raw.get("pbq_order", {}).get("points", defaults.pbq_order_points),
        pbq_drag_points=raw.get("pbq_drag", {}).get("points", defaults.pbq_drag_points),
    )


def parse_question_bank(data: dict) -> QuestionBank:
    if not isinstance(data, dict) or "questions" not in data:
        raise CatalogueError("question bank must be a mapping with a 'questions' list")
    meta_raw = data.get("meta") or {}
    questions = tuple(parse_question(q) for q in data["questions"])
    seen = set()
    for q in questions:
        if q.id in seen:
            raise CatalogueError(f"question {q.id}: duplicate id")
        seen.add(q.id)
    meta = BankMeta(
        version=str(meta_raw.get("version", "")),
        exam=meta_raw.get("exam", ""),
        total_questions=meta_raw.get("total_questions", len(questions)),
        domain_counts=dict(meta_raw.get("domain_counts") or {}),
        scoring=parse_scoring(meta_raw.get("scoring") or {}),
    )
    return QuestionBank(meta=meta, questions=questions)


def parse_acronyms(data) -> Catalogue:
    entries = data.get("acronyms") if isinstance(data, dict) else data
    if not isinstance(entries, list):
        raise CatalogueError("acronym data must be a list or a mapping with an 'acronyms' list")
    acronyms = tuple(parse_acronym(a) for a in entries)
    ids = [a.id for a in acronyms]
    if len(ids) != len(set(ids)):
        raise CatalogueError("acronym ids must be unique")
    return Catalogue(acronyms=acronyms)


def load_acronyms(path: Optional[Path] = None) -> Catalogue:
    path = path or CONTENT_DIR / "acronyms.json"
    catalogue = parse_acronyms(json.loads(Path(path).read_text()))
    logger.debug(f"Loaded {len(catalogue)} acronyms from {path}")
    return catalogue


def load_question_bank(path: Optional[Path] = None) -> QuestionBank:
    path = path or CONTENT_DIR / "question_bank.json"
    bank = parse_question_bank(json.loads(Path(path).read_text()))
    logger.debug(f"Loaded {len(bank)} exam questions from {path}")
    return bank


def merge_banks(base: QuestionBank, extra: QuestionBank) -> QuestionBank:
    """Combine two banks; questions in extra replace same-id questions in base."""
    merged = dict(base.index)
    merged.update(extra.index)
    return QuestionBank(meta=base.meta, questions=tuple(merged.values()))


def merge_catalogues(base: Catalogue, extra: Catalogue) -> Catalogue:
    merged = dict(base.index)
    merged.update(extra.index)
    return Catalogue(acronyms=tuple(merged.values()))
