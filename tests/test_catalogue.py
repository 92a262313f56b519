"""Tests for catalogue and question bank loading."""
import json
import random

import pytest

from secplus_tutor.catalogue import (
    CatalogueError, load_acronyms, load_question_bank, merge_banks, merge_catalogues,
    parse_acronym, parse_acronyms, parse_question, parse_question_bank,
)
from secplus_tutor.exam import get_preset, select_exam_questions
from secplus_tutor.models import Category, MultiChoiceQuestion, OrderQuestion, ZoneQuestion


def _raw_acronym(**overrides):
    raw = {
        "id": "AES", "fullName": "Advanced Encryption Standard", "domain": 1,
        "category": "crypto", "difficulty": 1, "confusedWith": ["DES"],
        "realWorldExample": "Disk encryption", "examTip": "Symmetric",
    }
    raw.update(overrides)
    return raw


def _raw_mcq(**overrides):
    raw = {
        "id": "Q1", "type": "mcq", "domain": 1, "difficulty": 1, "stem": "Which?",
        "options": [{"id": "A", "text": "a"}, {"id": "B", "text": "b"}],
        "correct_answer": "A", "flags": {"acronym_focus": True},
    }
    raw.update(overrides)
    return raw


def test_parse_acronym():
    entry = parse_acronym(_raw_acronym())
    assert entry.id == "AES"
    assert entry.category == Category.CRYPTO
    assert entry.confused_with == ("DES",)
    assert entry.example == "Disk encryption"
    assert entry.exam_tip == "Symmetric"


@pytest.mark.parametrize("overrides", [
    {"category": "magic"},
    {"domain": 6},
    {"difficulty": 0},
])
def test_parse_acronym_rejects_bad_values(overrides):
    with pytest.raises(CatalogueError):
        parse_acronym(_raw_acronym(**overrides))


def test_parse_acronym_missing_field():
    raw = _raw_acronym()
    del raw["fullName"]
    with pytest.raises(CatalogueError, match="fullName"):
        parse_acronym(raw)


def test_parse_acronyms_rejects_duplicates():
    with pytest.raises(CatalogueError):
        parse_acronyms([_raw_acronym(), _raw_acronym()])


def test_parse_acronyms_accepts_list_or_mapping():
    assert len(parse_acronyms([_raw_acronym()])) == 1
    assert len(parse_acronyms({"acronyms": [_raw_acronym()]})) == 1
    with pytest.raises(CatalogueError):
        parse_acronyms({"items": []})


def test_parse_mcq():
    q = parse_question(_raw_mcq())
    assert q.type == "mcq"
    assert q.flags.acronym_focus is True
    assert [o.id for o in q.options] == ["A", "B"]


def test_parse_mcq_bad_correct_answer():
    with pytest.raises(CatalogueError):
        parse_question(_raw_mcq(correct_answer="Z"))


def test_parse_msq():
    q = parse_question(_raw_mcq(type="msq", correct_answers=["A", "B"]))
    assert isinstance(q, MultiChoiceQuestion)
    assert q.correct_answers == frozenset({"A", "B"})


def test_parse_msq_needs_two_answers():
    with pytest.raises(CatalogueError):
        parse_question(_raw_mcq(type="msq", correct_answers=["A"]))


def test_parse_order():
    q = parse_question({
        "id": "P1", "type": "pbq_order", "domain": 4, "difficulty": 3, "stem": "Order",
        "items": [{"id": "a", "text": "A"}, {"id": "b", "text": "B"}], "correct_order": ["b", "a"],
    })
    assert isinstance(q, OrderQuestion)
    assert q.correct_order == ("b", "a")


def test_parse_order_must_be_permutation():
    with pytest.raises(CatalogueError):
        parse_question({
            "id": "P1", "type": "pbq_order", "domain": 4, "difficulty": 3, "stem": "Order",
            "items": [{"id": "a", "text": "A"}, {"id": "b", "text": "B"}], "correct_order": ["a", "a"],
        })


def test_parse_drag():
    raw = {
        "id": "P2", "type": "pbq_drag", "domain": 2, "difficulty": 2, "stem": "Match",
        "items": [{"id": "i1", "text": "one"}], "zones": [{"id": "z1", "label": "Z"}],
        "correct_mapping": {"i1": "z1"},
    }
    q = parse_question(raw)
    assert isinstance(q, ZoneQuestion)
    raw["correct_mapping"] = {"i1": "nowhere"}
    with pytest.raises(CatalogueError):
        parse_question(raw)


def test_parse_unknown_type():
    with pytest.raises(CatalogueError):
        parse_question(_raw_mcq(type="essay"))


def test_parse_question_bank_scoring_and_duplicates():
    bank = parse_question_bank({
        "meta": {"version": "2", "scoring": {"mcq": {"points": 2}}},
        "questions": [_raw_mcq()],
    })
    assert bank.meta.scoring.mcq_points == 2
    assert bank.meta.scoring.msq_points == 2.0
    assert bank.meta.total_questions == 1
    with pytest.raises(CatalogueError):
        parse_question_bank({"questions": [_raw_mcq(), _raw_mcq()]})


def test_load_shipped_content():
    catalogue = load_acronyms()
    bank = load_question_bank()
    assert len(catalogue) > 40
    assert {a.domain for a in catalogue.acronyms} == {1, 2, 3, 4, 5}
    assert catalogue.get("AES").full_name == "Advanced Encryption Standard"
    assert {q.type for q in bank.questions} == {"mcq", "msq", "pbq_order", "pbq_drag"}
    assert bank.meta.total_questions == len(bank)


def test_shipped_bank_fills_quick_exam():
    bank = load_question_bank()
    config = get_preset("quick")
    assert len(select_exam_questions(bank, config, {}, random.Random(7))) == config.total_questions
    counts = {}
    for q in bank.questions:
        counts[str(q.domain)] = counts.get(str(q.domain), 0) + 1
    assert counts == bank.meta.domain_counts


def test_shipped_confused_pairs_reference_known_ids():
    catalogue = load_acronyms()
    for entry in catalogue.acronyms:
        for other in entry.confused_with:
            assert catalogue.get(other) is not None, f"{entry.id} -> {other}"


def test_load_from_path(tmp_path):
    path = tmp_path / "mine.json"
    path.write_text(json.dumps([_raw_acronym(id="ZZZ")]))
    assert load_acronyms(path).get("ZZZ") is not None


def test_merge_banks_and_catalogues():
    base = parse_question_bank({"questions": [_raw_mcq(), _raw_mcq(id="Q2")]})
    extra = parse_question_bank({"questions": [_raw_mcq(stem="Replaced"), _raw_mcq(id="Q3")]})
    merged = merge_banks(base, extra)
    assert len(merged) == 3
    assert merged.get("Q1").stem == "Replaced"

    cat = merge_catalogues(parse_acronyms([_raw_acronym()]), parse_acronyms([_raw_acronym(id="DES")]))
    assert {a.id for a in cat.acronyms} == {"AES", "DES"}
