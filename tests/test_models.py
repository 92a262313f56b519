"""Tests for data model classes."""
from secplus_tutor.models import (
    AcronymProgress, BankMeta, DomainScore, ExamResult, MasteryLevel, MultiChoiceQuestion,
    Option, OrderQuestion, QuestionBank, ScoringRules, SingleChoiceQuestion, Zone, ZoneQuestion,
    is_pbq,
)


def _mcq(qid="Q1", domain=1):
    return SingleChoiceQuestion(
        id=qid, domain=domain, subdomain="1.1", topic="Topic", difficulty=1, stem="Stem?",
        options=(Option("A", "a"), Option("B", "b")), correct_answer="A",
    )


def test_acronym_progress_unseen_prior():
    p = AcronymProgress.unseen("AES")
    assert p.acronym_id == "AES"
    assert p.weakness_score == 0.5
    assert p.accuracy_rate == 0.0
    assert p.mastery_level == MasteryLevel.UNSEEN
    assert p.streak == 0
    assert p.last_seen is None


def test_acronym_progress_times_tested():
    p = AcronymProgress("AES", times_tested_correct=3, times_tested_wrong=2)
    assert p.times_tested == 5


def test_question_type_tags():
    assert _mcq().type == "mcq"
    msq = MultiChoiceQuestion(
        id="Q2", domain=1, subdomain="", topic="", difficulty=1, stem="",
        options=(Option("A", "a"), Option("B", "b")), correct_answers=frozenset({"A", "B"}),
    )
    order = OrderQuestion(
        id="Q3", domain=1, subdomain="", topic="", difficulty=1, stem="",
        items=(Option("x", "x"),), correct_order=("x",),
    )
    drag = ZoneQuestion(
        id="Q4", domain=1, subdomain="", topic="", difficulty=1, stem="",
        items=(Option("x", "x"),), zones=(Zone("z", "Z"),), correct_mapping={"x": "z"},
    )
    assert msq.type == "msq"
    assert order.type == "pbq_order"
    assert drag.type == "pbq_drag"
    assert not is_pbq(_mcq())
    assert not is_pbq(msq)
    assert is_pbq(order)
    assert is_pbq(drag)
    assert hash(drag) == hash(drag)


def test_scoring_rules_defaults():
    rules = ScoringRules()
    assert rules.mcq_points == 1.0
    assert rules.msq_points == 2.0
    assert rules.pbq_order_points == 3.0
    assert rules.pbq_drag_points == 3.0


def test_question_bank_index():
    bank = QuestionBank(meta=BankMeta(), questions=(_mcq("Q1"), _mcq("Q2", domain=3)))
    assert len(bank) == 2
    assert bank.get("Q2").domain == 3
    assert bank.get("missing") is None


def test_exam_result_reportable_domains_skip_empty():
    result = ExamResult(
        total_points_earned=1, total_points_possible=2, percentage=50.0, passed=False,
        domain_breakdown={
            4: DomainScore(4, 1, 2, 50.0),
            2: DomainScore(2, 0, 0, 0.0),
            1: DomainScore(1, 0, 0, 0.0),
        },
    )
    assert [d.domain for d in result.reportable_domains()] == [4]
