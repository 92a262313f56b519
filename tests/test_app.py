from datetime import timedelta

import pytest
from unittest.mock import patch

from conftest import make_mcq
from secplus_tutor.app import (
    SessionExitRequested, ask_drill_question, ask_exam_question, cmd_exam, cmd_train,
    format_clock, parse_multi_select, run_test_session, run_training_session, session_int_prompt,
    session_prompt,
)
from secplus_tutor.catalogue import Catalogue
from secplus_tutor.config import Settings
from secplus_tutor.db import init_db
from secplus_tutor.models import (
    BankMeta, MultiChoiceQuestion, Option, OrderQuestion, QuestionBank, Zone, ZoneQuestion,
)
from secplus_tutor.progress import get_exam_sessions, get_study_sessions, get_user_progress
from secplus_tutor.questions import QuestionKind, generate_question
from secplus_tutor.results import DrillTally
from secplus_tutor.scoring import score_answer


def test_session_exit_requested_is_exception():
    with pytest.raises(SessionExitRequested):
        raise SessionExitRequested()


def test_session_prompt_raises_on_q():
    with patch("secplus_tutor.app.Prompt.ask", return_value="q"):
        with pytest.raises(SessionExitRequested):
            session_prompt("test prompt")


def test_session_prompt_raises_on_menu():
    with patch("secplus_tutor.app.Prompt.ask", return_value="menu"):
        with pytest.raises(SessionExitRequested):
            session_prompt("test prompt")


def test_session_prompt_returns_normal_input():
    with patch("secplus_tutor.app.Prompt.ask", return_value="hello"):
        result = session_prompt("test prompt")
        assert result == "hello"


def test_session_prompt_allows_exit_words_with_choices():
    with patch("secplus_tutor.app.Prompt.ask", return_value="y") as ask:
        session_prompt("know it?", choices=["y", "n"])
    assert ask.call_args.kwargs["choices"] == ["y", "n", "q", "menu"]


def test_session_int_prompt_raises_on_q():
    with patch("secplus_tutor.app.Prompt.ask", return_value="q"):
        with pytest.raises(SessionExitRequested):
            session_int_prompt("pick", choices=["1", "2", "3", "4"])


def test_session_int_prompt_returns_normal_input():
    with patch("secplus_tutor.app.Prompt.ask", return_value="3"):
        result = session_int_prompt("pick", choices=["1", "2", "3", "4"])
        assert result == 3


def test_format_clock():
    assert format_clock(0) == "00:00"
    assert format_clock(125) == "02:05"
    assert format_clock(-5) == "00:00"


def test_run_training_session_exits_on_q(tmp_db, acronyms):
    """First card swiped right, then 'q' on the second card's reveal prompt."""
    init_db(tmp_db)
    swipes = {}
    with patch("secplus_tutor.app.Prompt.ask", side_effect=["", "y", "q"]):
        with pytest.raises(SessionExitRequested):
            run_training_session(tmp_db, "u1", acronyms[:2], swipes)
    assert swipes == {acronyms[0].id: "right"}
    progress = get_user_progress(tmp_db, "u1")
    assert progress[acronyms[0].id].confidence_swipes == 1
    assert acronyms[1].id not in progress


def test_cmd_train_saves_partial_session(tmp_db, acronyms):
    init_db(tmp_db)
    settings = Settings(_env_file=None, db_path=tmp_db, user_id="u1", training_deck_size=3)
    catalogue = Catalogue(tuple(acronyms))
    with patch("secplus_tutor.app.Prompt.ask", side_effect=["random", "", "y", "", "n", "menu"]):
        cmd_train(tmp_db, settings, catalogue)
    sessions = get_study_sessions(tmp_db, "u1")
    assert len(sessions) == 1
    assert sessions[0]["mode"] == "training-random"
    assert sessions[0]["total_questions"] == 2
    assert sessions[0]["correct_answers"] == 1


def test_ask_drill_question_choice(acronyms, rng):
    q = generate_question(acronyms[0], acronyms, QuestionKind.FULL_NAME, rng)
    with patch("secplus_tutor.app.Prompt.ask", return_value="2"):
        assert ask_drill_question(q) == q.options[1]


def test_ask_drill_question_true_false(acronyms, rng):
    q = generate_question(acronyms[0], acronyms, QuestionKind.TRUE_FALSE, rng)
    with patch("secplus_tutor.app.Prompt.ask", return_value="f"):
        assert ask_drill_question(q) == "false"


def test_ask_drill_question_match_pairs(acronyms, rng):
    q = generate_question(acronyms[0], acronyms, QuestionKind.MATCH_PAIRS, rng)
    rights = sorted(right for _, right in q.pair_items)
    picks = [str(rights.index(right) + 1) for _, right in q.pair_items]
    with patch("secplus_tutor.app.Prompt.ask", side_effect=picks):
        assert ask_drill_question(q) == dict(q.pair_items)


def test_run_test_session_records_answers(tmp_db, acronyms, rng):
    init_db(tmp_db)
    questions = [generate_question(a, acronyms, QuestionKind.FILL_BLANK, rng) for a in acronyms[:2]]
    tally = DrillTally()
    with patch("secplus_tutor.app.Prompt.ask", side_effect=[acronyms[0].id.lower(), "WRONG"]):
        run_test_session(tmp_db, "u1", questions, tally)
    assert tally.correct == 1
    assert tally.missed_ids == [acronyms[1].id]
    progress = get_user_progress(tmp_db, "u1")
    assert progress[acronyms[0].id].streak == 1
    assert progress[acronyms[1].id].times_tested_wrong == 1


def test_ask_exam_question_shapes():
    common = dict(domain=1, subdomain="", topic="", difficulty=1, stem="?")
    msq = MultiChoiceQuestion(
        id="S", options=(Option("A", "a"), Option("B", "b"), Option("C", "c")),
        correct_answers=frozenset({"A", "C"}), **common,
    )
    order = OrderQuestion(id="O", items=(Option("x", "X"), Option("y", "Y")), correct_order=("x", "y"), **common)
    drag = ZoneQuestion(
        id="D", items=(Option("i1", "one"), Option("i2", "two")),
        zones=(Zone("z1", "Z1"), Zone("z2", "Z2")), correct_mapping={"i1": "z1", "i2": "z2"}, **common,
    )
    with patch("secplus_tutor.app.Prompt.ask", return_value="B"):
        assert ask_exam_question(make_mcq("M", 1, 1)) == "B"
    with patch("secplus_tutor.app.Prompt.ask", return_value="c, a"):
        assert ask_exam_question(msq) == ["A", "C"]
    with patch("secplus_tutor.app.Prompt.ask", return_value="y,x"):
        assert ask_exam_question(order) == ["y", "x"]
    with patch("secplus_tutor.app.Prompt.ask", side_effect=["z2", "z2"]):
        assert ask_exam_question(drag) == {"i1": "z2", "i2": "z2"}


def test_parse_multi_select_matches_option_ids_in_any_case():
    common = dict(domain=1, subdomain="", topic="", difficulty=1, stem="?")
    msq = MultiChoiceQuestion(
        id="S", options=(Option("a", "one"), Option("b", "two"), Option("c", "three")),
        correct_answers=frozenset({"a", "c"}), **common,
    )
    assert parse_multi_select("A, C", msq) == ["a", "c"]
    assert parse_multi_select("c,a,,", msq) == ["a", "c"]
    assert parse_multi_select("a, x", msq) == ["a", "x"]
    with patch("secplus_tutor.app.Prompt.ask", return_value="C,A"):
        assert score_answer(msq, ask_exam_question(msq)).correct is True


def test_cmd_exam_saves_result(tmp_db):
    init_db(tmp_db)
    settings = Settings(_env_file=None, db_path=tmp_db, user_id="u1")
    bank = QuestionBank(meta=BankMeta(), questions=(make_mcq("M1", 1, 1),))
    with patch("secplus_tutor.app.Prompt.ask", side_effect=["quick", "A"]):
        cmd_exam(tmp_db, settings, bank)
    exams = get_exam_sessions(tmp_db, "u1")
    assert len(exams) == 1
    assert exams[0]["passed"] is True
    assert exams[0]["answers"][0]["question_id"] == "M1"


def test_cmd_exam_quit_early_scores_answered_only(tmp_db):
    init_db(tmp_db)
    settings = Settings(_env_file=None, db_path=tmp_db, user_id="u1")
    bank = QuestionBank(meta=BankMeta(), questions=(make_mcq("M1", 1, 1), make_mcq("M2", 1, 1)))
    with patch("secplus_tutor.app.Prompt.ask", side_effect=["quick", "B", "q"]):
        cmd_exam(tmp_db, settings, bank)
    exams = get_exam_sessions(tmp_db, "u1")
    assert len(exams[0]["answers"]) == 1
    assert exams[0]["passed"] is False


def test_cmd_exam_ignores_answer_given_after_time_up(tmp_db, now):
    init_db(tmp_db)
    settings = Settings(_env_file=None, db_path=tmp_db, user_id="u1")
    bank = QuestionBank(meta=BankMeta(), questions=(make_mcq("M1", 1, 1),))
    late = now + timedelta(hours=2)
    with patch("secplus_tutor.app.datetime") as clock, \
            patch("secplus_tutor.app.Prompt.ask", side_effect=["quick", "A"]):
        # start, pre-question check, submission, finish
        clock.now.side_effect = [now, now, late, late]
        cmd_exam(tmp_db, settings, bank)
    exams = get_exam_sessions(tmp_db, "u1")
    assert exams[0]["answers"] == []
    assert exams[0]["passed"] is False
    assert exams[0]["time_used_seconds"] == 45 * 60
