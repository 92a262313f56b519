import random
from datetime import datetime

import pytest

from secplus_tutor.models import (
    AcronymEntry, BankMeta, Category, Option, OrderQuestion, QuestionBank, SingleChoiceQuestion,
)


@pytest.fixture
def tmp_db(tmp_path):
    """Provide a temporary SQLite database path for tests."""
    db_path = str(tmp_path / "test_tutor.db")
    return db_path


@pytest.fixture
def rng():
    return random.Random(1234)


@pytest.fixture
def now():
    return datetime(2026, 3, 1, 9, 0, 0)


def make_acronym(acronym_id, full_name="Full Name", domain=1, category=Category.PROTOCOL,
                 difficulty=1, confused_with=()):
    return AcronymEntry(
        id=acronym_id, full_name=full_name, domain=domain, category=category,
        difficulty=difficulty, confused_with=tuple(confused_with),
    )


@pytest.fixture
def acronyms():
    """A small catalogue covering every domain with a couple of confusable pairs."""
    return [
        make_acronym("AES", "Advanced Encryption Standard", 1, Category.CRYPTO, 1, ["DES"]),
        make_acronym("DES", "Data Encryption Standard", 1, Category.CRYPTO, 2, ["AES"]),
        make_acronym("RSA", "Rivest Shamir Adleman", 1, Category.CRYPTO, 2),
        make_acronym("XSS", "Cross-Site Scripting", 2, Category.ATTACK, 1, ["CSRF"]),
        make_acronym("CSRF", "Cross-Site Request Forgery", 2, Category.ATTACK, 2, ["XSS"]),
        make_acronym("VPN", "Virtual Private Network", 3, Category.PROTOCOL, 1),
        make_acronym("VLAN", "Virtual Local Area Network", 3, Category.PROTOCOL, 1),
        make_acronym("IDS", "Intrusion Detection System", 4, Category.TOOL, 1, ["IPS"]),
        make_acronym("IPS", "Intrusion Prevention System", 4, Category.TOOL, 1, ["IDS"]),
        make_acronym("SIEM", "Security Information and Event Management", 4, Category.TOOL, 2),
        make_acronym("RTO", "Recovery Time Objective", 5, Category.BUSINESS, 2, ["RPO"]),
        make_acronym("RPO", "Recovery Point Objective", 5, Category.BUSINESS, 2, ["RTO"]),
    ]


OPTIONS = (Option("A", "a"), Option("B", "b"), Option("C", "c"), Option("D", "d"))


def make_mcq(qid, domain, difficulty):
    return SingleChoiceQuestion(
        id=qid, domain=domain, subdomain=f"{domain}.1", topic="t", difficulty=difficulty,
        stem="?", options=OPTIONS, correct_answer="A",
    )


def make_pbq(qid, domain):
    return OrderQuestion(
        id=qid, domain=domain, subdomain=f"{domain}.2", topic="t", difficulty=2, stem="?",
        items=(Option("x", "x"), Option("y", "y"), Option("z", "z")), correct_order=("x", "y", "z"),
    )


def make_bank(per_tier=12, pbqs_per_domain=3, domains=(1, 2, 3, 4, 5)):
    """Synthetic bank with per_tier choice questions per domain and difficulty."""
    questions = []
    for d in domains:
        for difficulty in (1, 2, 3):
            questions += [make_mcq(f"D{d}-L{difficulty}-{i}", d, difficulty) for i in range(per_tier)]
        questions += [make_pbq(f"D{d}-P{i}", d) for i in range(pbqs_per_domain)]
    return QuestionBank(meta=BankMeta(), questions=tuple(questions))
