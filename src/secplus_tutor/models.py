"""Data classes for the tutor domain model."""
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Optional, Union


class Category(str, Enum):
    PROTOCOL = "protocol"
    TOOL = "tool"
    ATTACK = "attack"
    CRYPTO = "crypto"
    ACCESS = "access"
    BUSINESS = "business"
    HARDWARE = "hardware"
    STANDARD = "standard"
    ROLE = "role"


class MasteryLevel(str, Enum):
    UNSEEN = "unseen"
    LEARNING = "learning"
    PRACTICING = "practicing"
    CONFIDENT = "confident"
    MASTERED = "mastered"


DOMAIN_NAMES = {
    1: "General Security Concepts",
    2: "Threats, Vulnerabilities & Mitigations",
    3: "Security Architecture",
    4: "Security Operations",
    5: "Security Program Management",
}


@dataclass(frozen=True)
class AcronymEntry:
    id: str
    full_name: str
    domain: int
    category: Category
    difficulty: int
    phonetic: str = ""
    mnemonic: str = ""
    example: str = ""
    exam_tip: str = ""
    confused_with: tuple[str, ...] = ()


@dataclass
class AcronymProgress:
    acronym_id: str
    times_seen_in_training: int = 0
    times_tested_correct: int = 0
    times_tested_wrong: int = 0
    confidence_swipes: int = 0
    practice_swipes: int = 0
    last_seen: Optional[datetime] = None
    last_tested: Optional[datetime] = None
    accuracy_rate: float = 0.0
    weakness_score: float = 0.5
    mastery_level: MasteryLevel = MasteryLevel.UNSEEN
    streak: int = 0

    @classmethod
    def unseen(cls, acronym_id: str) -> "AcronymProgress":
        """Neutral prior for an item the learner has no record for."""
        return cls(acronym_id=acronym_id)

    @property
    def times_tested(self) -> int:
        return self.times_tested_correct + self.times_tested_wrong


# --- Exam question bank ---


@dataclass(frozen=True)
class Option:
    id: str
    text: str


@dataclass(frozen=True)
class Zone:
    id: str
    label: str


@dataclass(frozen=True)
class QuestionFlags:
    scenario_based: bool = False
    acronym_focus: bool = False
    requires_elimination: bool = False


@dataclass(frozen=True)
class SingleChoiceQuestion:
    id: str
    domain: int
    subdomain: str
    topic: str
    difficulty: int
    stem: str
    options: tuple[Option, ...]
    correct_answer: str
    explanation: str = ""
    flags: QuestionFlags = QuestionFlags()
    type: str = field(default="mcq", init=False)


@dataclass(frozen=True)
class MultiChoiceQuestion:
    id: str
    domain: int
    subdomain: str
    topic: str
    difficulty: int
    stem: str
    options: tuple[Option, ...]
    correct_answers: frozenset[str]
    explanation: str = ""
    flags: QuestionFlags = QuestionFlags()
    type: str = field(default="msq", init=False)


@dataclass(frozen=True)
class OrderQuestion:
    id: str
    domain: int
    subdomain: str
    topic: str
    difficulty: int
    stem: str
    items: tuple[Option, ...]
    correct_order: tuple[str, ...]
    explanation: str = ""
    flags: QuestionFlags = QuestionFlags()
    type: str = field(default="pbq_order", init=False)


@dataclass(frozen=True)
class ZoneQuestion:
    id: str
    domain: int
    subdomain: str
    topic: str
    difficulty: int
    stem: str
    items: tuple[Option, ...]
    zones: tuple[Zone, ...]
    correct_mapping: dict[str, str]
    explanation: str = ""
    flags: QuestionFlags = QuestionFlags()
    type: str = field(default="pbq_drag", init=False)

    def __hash__(self):
        return hash((self.type, self.id))


ExamQuestion = Union[SingleChoiceQuestion, MultiChoiceQuestion, OrderQuestion, ZoneQuestion]

PBQ_TYPES = ("pbq_order", "pbq_drag")
CHOICE_TYPES = ("mcq", "msq")


def is_pbq(question: ExamQuestion) -> bool:
    return question.type in PBQ_TYPES


@dataclass(frozen=True)
class ScoringRules:
    """Points possible per question type, from the bank's meta.scoring block."""
    mcq_points: float = 1.0
    msq_points: float = 2.0
    pbq_order_points: float = 3.0
    pbq_drag_points: float = 3.0


@dataclass(frozen=True)
class BankMeta:
    version: str = ""
    exam: str = ""
    total_questions: int = 0
    domain_counts: dict[str, int] = field(default_factory=dict)
    scoring: ScoringRules = ScoringRules()

    def __hash__(self):
        return hash((self.version, self.exam, self.total_questions))


@dataclass(frozen=True)
class QuestionBank:
    meta: BankMeta
    questions: tuple[ExamQuestion, ...]
    index: dict[str, ExamQuestion] = field(init=False, repr=False, compare=False, hash=False)

    def __post_init__(self):
        object.__setattr__(self, "index", {q.id: q for q in self.questions})

    def get(self, question_id: str) -> Optional[ExamQuestion]:
        return self.index.get(question_id)

    def __len__(self) -> int:
        return len(self.questions)


@dataclass
class QuestionHistoryEntry:
    question_id: str
    times_seen: int = 0
    times_correct: int = 0
    times_wrong: int = 0
    last_seen: Optional[datetime] = None


# --- Scoring and sessions ---


@dataclass(frozen=True)
class ScoreResult:
    points_earned: float
    points_possible: float
    correct: bool


Answer = Union[str, list, dict]


@dataclass
class ExamAnswer:
    question_id: str
    type: str
    answer: Answer
    points_earned: float
    points_possible: float
    correct: bool
    domain: int


@dataclass(frozen=True)
class ExamConfig:
    preset: str
    total_questions: int
    time_limit_minutes: int
    domain_quotas: dict[int, int]
    pbq_count: int

    def __hash__(self):
        return hash(self.preset)


@dataclass
class DomainScore:
    domain: int
    earned: float = 0.0
    possible: float = 0.0
    percentage: float = 0.0


@dataclass
class ExamResult:
    total_points_earned: float
    total_points_possible: float
    percentage: float
    passed: bool
    domain_breakdown: dict[int, DomainScore] = field(default_factory=dict)

    def reportable_domains(self) -> list[DomainScore]:
        """Domains that carried points, ordered by domain number."""
        return [
            self.domain_breakdown[d] for d in sorted(self.domain_breakdown)
            if self.domain_breakdown[d].possible > 0
        ]


@dataclass
class ExamSession:
    config: ExamConfig
    questions: list[ExamQuestion]
    started_at: datetime
    answers: list[ExamAnswer] = field(default_factory=list)
    completed_at: Optional[datetime] = None
    time_used_seconds: int = 0
    result: Optional[ExamResult] = None
    ai_summary: Optional[str] = None

    @property
    def finished(self) -> bool:
        return self.completed_at is not None


@dataclass
class Tally:
    correct: int = 0
    total: int = 0


@dataclass
class StudySession:
    mode: str
    started_at: datetime
    total_questions: int
    correct_answers: int
    score: float
    duration_seconds: int
    completed_at: Optional[datetime] = None
    acronyms_missed: list[str] = field(default_factory=list)
    domain_breakdown: dict[int, Tally] = field(default_factory=dict)
    category_breakdown: dict[str, Tally] = field(default_factory=dict)
