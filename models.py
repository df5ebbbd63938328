from dataclasses import dataclass, asdict, field, replace
from enum import Enum
from typing import Any, Dict, FrozenSet, List, Optional, Tuple, Union


QuestionId = Union[str, int]
CorrectAnswer = Union[int, FrozenSet[int]]


class QuestionType(str, Enum):
    SINGLE = "single"
    MULTIPLE = "multiple"
    BOOLEAN = "boolean"


def _is_index(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


@dataclass(frozen=True)
class Question:
    """A quiz question.

    ``correct_answer`` is an option index for single/boolean questions and a
    frozenset of option indices for multiple-choice ones. It is ``None`` when
    the answer key is not held locally (questions served by the remote source
    never carry it).
    """

    id: QuestionId
    type: QuestionType
    difficulty: int
    category: str
    prompt: str
    options: Tuple[str, ...]
    correct_answer: Optional[CorrectAnswer] = None
    explanation: Optional[str] = None

    def __post_init__(self):
        object.__setattr__(self, "type", QuestionType(self.type))
        object.__setattr__(self, "options", tuple(str(o) for o in self.options))
        if not self.options:
            raise ValueError(f"Question {self.id!r} has no options")
        if self.type is QuestionType.BOOLEAN and len(self.options) != 2:
            raise ValueError(f"Boolean question {self.id!r} must have exactly two options")
        if self.correct_answer is not None:
            object.__setattr__(self, "correct_answer", self._checked_key(self.correct_answer))

    def _checked_key(self, key) -> CorrectAnswer:
        n = len(self.options)
        if self.type is QuestionType.MULTIPLE:
            if _is_index(key) or isinstance(key, (str, bytes)):
                raise ValueError(f"Multiple-choice question {self.id!r} needs a set of answers")
            indices = list(key)
            if not indices:
                raise ValueError(f"Question {self.id!r} has an empty answer key")
            if len(set(indices)) != len(indices):
                raise ValueError(f"Question {self.id!r} has duplicate answer indices")
            for i in indices:
                if not _is_index(i) or not 0 <= i < n:
                    raise ValueError(f"Question {self.id!r}: answer index {i!r} out of range")
            return frozenset(indices)

        if not _is_index(key) or not 0 <= key < n:
            raise ValueError(f"Question {self.id!r}: answer index {key!r} out of range")
        return key

    @property
    def has_answer_key(self) -> bool:
        return self.correct_answer is not None

    def revealed(self, correct_answer, explanation: Optional[str] = None) -> "Question":
        """Copy of the question carrying the answer key returned by the server."""
        if correct_answer is None:
            return self
        if self.type is QuestionType.MULTIPLE and not _is_index(correct_answer):
            correct_answer = frozenset(correct_answer)
        return replace(
            self,
            correct_answer=correct_answer,
            explanation=explanation if explanation is not None else self.explanation,
        )

    def correct_indices(self) -> Tuple[int, ...]:
        if self.correct_answer is None:
            return ()
        if isinstance(self.correct_answer, frozenset):
            return tuple(sorted(self.correct_answer))
        return (self.correct_answer,)

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "Question":
        """Build a question from its wire form (camelCase keys)."""
        if "id" not in d:
            raise ValueError("Question payload has no id")
        prompt = d.get("question", d.get("prompt"))
        if prompt is None:
            raise ValueError(f"Question {d['id']!r} has no prompt text")
        return cls(
            id=d["id"],
            type=QuestionType(d.get("type", QuestionType.SINGLE.value)),
            difficulty=int(d.get("difficulty", 1)),
            category=str(d.get("category", "general")),
            prompt=str(prompt),
            options=tuple(d.get("options") or ()),
            correct_answer=d.get("correctAnswer"),
            explanation=d.get("explanation"),
        )

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "id": self.id,
            "type": self.type.value,
            "difficulty": self.difficulty,
            "category": self.category,
            "question": self.prompt,
            "options": list(self.options),
        }
        if self.correct_answer is not None:
            if isinstance(self.correct_answer, frozenset):
                data["correctAnswer"] = sorted(self.correct_answer)
            else:
                data["correctAnswer"] = self.correct_answer
        if self.explanation is not None:
            data["explanation"] = self.explanation
        return data


@dataclass(frozen=True)
class AnswerRecord:
    question_id: QuestionId
    selected_answers: Tuple[int, ...]
    is_correct: bool
    score: int
    submitted_at: int  # ms since epoch

    def to_dict(self):
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict):
        return cls(
            question_id=data["question_id"],
            selected_answers=tuple(data["selected_answers"]),
            is_correct=bool(data["is_correct"]),
            score=int(data["score"]),
            submitted_at=int(data["submitted_at"]),
        )


@dataclass
class SubmissionResult:
    is_correct: bool
    score: int
    question: Question
    selected_answers: Tuple[int, ...]
    source: str  # "remote" or "local"
    correct_answer: Optional[CorrectAnswer] = None
    explanation: Optional[str] = None


@dataclass
class BreakdownEntry:
    total: int = 0
    answered: int = 0
    correct: int = 0


@dataclass
class QuizStats:
    total_questions: int
    answered_count: int
    correct_count: int
    current_score: int
    current_index: int


@dataclass
class QuestionOutcome:
    index: int
    question: Question
    record: Optional[AnswerRecord]

    @property
    def answered(self) -> bool:
        return self.record is not None


@dataclass
class QuizResult:
    category: str
    total_score: int
    max_score: int
    correct_count: int
    wrong_count: int
    unanswered_count: int
    total_questions: int
    accuracy_rate: int
    total_time: int  # ms
    started_at: int
    ended_at: int
    answers: List[QuestionOutcome] = field(default_factory=list)
    category_stats: Dict[str, BreakdownEntry] = field(default_factory=dict)
    difficulty_stats: Dict[int, BreakdownEntry] = field(default_factory=dict)

    def passed(self, pass_score: int) -> bool:
        return self.total_score >= pass_score

    def summary_dict(self) -> Dict[str, Any]:
        """Flat summary without the per-question breakdown."""
        return {
            "category": self.category,
            "totalScore": self.total_score,
            "maxScore": self.max_score,
            "correctCount": self.correct_count,
            "wrongCount": self.wrong_count,
            "unansweredCount": self.unanswered_count,
            "totalQuestions": self.total_questions,
            "accuracyRate": self.accuracy_rate,
            "totalTime": self.total_time,
            "startTime": self.started_at,
            "endTime": self.ended_at,
        }
