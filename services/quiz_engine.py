import logging
import time
from enum import Enum
from typing import Any, Dict, Iterable, List, Optional, Set, Tuple

from config import Config
from models import AnswerRecord, Question, QuestionOutcome, QuizResult, QuizStats, SubmissionResult
from services.answer_validator import AnswerValidator
from services.question_source import QuestionSource
from utils import statistics
from utils.scoring import calculate_score, normalize_selection

logger = logging.getLogger(__name__)


class SessionState(str, Enum):
    UNINITIALIZED = "uninitialized"
    LOADED = "loaded"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"


class QuizError(Exception):
    """Base class for rejected quiz operations."""


class QuizStateError(QuizError):
    """The operation is not allowed in the session's current state."""


class ResubmissionError(QuizError):
    """The question already has (or is awaiting) a committed answer."""


class EmptySelectionError(QuizError):
    """A submission was made with no option selected."""


class InvalidSelectionError(QuizError):
    """A selection contained something other than option indices."""


def _now_ms() -> int:
    return int(time.time() * 1000)


class QuizEngine:
    """One quiz attempt: question set, navigation, drafts, committed answers and score.

    Answers are write-once. The only way to clear a committed answer is
    reset_to_question(), which drops every answer from that index onward and
    recomputes the total from what is left.
    """

    def __init__(
        self,
        category: str,
        question_source: Optional[QuestionSource] = None,
        validator: Optional[AnswerValidator] = None,
        question_count: Optional[int] = None,
        clock=_now_ms,
    ):
        self.category = category
        self.question_source = question_source
        self.validator = validator or AnswerValidator()
        self.question_count = min(question_count or Config.QUESTIONS_PER_QUIZ, Config.MAX_QUESTIONS_PER_QUIZ)
        self._clock = clock

        self._state = SessionState.UNINITIALIZED
        self._questions: List[Question] = []
        self._current_index = 0
        self._drafts: Dict[int, Tuple[int, ...]] = {}
        self._records: List[Optional[AnswerRecord]] = []
        self._total_score = 0
        self._in_flight: Set[int] = set()
        self.loaded_from: Optional[str] = None
        self.started_at: Optional[int] = None
        self.ended_at: Optional[int] = None

    # ---- state -----------------------------------------------------------

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def current_index(self) -> int:
        return self._current_index

    @property
    def total_questions(self) -> int:
        return len(self._questions)

    @property
    def total_score(self) -> int:
        return self._total_score

    @property
    def questions(self) -> Tuple[Question, ...]:
        return tuple(self._questions)

    def _require_loaded(self):
        if self._state is SessionState.UNINITIALIZED:
            raise QuizStateError("Quiz has not been initialised")

    def _require_open(self):
        self._require_loaded()
        if self._state is SessionState.COMPLETED:
            raise QuizStateError("Quiz is already completed")

    def _touch(self):
        if self._state is SessionState.LOADED:
            self._state = SessionState.IN_PROGRESS

    def _normalize(self, selected: Iterable) -> Tuple[int, ...]:
        try:
            return normalize_selection(selected)
        except (TypeError, ValueError) as e:
            raise InvalidSelectionError(str(e)) from e

    # ---- loading ---------------------------------------------------------

    async def init_quiz(self):
        """Load the question set. Allowed exactly once per session."""
        if self._state is not SessionState.UNINITIALIZED:
            raise QuizStateError("Quiz is already initialised")
        if self.question_source is None:
            raise QuizStateError("No question source configured")

        logger.info(f"Initialising '{self.category}' quiz")
        loaded = await self.question_source.load(self.category, self.question_count)

        self._questions = list(loaded.questions)
        self._records = [None] * len(self._questions)
        self._drafts = {}
        self._current_index = 0
        self._total_score = 0
        self.loaded_from = loaded.source
        self.started_at = self._clock()
        self.ended_at = None
        self._state = SessionState.LOADED
        logger.info(
            f"Quiz '{self.category}' ready: {len(self._questions)} questions ({loaded.source})"
        )

    # ---- navigation ------------------------------------------------------

    def current_question(self) -> Optional[Question]:
        if 0 <= self._current_index < len(self._questions):
            return self._questions[self._current_index]
        return None

    def go_to_previous(self) -> bool:
        self._require_loaded()
        self._touch()
        if self._current_index > 0:
            self._current_index -= 1
            return True
        return False

    def go_to_next(self) -> bool:
        self._require_loaded()
        self._touch()
        if self._current_index < len(self._questions) - 1:
            self._current_index += 1
            return True
        return False

    def go_to_question(self, index: int) -> bool:
        self._require_loaded()
        self._touch()
        if 0 <= index < len(self._questions):
            self._current_index = index
            return True
        return False

    # ---- drafts ----------------------------------------------------------

    def save_draft(self, selected: Iterable[int]) -> bool:
        """Store the tentative selection for the current question.

        Returns False (and changes nothing) once the question is submitted.
        An empty selection clears the draft.
        """
        self._require_open()
        index = self._current_index
        if self.is_submitted(index):
            return False
        selection = self._normalize(selected)
        if selection:
            self._drafts[index] = selection
        else:
            self._drafts.pop(index, None)
        logger.debug(f"Draft for question {index + 1}: {selection}")
        return True

    def get_draft(self, index: Optional[int] = None) -> Tuple[int, ...]:
        index = self._current_index if index is None else index
        return self._drafts.get(index, ())

    # ---- submission ------------------------------------------------------

    async def submit_answer(self, selected: Iterable[int]) -> SubmissionResult:
        self._require_open()
        question = self.current_question()
        if question is None:
            raise QuizStateError("No current question")

        index = self._current_index
        if self._records[index] is not None or index in self._in_flight:
            raise ResubmissionError(f"Question {index + 1} has already been answered")

        selection = self._normalize(selected)
        if not selection:
            raise EmptySelectionError("Select at least one option before submitting")

        self._touch()
        self._in_flight.add(index)
        try:
            verdict = await self.validator.validate(question, selection, self.category)
        finally:
            self._in_flight.discard(index)

        if self._state is SessionState.COMPLETED:
            raise QuizStateError("Quiz was completed while the answer was being validated")

        score = calculate_score(len(self._questions), verdict.is_correct)
        record = AnswerRecord(
            question_id=question.id,
            selected_answers=selection,
            is_correct=verdict.is_correct,
            score=score,
            submitted_at=self._clock(),
        )
        self._records[index] = record
        self._total_score += score
        self._drafts.pop(index, None)

        if verdict.correct_answer is not None and not question.has_answer_key:
            question = question.revealed(verdict.correct_answer, verdict.explanation)
            self._questions[index] = question

        logger.info(
            f"Question {index + 1}/{len(self._questions)} (id={question.id}) answered: "
            f"selected={list(selection)}, correct={verdict.is_correct}, score={score}, "
            f"source={verdict.source}, total={self._total_score}"
        )

        return SubmissionResult(
            is_correct=verdict.is_correct,
            score=score,
            question=question,
            selected_answers=selection,
            source=verdict.source,
            correct_answer=verdict.correct_answer,
            explanation=verdict.explanation if verdict.explanation is not None else question.explanation,
        )

    def is_submitted(self, index: Optional[int] = None) -> bool:
        index = self._current_index if index is None else index
        return 0 <= index < len(self._records) and self._records[index] is not None

    def get_answer(self, index: Optional[int] = None) -> Optional[AnswerRecord]:
        index = self._current_index if index is None else index
        if 0 <= index < len(self._records):
            return self._records[index]
        return None

    def reset_to_question(self, index: int) -> bool:
        """Drop committed answers from ``index`` onward and move there."""
        self._require_open()
        if not 0 <= index < len(self._questions):
            return False
        pending = sorted(i for i in self._in_flight if i >= index)
        if pending:
            raise QuizStateError(
                f"Cannot reset to question {index + 1}: question {pending[0] + 1} is still being validated"
            )
        self._current_index = index
        for i in range(index, len(self._records)):
            self._records[i] = None
        self._recalculate_score()
        logger.info(f"Quiz reset to question {index + 1}, score recalculated: {self._total_score}")
        return True

    def _recalculate_score(self):
        self._total_score = statistics.total_score(self._records)

    # ---- statistics ------------------------------------------------------

    def progress(self) -> float:
        return statistics.progress_fraction(len(self._questions), self._records)

    def progress_percentage(self) -> int:
        return statistics.progress_percentage(len(self._questions), self._records)

    def is_quiz_complete(self) -> bool:
        return bool(self._questions) and all(r is not None for r in self._records)

    def get_quiz_stats(self) -> QuizStats:
        return QuizStats(
            total_questions=len(self._questions),
            answered_count=statistics.answered_count(self._records),
            correct_count=statistics.correct_count(self._records),
            current_score=self._total_score,
            current_index=self._current_index,
        )

    def get_quiz_result(self) -> QuizResult:
        """Finalise the session and summarise it.

        The first call stamps ``ended_at``; later calls recompute the same
        summary without moving it.
        """
        self._require_loaded()
        if self.ended_at is None:
            self.ended_at = self._clock()
            self._state = SessionState.COMPLETED
        result = statistics.build_result(
            self.category, self._questions, self._records, self.started_at, self.ended_at
        )
        logger.info(
            f"Quiz '{self.category}' finished: score={result.total_score}/{result.max_score}, "
            f"correct={result.correct_count}/{result.total_questions}, "
            f"unanswered={result.unanswered_count}, time={result.total_time}ms"
        )
        return result

    def _outcomes(self, is_correct: bool) -> List[QuestionOutcome]:
        return [
            QuestionOutcome(index=i, question=self._questions[i], record=r)
            for i, r in enumerate(self._records)
            if r is not None and r.is_correct is is_correct
        ]

    def wrong_answers(self) -> List[QuestionOutcome]:
        return self._outcomes(False)

    def correct_answers(self) -> List[QuestionOutcome]:
        return self._outcomes(True)

    # ---- persistence -----------------------------------------------------

    def to_dict(self) -> Dict[str, Any]:
        return {
            "category": self.category,
            "question_count": self.question_count,
            "state": self._state.value,
            "loaded_from": self.loaded_from,
            "questions": [q.to_dict() for q in self._questions],
            "current_index": self._current_index,
            "drafts": {str(i): list(sel) for i, sel in self._drafts.items()},
            "records": [r.to_dict() if r is not None else None for r in self._records],
            "total_score": self._total_score,
            "started_at": self.started_at,
            "ended_at": self.ended_at,
        }

    @classmethod
    def from_dict(
        cls,
        data: Dict[str, Any],
        question_source: Optional[QuestionSource] = None,
        validator: Optional[AnswerValidator] = None,
        clock=_now_ms,
    ) -> "QuizEngine":
        engine = cls(
            category=data["category"],
            question_source=question_source,
            validator=validator,
            question_count=data.get("question_count"),
            clock=clock,
        )
        engine._state = SessionState(data.get("state", SessionState.UNINITIALIZED.value))
        engine.loaded_from = data.get("loaded_from")
        engine._questions = [Question.from_dict(q) for q in data.get("questions", [])]
        engine._records = [
            AnswerRecord.from_dict(r) if r is not None else None for r in data.get("records", [])
        ]
        engine._records += [None] * (len(engine._questions) - len(engine._records))
        engine._current_index = int(data.get("current_index", 0))
        engine._drafts = {int(i): tuple(sel) for i, sel in data.get("drafts", {}).items()}
        engine.started_at = data.get("started_at")
        engine.ended_at = data.get("ended_at")
        # Never trust a stored total: it is always the sum of the records.
        engine._recalculate_score()
        return engine
