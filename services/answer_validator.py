import logging
from dataclasses import dataclass
from typing import Any, Optional, Sequence, Union

from models import CorrectAnswer, Question
from services.quiz_api import QuizApiClient, QuizApiError
from utils.scoring import is_answer_correct

logger = logging.getLogger(__name__)


class ValidationUnavailableError(Exception):
    """Remote validation failed and the answer key is not held locally.

    Transient: nothing was recorded, the same submission can be retried.
    """


@dataclass(frozen=True)
class Verdict:
    is_correct: bool
    source: str  # "remote" or "local"
    correct_answer: Optional[CorrectAnswer] = None
    explanation: Optional[str] = None


@dataclass(frozen=True)
class ValidationFailure:
    reason: str


ValidationStep = Union[Verdict, ValidationFailure]


def _parse_key(question: Question, raw: Any) -> Optional[CorrectAnswer]:
    if raw is None:
        return None
    try:
        return question.revealed(raw).correct_answer
    except (ValueError, TypeError):
        logger.warning(f"Ignoring malformed answer key for question {question.id!r}: {raw!r}")
        return None


class AnswerValidator:
    """Remote-first answer checking with a local fallback.

    Each step returns either a Verdict or a ValidationFailure, so both can be
    exercised on their own.
    """

    def __init__(self, api_client: Optional[QuizApiClient] = None):
        self.api_client = api_client

    async def validate_remote(
        self, question: Question, selected: Sequence[int], category: str
    ) -> ValidationStep:
        if self.api_client is None:
            return ValidationFailure("no quiz service configured")
        try:
            data = await self.api_client.validate_answer(question.id, selected, category)
        except QuizApiError as e:
            return ValidationFailure(str(e))
        return Verdict(
            is_correct=data["isCorrect"],
            source="remote",
            correct_answer=_parse_key(question, data.get("correctAnswer")),
            explanation=data.get("explanation"),
        )

    def validate_local(self, question: Question, selected: Sequence[int]) -> ValidationStep:
        if not question.has_answer_key:
            return ValidationFailure(f"answer key for question {question.id!r} is not held locally")
        return Verdict(
            is_correct=is_answer_correct(question, selected),
            source="local",
            correct_answer=question.correct_answer,
            explanation=question.explanation,
        )

    async def validate(self, question: Question, selected: Sequence[int], category: str) -> Verdict:
        remote = await self.validate_remote(question, selected, category)
        if isinstance(remote, Verdict):
            return remote

        logger.warning(f"Remote validation failed for question {question.id!r}, checking locally: {remote.reason}")
        local = self.validate_local(question, selected)
        if isinstance(local, Verdict):
            return local

        logger.error(f"Cannot validate question {question.id!r}: {local.reason}")
        raise ValidationUnavailableError(
            f"Could not validate question {question.id!r}: {remote.reason}; {local.reason}"
        )
