import logging
import random
from dataclasses import dataclass
from typing import Callable, List, Optional

from models import Question
from services.quiz_api import QuizApiClient, QuizApiError
from utils.fallback_questions import get_fallback_questions
from utils.question_selection import select_questions

logger = logging.getLogger(__name__)


class QuestionLoadError(Exception):
    """Neither the remote service nor the embedded bank produced questions."""


@dataclass
class LoadedQuestions:
    questions: List[Question]
    source: str  # "remote" or "fallback"


class QuestionSource:
    """Remote-first question loader with an embedded fallback bank."""

    def __init__(
        self,
        api_client: Optional[QuizApiClient] = None,
        randomize: bool = True,
        fallback_loader: Callable[[str], List[Question]] = get_fallback_questions,
        rng: Optional[random.Random] = None,
    ):
        self.api_client = api_client
        self.randomize = randomize
        self.fallback_loader = fallback_loader
        self.rng = rng

    async def load(self, category: str, count: int) -> LoadedQuestions:
        if self.api_client is not None:
            try:
                questions = await self._load_remote(category, count)
                logger.info(f"Loaded {len(questions)} questions for '{category}' from the quiz service")
                return LoadedQuestions(questions, "remote")
            except (QuizApiError, ValueError, TypeError, KeyError) as e:
                logger.warning(f"Question service unavailable for '{category}', using embedded bank: {e}")

        questions = select_questions(self.fallback_loader(category), count, self.randomize, self.rng)
        if not questions:
            raise QuestionLoadError(f"No questions available for category '{category}'")
        logger.info(f"Loaded {len(questions)} fallback questions for '{category}'")
        return LoadedQuestions(questions, "fallback")

    async def _load_remote(self, category: str, count: int) -> List[Question]:
        payload = await self.api_client.fetch_questions(category, count, self.randomize)
        questions = [Question.from_dict(item) for item in payload]
        if not questions:
            raise QuizApiError(f"Quiz service returned no questions for '{category}'")
        # The server already shuffled; only the cap is enforced here.
        return select_questions(questions, count, randomize=False)
