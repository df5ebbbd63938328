import sys
from pathlib import Path

# Add project root to Python path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

import random

import pytest

from services.answer_validator import AnswerValidator
from services.question_source import QuestionSource
from services.quiz_engine import QuizEngine
from tests.helpers import FakeClock


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def rng():
    return random.Random(1234)


@pytest.fixture
def build_engine(clock):
    """Factory for a loaded engine over a fixed local question list (keys held)."""

    async def _build(questions, api=None, category="safety", count=10):
        source = QuestionSource(api_client=None, randomize=False, fallback_loader=lambda _: list(questions))
        engine = QuizEngine(
            category,
            question_source=source,
            validator=AnswerValidator(api),
            question_count=count,
            clock=clock,
        )
        await engine.init_quiz()
        return engine

    return _build
