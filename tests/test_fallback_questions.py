import random

import pytest

from models import QuestionType
from utils.fallback_questions import fallback_categories, get_fallback_questions
from utils.question_selection import select_questions


@pytest.mark.parametrize("category", fallback_categories())
def test_embedded_questions_are_valid_and_keyed(category):
    questions = get_fallback_questions(category)
    assert questions
    assert all(q.has_answer_key for q in questions)
    ids = [q.id for q in questions]
    assert len(ids) == len(set(ids))


def test_banks_cover_every_question_type():
    types = {q.type for c in fallback_categories() for q in get_fallback_questions(c)}
    assert types == {QuestionType.SINGLE, QuestionType.MULTIPLE, QuestionType.BOOLEAN}


def test_unknown_category_is_empty():
    assert get_fallback_questions("forklifts") == []


def test_select_questions_does_not_reorder_input():
    pool = get_fallback_questions("safety")
    before = list(pool)

    picked = select_questions(pool, 5, randomize=True, rng=random.Random(42))

    assert pool == before
    assert len(picked) == 5
    assert len({q.id for q in picked}) == 5


def test_select_questions_edges():
    pool = get_fallback_questions("violation")
    assert select_questions(pool, 0, randomize=False) == []
    assert select_questions([], 5, randomize=True) == []
    assert select_questions(pool, 50, randomize=False) == pool
