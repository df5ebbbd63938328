import math
from typing import Iterable, Tuple

from models import Question, QuestionType


def round_half_up(value: float) -> int:
    """Round like JavaScript's Math.round (12.5 -> 13), not banker's rounding."""
    return int(math.floor(value + 0.5))


def score_per_question(total_questions: int) -> int:
    """Equal share of a 100-point scale, rounded per question.

    The per-question rounding means n * share may not add up to exactly 100
    (7 questions -> 14 each -> 98 max).
    """
    if total_questions <= 0:
        return 0
    return round_half_up(100 / total_questions)


def calculate_score(total_questions: int, is_correct: bool) -> int:
    if not is_correct:
        return 0
    return score_per_question(total_questions)


def max_score(total_questions: int) -> int:
    return total_questions * score_per_question(total_questions)


def normalize_selection(selected: Iterable) -> Tuple[int, ...]:
    """Ordered, de-duplicated option indices as submitted."""
    result = []
    for value in selected:
        if isinstance(value, bool) or not isinstance(value, int):
            raise ValueError(f"Option index must be an integer, got {value!r}")
        if value not in result:
            result.append(value)
    return tuple(result)


def is_answer_correct(question: Question, selected: Iterable[int]) -> bool:
    """Local equality rule.

    multiple: same cardinality and every key index present, order ignored.
    single/boolean: exactly one distinct selection equal to the key, so a
    repeated index ([1, 1]) counts once.
    """
    if question.correct_answer is None:
        raise ValueError(f"Question {question.id!r} holds no answer key")

    selection = normalize_selection(selected)
    if question.type is QuestionType.MULTIPLE:
        key = question.correct_answer
        if len(selection) != len(key):
            return False
        return all(answer in selection for answer in key)

    return len(selection) == 1 and selection[0] == question.correct_answer
