"""Derived session figures, always recomputed from the committed records."""
from typing import Callable, Dict, Hashable, List, Optional, Sequence

from models import AnswerRecord, BreakdownEntry, Question, QuestionOutcome, QuizResult
from utils.scoring import max_score, round_half_up

Records = Sequence[Optional[AnswerRecord]]


def answered_count(records: Records) -> int:
    return sum(1 for r in records if r is not None)


def correct_count(records: Records) -> int:
    return sum(1 for r in records if r is not None and r.is_correct)


def total_score(records: Records) -> int:
    return sum(r.score for r in records if r is not None)


def progress_fraction(total_questions: int, records: Records) -> float:
    if total_questions <= 0:
        return 0.0
    return answered_count(records) / total_questions


def progress_percentage(total_questions: int, records: Records) -> int:
    return round_half_up(progress_fraction(total_questions, records) * 100)


def accuracy_rate(total_questions: int, correct: int) -> int:
    if total_questions <= 0:
        return 0
    return round_half_up(correct / total_questions * 100)


def _breakdown(
    questions: Sequence[Question],
    records: Records,
    key: Callable[[Question], Hashable],
) -> Dict:
    stats: Dict = {}
    for index, question in enumerate(questions):
        entry = stats.setdefault(key(question), BreakdownEntry())
        entry.total += 1
        record = records[index] if index < len(records) else None
        if record is not None:
            entry.answered += 1
            if record.is_correct:
                entry.correct += 1
    return stats


def category_breakdown(questions: Sequence[Question], records: Records) -> Dict[str, BreakdownEntry]:
    return _breakdown(questions, records, lambda q: q.category)


def difficulty_breakdown(questions: Sequence[Question], records: Records) -> Dict[int, BreakdownEntry]:
    return _breakdown(questions, records, lambda q: q.difficulty)


def build_result(
    category: str,
    questions: Sequence[Question],
    records: Records,
    started_at: int,
    ended_at: int,
) -> QuizResult:
    """Final summary.

    Unanswered questions are counted as wrong: wrong = total - correct.
    ``unanswered_count`` is reported separately so callers can tell them apart.
    """
    total = len(questions)
    correct = correct_count(records)
    answers: List[QuestionOutcome] = [
        QuestionOutcome(index=i, question=q, record=records[i] if i < len(records) else None)
        for i, q in enumerate(questions)
    ]
    return QuizResult(
        category=category,
        total_score=total_score(records),
        max_score=max_score(total),
        correct_count=correct,
        wrong_count=total - correct,
        unanswered_count=total - answered_count(records),
        total_questions=total,
        accuracy_rate=accuracy_rate(total, correct),
        total_time=ended_at - started_at,
        started_at=started_at,
        ended_at=ended_at,
        answers=answers,
        category_stats=category_breakdown(questions, records),
        difficulty_stats=difficulty_breakdown(questions, records),
    )
