from models import AnswerRecord, BreakdownEntry
from tests.helpers import make_question
from utils.statistics import (
    accuracy_rate,
    build_result,
    category_breakdown,
    difficulty_breakdown,
    progress_percentage,
    total_score,
)


def record(qid, correct, score):
    return AnswerRecord(question_id=qid, selected_answers=(0,), is_correct=correct, score=score, submitted_at=0)


QUESTIONS = [
    make_question(id=1, category="ppe", difficulty=1),
    make_question(id=2, category="ppe", difficulty=2),
    make_question(id=3, category="electrical", difficulty=2),
]
RECORDS = [record(1, True, 33), record(2, False, 0), None]


def test_totals_are_sums_of_records():
    assert total_score(RECORDS) == 33
    assert total_score([None, None]) == 0


def test_progress_and_accuracy_round_half_up():
    assert progress_percentage(3, RECORDS) == 67
    assert progress_percentage(8, [record(1, True, 13)]) == 13
    assert progress_percentage(0, []) == 0
    assert accuracy_rate(8, 1) == 13
    assert accuracy_rate(0, 0) == 0


def test_breakdowns_count_unanswered():
    assert category_breakdown(QUESTIONS, RECORDS) == {
        "ppe": BreakdownEntry(total=2, answered=2, correct=1),
        "electrical": BreakdownEntry(total=1, answered=0, correct=0),
    }
    assert difficulty_breakdown(QUESTIONS, RECORDS) == {
        1: BreakdownEntry(total=1, answered=1, correct=1),
        2: BreakdownEntry(total=2, answered=1, correct=0),
    }


def test_build_result_counts_unanswered_as_wrong():
    result = build_result("safety", QUESTIONS, RECORDS, started_at=1_000, ended_at=91_000)

    assert result.total_score == 33
    assert result.max_score == 99
    assert result.correct_count == 1
    assert result.wrong_count == 2
    assert result.unanswered_count == 1
    assert result.accuracy_rate == 33
    assert result.total_time == 90_000
    assert [o.answered for o in result.answers] == [True, True, False]
    assert not result.passed(90)
    assert result.summary_dict()["endTime"] == 91_000


def test_build_result_empty_session():
    result = build_result("safety", [], [], started_at=5, ended_at=5)
    assert result.total_questions == 0
    assert result.accuracy_rate == 0
    assert result.max_score == 0
