import pytest

from models import AnswerRecord, Question, QuestionType
from tests.helpers import make_question


def test_from_dict_wire_format():
    q = Question.from_dict(
        {
            "id": 3,
            "type": "multiple",
            "difficulty": 2,
            "category": "ppe",
            "question": "Pick two",
            "options": ["a", "b", "c"],
            "correctAnswer": [2, 0],
            "explanation": "because",
        }
    )
    assert q.type is QuestionType.MULTIPLE
    assert q.prompt == "Pick two"
    assert q.options == ("a", "b", "c")
    assert q.correct_answer == frozenset({0, 2})
    assert q.correct_indices() == (0, 2)


def test_public_payload_has_no_key():
    q = Question.from_dict({"id": "q1", "type": "single", "question": "?", "options": ["x", "y"]})
    assert not q.has_answer_key
    assert q.correct_indices() == ()
    assert "correctAnswer" not in q.to_dict()


def test_to_dict_sorts_multiple_key():
    q = make_question(type="multiple", correct=[3, 1])
    assert q.to_dict()["correctAnswer"] == [1, 3]
    assert Question.from_dict(q.to_dict()) == q


@pytest.mark.parametrize(
    "kwargs",
    [
        {"options": ()},
        {"type": "multiple", "correct": 1},
        {"type": "multiple", "correct": []},
        {"type": "multiple", "correct": [0, 0]},
        {"type": "single", "correct": 4},
        {"type": "single", "correct": True},
        {"type": "single", "correct": [0]},
    ],
)
def test_invalid_questions_are_rejected(kwargs):
    with pytest.raises(ValueError):
        make_question(**kwargs)


def test_boolean_needs_two_options():
    with pytest.raises(ValueError):
        Question(id=1, type="boolean", difficulty=1, category="c", prompt="?", options=("a", "b", "c"))


def test_unknown_type_is_rejected():
    with pytest.raises(ValueError):
        Question.from_dict({"id": 1, "type": "essay", "question": "?", "options": ["a"]})


def test_revealed_copies_key():
    q = make_question(type="multiple", correct=None, explanation="old")
    revealed = q.revealed([1, 2], "new")

    assert revealed.correct_answer == frozenset({1, 2})
    assert revealed.explanation == "new"
    assert q.correct_answer is None
    assert q.revealed(None) is q


def test_answer_record_round_trip():
    record = AnswerRecord(question_id=4, selected_answers=(2, 0), is_correct=True, score=10, submitted_at=5)
    data = record.to_dict()
    assert data["selected_answers"] == (2, 0)
    assert AnswerRecord.from_dict({**data, "selected_answers": [2, 0]}) == record
