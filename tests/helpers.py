from models import Question
from services.quiz_api import QuizApiError
from utils.scoring import is_answer_correct


def make_question(
    id=1,
    type="single",
    options=("A", "B", "C", "D"),
    correct=0,
    category="basic_safety",
    difficulty=1,
    explanation=None,
) -> Question:
    if type == "boolean" and len(options) != 2:
        options = ("True", "False")
    return Question(
        id=id,
        type=type,
        difficulty=difficulty,
        category=category,
        prompt=f"Question {id}",
        options=options,
        correct_answer=correct,
        explanation=explanation,
    )


def make_questions(n, **kwargs):
    return [make_question(id=i + 1, **kwargs) for i in range(n)]


class FakeClock:
    def __init__(self, start=1_700_000_000_000):
        self.now = start

    def advance(self, ms):
        self.now += ms

    def __call__(self):
        return self.now


class FakeQuizApi:
    """In-memory stand-in for QuizApiClient backed by a keyed question bank."""

    def __init__(self, bank=None, fail_questions=False, fail_validation=False):
        self.bank = {q.id: q for q in (bank or [])}
        self.fail_questions = fail_questions
        self.fail_validation = fail_validation
        self.fetch_calls = []
        self.validate_calls = []
        self.events = []

    async def fetch_questions(self, category, count, randomize=True):
        self.fetch_calls.append((category, count, randomize))
        if self.fail_questions:
            raise QuizApiError("service unavailable", 503)
        public = []
        for q in self.bank.values():
            data = q.to_dict()
            data.pop("correctAnswer", None)
            data.pop("explanation", None)
            public.append(data)
        return public

    async def validate_answer(self, question_id, selected_answers, category):
        self.validate_calls.append((question_id, tuple(selected_answers), category))
        if self.fail_validation:
            raise QuizApiError("timed out")
        question = self.bank[question_id]
        return {
            "success": True,
            "isCorrect": is_answer_correct(question, selected_answers),
            "correctAnswer": question.to_dict()["correctAnswer"],
            "explanation": question.explanation,
        }

    async def post_event(self, action, **fields):
        self.events.append((action, fields))
