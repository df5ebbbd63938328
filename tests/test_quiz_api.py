import json

import httpx
import pytest

from services.quiz_api import QuizApiClient, QuizApiError

BASE_URL = "http://quiz.test/api/"


def make_client(handler):
    transport = httpx.MockTransport(handler)
    return QuizApiClient(
        base_url=BASE_URL,
        client=httpx.AsyncClient(base_url=BASE_URL, transport=transport),
    )


@pytest.mark.asyncio
async def test_fetch_questions_sends_query():
    seen = {}

    def handler(request: httpx.Request):
        seen["path"] = request.url.path
        seen["params"] = dict(request.url.params)
        return httpx.Response(200, json={"success": True, "questions": [{"id": 1}]})

    api = make_client(handler)
    questions = await api.fetch_questions("violation", 10, randomize=False)

    assert questions == [{"id": 1}]
    assert seen["path"] == "/api/questions"
    assert seen["params"] == {"type": "violation", "count": "10", "random": "false"}


@pytest.mark.asyncio
async def test_validate_answer_payload():
    seen = {}

    def handler(request: httpx.Request):
        seen["method"] = request.method
        seen["body"] = json.loads(request.content)
        return httpx.Response(
            200,
            json={"success": True, "isCorrect": True, "correctAnswer": [0, 2], "explanation": "x"},
        )

    api = make_client(handler)
    data = await api.validate_answer(7, (2, 0), "safety")

    assert data["isCorrect"] is True
    assert seen["method"] == "POST"
    assert seen["body"] == {
        "questionId": 7,
        "selectedAnswers": [2, 0],
        "category": "safety",
        "quizType": "safety",
    }


@pytest.mark.asyncio
async def test_server_error_is_classified():
    api = make_client(lambda request: httpx.Response(500, json={"error": "boom"}))

    with pytest.raises(QuizApiError) as exc_info:
        await api.fetch_questions("safety", 10)

    assert str(exc_info.value) == "boom"
    assert exc_info.value.status == 500
    assert exc_info.value.is_server_error
    assert not exc_info.value.is_client_error


@pytest.mark.asyncio
async def test_client_error_with_plain_text_body():
    api = make_client(lambda request: httpx.Response(404, text="not here"))

    with pytest.raises(QuizApiError) as exc_info:
        await api.validate_answer(99, [0], "safety")

    assert exc_info.value.is_client_error
    assert exc_info.value.data == {"message": "not here"}


@pytest.mark.asyncio
async def test_unsuccessful_body_is_an_error():
    api = make_client(lambda request: httpx.Response(200, json={"success": False, "error": "Invalid quiz type"}))

    with pytest.raises(QuizApiError, match="Invalid quiz type"):
        await api.fetch_questions("nope", 10)


@pytest.mark.asyncio
async def test_non_json_response():
    api = make_client(lambda request: httpx.Response(200, text="<html>"))

    with pytest.raises(QuizApiError, match="not JSON"):
        await api.fetch_questions("safety", 10)


@pytest.mark.asyncio
async def test_missing_question_list():
    api = make_client(lambda request: httpx.Response(200, json={"success": True}))

    with pytest.raises(QuizApiError):
        await api.fetch_questions("safety", 10)


@pytest.mark.asyncio
async def test_transport_error_is_network_error():
    def handler(request):
        raise httpx.ConnectError("connection refused", request=request)

    api = make_client(handler)

    with pytest.raises(QuizApiError) as exc_info:
        await api.validate_answer(1, [0], "safety")

    assert exc_info.value.is_network_error


@pytest.mark.asyncio
async def test_timeout_is_network_error():
    def handler(request):
        raise httpx.ReadTimeout("slow", request=request)

    api = make_client(handler)

    with pytest.raises(QuizApiError, match="timed out") as exc_info:
        await api.fetch_questions("safety", 10)

    assert exc_info.value.status == 0


@pytest.mark.asyncio
async def test_validate_requires_boolean_verdict():
    api = make_client(lambda request: httpx.Response(200, json={"success": True, "isCorrect": "yes"}))

    with pytest.raises(QuizApiError, match="isCorrect"):
        await api.validate_answer(1, [0], "safety")


@pytest.mark.asyncio
async def test_post_event_body():
    seen = {}

    def handler(request: httpx.Request):
        seen["path"] = request.url.path
        seen["body"] = json.loads(request.content)
        return httpx.Response(200, json={"success": True})

    api = make_client(handler)
    await api.post_event("quiz_completed", category="safety", score=90)

    assert seen["path"] == "/api/analytics/events"
    assert seen["body"] == {"action": "quiz_completed", "category": "safety", "score": 90}
