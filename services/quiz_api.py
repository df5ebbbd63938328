"""HTTP client for the remote question and answer-validation service."""
import logging
import time
from typing import Any, Dict, List, Optional, Sequence

import httpx

from config import Config
from models import QuestionId

logger = logging.getLogger(__name__)


class QuizApiError(Exception):
    """Any failure talking to the quiz service. ``status`` is 0 for transport errors."""

    def __init__(self, message: str, status: int = 0, data: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.status = status
        self.data = data or {}

    @property
    def is_network_error(self) -> bool:
        return self.status == 0

    @property
    def is_client_error(self) -> bool:
        return 400 <= self.status < 500

    @property
    def is_server_error(self) -> bool:
        return self.status >= 500


class QuizApiClient:
    def __init__(
        self,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
        client: Optional[httpx.AsyncClient] = None,
    ):
        self.base_url = base_url or Config.QUIZ_API_BASE_URL
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(
            base_url=self.base_url,
            timeout=timeout if timeout is not None else Config.QUIZ_API_TIMEOUT,
            headers={"Content-Type": "application/json"},
        )
        logger.info(f"Quiz API client: base_url={self.base_url}")

    async def close(self):
        if self._owns_client:
            await self._client.aclose()

    async def _request(self, method: str, endpoint: str, **kwargs) -> Dict[str, Any]:
        started = time.perf_counter()
        try:
            response = await self._client.request(method, endpoint, **kwargs)
        except httpx.TimeoutException as e:
            raise QuizApiError(f"Request to {endpoint} timed out: {e}") from e
        except httpx.HTTPError as e:
            raise QuizApiError(f"Request to {endpoint} failed: {e}") from e
        finally:
            logger.debug(f"{method} {endpoint} took {(time.perf_counter() - started) * 1000:.1f}ms")

        if response.status_code >= 400:
            try:
                data = response.json()
            except ValueError:
                data = {"message": response.text}
            if not isinstance(data, dict):
                data = {"message": str(data)}
            message = data.get("error") or data.get("message") or f"HTTP {response.status_code}"
            raise QuizApiError(message, response.status_code, data)

        try:
            data = response.json()
        except ValueError as e:
            raise QuizApiError(f"Response from {endpoint} is not JSON", response.status_code) from e

        if not isinstance(data, dict):
            raise QuizApiError(f"Unexpected response shape from {endpoint}", response.status_code)
        if data.get("success") is False:
            raise QuizApiError(data.get("error") or "Request was not successful", response.status_code, data)
        return data

    async def fetch_questions(self, category: str, count: int, randomize: bool = True) -> List[Dict[str, Any]]:
        """Questions as served by the API (without answer keys)."""
        data = await self._request(
            "GET",
            "questions",
            params={"type": category, "count": str(count), "random": "true" if randomize else "false"},
        )
        questions = data.get("questions")
        if not isinstance(questions, list):
            raise QuizApiError("Response has no question list", data=data)
        return questions

    async def validate_answer(
        self,
        question_id: QuestionId,
        selected_answers: Sequence[int],
        category: str,
    ) -> Dict[str, Any]:
        payload = {
            "questionId": question_id,
            "selectedAnswers": list(selected_answers),
            "category": category,
            # the deployed endpoint reads the category from quizType
            "quizType": category,
        }
        data = await self._request("POST", "validate-answer", json=payload)
        if not isinstance(data.get("isCorrect"), bool):
            raise QuizApiError("Response has no boolean isCorrect", data=data)
        return data

    async def post_event(self, action: str, **fields) -> None:
        await self._request("POST", "analytics/events", json={"action": action, **fields})
