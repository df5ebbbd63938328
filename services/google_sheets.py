import logging
import time
from typing import Optional
from google.oauth2 import service_account
from googleapiclient.discovery import build
from googleapiclient.errors import HttpError
from config import Config
from models import QuizResult

logger = logging.getLogger(__name__)


# Columns: user id, name, date, category, score, max score, correct, total,
# accuracy %, duration (s), result
RESULTS_SHEET = "Results"


class ResultsSheetService:
    """Appends finished quiz results to a Google Sheet."""

    def __init__(self, sheet_id: Optional[str] = None, credentials_info: Optional[dict] = None):
        self.sheet_id = sheet_id or Config.SHEET_ID
        credentials_info = credentials_info or Config.GOOGLE_CREDENTIALS
        self.service = None
        self.max_retries = 3
        self.retry_delay = 1  # initial delay in seconds

        if not (self.sheet_id and credentials_info):
            logger.info("Results sheet is not configured; results will only be logged")
            return

        credentials = service_account.Credentials.from_service_account_info(
            credentials_info,
            scopes=['https://www.googleapis.com/auth/spreadsheets']
        )
        self.service = build('sheets', 'v4', credentials=credentials)

    @property
    def enabled(self) -> bool:
        return self.service is not None

    def _retry_request(self, func, *args, **kwargs):
        """Runs a Sheets request, retrying rate limits and transient errors."""
        last_error = None
        for attempt in range(self.max_retries):
            try:
                request = func(*args, **kwargs)
                # The API client returns a request object that still has to be executed
                if hasattr(request, 'execute'):
                    return request.execute()
                return request
            except HttpError as e:
                last_error = e
                if e.resp.status in [429, 500, 502, 503, 504]:
                    delay = self.retry_delay * (2 ** attempt)
                    logger.warning(f"Google Sheets API error (attempt {attempt + 1}/{self.max_retries}): {e}. Retrying in {delay}s")
                    time.sleep(delay)
                else:
                    raise

        logger.error(f"Google Sheets request failed after {self.max_retries} attempts")
        raise last_error

    def write_result(
        self,
        user_id: int,
        display_name: str,
        test_date: str,
        result: QuizResult,
        passed: bool
    ):
        """Appends one result row to the results sheet."""
        if not self.enabled:
            logger.info(
                f"Result for user_id={user_id} not written (sheet disabled): "
                f"{result.total_score}/{result.max_score}"
            )
            return

        values = [[
            str(user_id),
            display_name or '',
            test_date,
            result.category,
            result.total_score,
            result.max_score,
            result.correct_count,
            result.total_questions,
            result.accuracy_rate,
            round(result.total_time / 1000),
            "Passed" if passed else "Failed",
        ]]

        try:
            self._retry_request(
                self.service.spreadsheets().values().append,
                spreadsheetId=self.sheet_id,
                range=f'{RESULTS_SHEET}!A:K',
                valueInputOption='RAW',
                insertDataOption='INSERT_ROWS',
                body={'values': values}
            )
            logger.info(f"Result written to {RESULTS_SHEET} for user_id={user_id}")
        except Exception as e:
            logger.error(f"Failed to write result to {RESULTS_SHEET}: {e}")
            raise
