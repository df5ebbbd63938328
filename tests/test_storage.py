from types import SimpleNamespace

import pytest
from googleapiclient.errors import HttpError

from services.google_sheets import ResultsSheetService
from services.redis_service import RedisService
from utils.statistics import build_result
from tests.helpers import make_questions


class FakeRedis:
    def __init__(self):
        self.values = {}
        self.ttls = {}

    async def get(self, key):
        return self.values.get(key)

    async def setex(self, key, ttl, value):
        self.values[key] = value.encode()
        self.ttls[key] = ttl

    async def delete(self, key):
        self.values.pop(key, None)


class FakeRequest:
    def __init__(self, outcome):
        self.outcome = outcome

    def execute(self):
        if isinstance(self.outcome, Exception):
            raise self.outcome
        return self.outcome


class FakeValues:
    def __init__(self, outcomes):
        self.outcomes = list(outcomes)
        self.calls = []

    def append(self, **kwargs):
        self.calls.append(kwargs)
        return FakeRequest(self.outcomes.pop(0))


class FakeSheets:
    def __init__(self, outcomes):
        self.values_api = FakeValues(outcomes)

    def spreadsheets(self):
        return SimpleNamespace(values=lambda: self.values_api)


def http_error(status):
    return HttpError(SimpleNamespace(status=status, reason="error"), b"")


@pytest.mark.asyncio
async def test_session_snapshot_round_trip():
    service = RedisService(url="redis://unused", ttl=60)
    service.redis_client = FakeRedis()

    await service.set_session(7, {"state": "in_progress", "category": "safety"})

    assert await service.get_session(7) == {"state": "in_progress", "category": "safety"}
    assert service.redis_client.ttls["quiz_session:7"] == 60
    assert await service.has_active_session(7)

    await service.set_session(7, {"state": "completed"}, ttl=5)
    assert not await service.has_active_session(7)

    await service.delete_session(7)
    assert await service.get_session(7) is None


@pytest.mark.asyncio
async def test_session_store_without_redis_is_a_no_op():
    service = RedisService(url="redis://unused", ttl=60)

    await service.set_session(1, {"state": "loaded"})
    assert await service.get_session(1) is None
    assert not await service.has_active_session(1)


def _result():
    questions = make_questions(2)
    return build_result("safety", questions, [None, None], started_at=0, ended_at=61_400)


def _sheet(outcomes):
    sheet = ResultsSheetService(sheet_id=None, credentials_info=None)
    sheet.sheet_id = "sheet-1"
    sheet.service = FakeSheets(outcomes)
    sheet.retry_delay = 0
    return sheet


def test_result_row_is_appended():
    sheet = _sheet([{"updates": {}}])

    sheet.write_result(5, "ivan", "2024-05-01 10:00", _result(), passed=False)

    call = sheet.service.values_api.calls[0]
    assert call["spreadsheetId"] == "sheet-1"
    assert call["range"] == "Results!A:K"
    assert call["body"]["values"] == [
        ["5", "ivan", "2024-05-01 10:00", "safety", 0, 100, 0, 2, 0, 61, "Failed"]
    ]


def test_transient_errors_are_retried():
    sheet = _sheet([http_error(503), {"updates": {}}])

    sheet.write_result(5, "ivan", "2024-05-01 10:00", _result(), passed=False)

    assert len(sheet.service.values_api.calls) == 2


def test_permanent_errors_are_raised():
    sheet = _sheet([http_error(403)])

    with pytest.raises(HttpError):
        sheet.write_result(5, "ivan", "2024-05-01 10:00", _result(), passed=True)


def test_disabled_sheet_skips_writing():
    sheet = ResultsSheetService(sheet_id=None, credentials_info=None)
    sheet.sheet_id = None
    sheet.service = None

    assert not sheet.enabled
    sheet.write_result(5, "ivan", "2024-05-01 10:00", _result(), passed=True)
