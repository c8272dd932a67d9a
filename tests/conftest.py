import asyncio
from typing import List, Optional

import pytest

from timed_exam.exceptions import TransportError
from timed_exam.models.submission_model import SubmissionPayload, SubmissionResult
from timed_exam.services.bootstrap import bootstrap_session
from timed_exam.services.exam_controller import ExamController
from timed_exam.services.progress_store import MemoryStore, ProgressStore


def make_start_data(submission_id: str = "s1", duration: int = 600, count: int = 3) -> dict:
    return {
        "submissionId": submission_id,
        "durationSeconds": duration,
        "questions": [
            {
                "id": f"q{i}",
                "text": f"문제 {i}",
                "options": ["① 가", "② 나", "③ 다", "④ 라"],
            }
            for i in range(1, count + 1)
        ],
    }


class FakeTransport:
    """제출 호출을 기록. gate가 있으면 set될 때까지 응답을 보류한다."""

    def __init__(self, result: Optional[dict] = None, error: Optional[Exception] = None):
        self.result = result if result is not None else {"score": 1, "total": 3, "status": "submitted"}
        self.error = error
        self.calls: List[SubmissionPayload] = []
        self.gate: Optional[asyncio.Event] = None

    async def submit(self, payload: SubmissionPayload) -> SubmissionResult:
        self.calls.append(payload)
        if self.gate is not None:
            await self.gate.wait()
        if self.error is not None:
            raise self.error
        return SubmissionResult.model_validate(self.result)


class RecordingNavigator:
    def __init__(self):
        self.calls = []

    def go_to_result(self, submission_id, result, replace=True):
        self.calls.append((submission_id, result, replace))


@pytest.fixture
def backend():
    return MemoryStore()


@pytest.fixture
def store(backend):
    return ProgressStore(backend)


@pytest.fixture
def transport():
    return FakeTransport()


@pytest.fixture
def failing_transport():
    return FakeTransport(error=TransportError("HTTP 503", status_code=503))


@pytest.fixture
def navigator():
    return RecordingNavigator()


@pytest.fixture
def make_controller(store, transport, navigator):
    def _make(start_data=None, transport_override=None):
        state = bootstrap_session(start_data or make_start_data(), store)
        return ExamController(state, store, transport_override or transport, navigator)
    return _make
