"""ExamApiClient 테스트 (httpx.MockTransport)."""

import asyncio
import json

import httpx
import pytest

from timed_exam.exceptions import TransportError
from timed_exam.models.submission_model import AnswerEntry, SubmissionPayload
from timed_exam.services.exam_client import ExamApiClient


def _client(handler, token=""):
    return ExamApiClient("http://exam.test/api", token=token, transport=httpx.MockTransport(handler))


def _payload():
    return SubmissionPayload(
        submission_id="s1",
        answers=[AnswerEntry(question_id="q1", selected_index=1)],
    )


def test_submit_posts_camel_case_payload():
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["url"] = str(request.url)
        seen["body"] = json.loads(request.content)
        seen["auth"] = request.headers.get("Authorization")
        return httpx.Response(200, json={
            "score": 2, "total": 3, "status": "graded",
            "submittedAt": "2026-10-19T10:00:00Z", "timeExpired": True, "attempt": 1,
        })

    result = asyncio.run(_client(handler, token="tok").submit(_payload()))

    assert seen["url"] == "http://exam.test/api/exams/submit"
    assert seen["body"] == {"submissionId": "s1", "answers": [{"questionId": "q1", "selectedIndex": 1}]}
    assert seen["auth"] == "Bearer tok"
    assert result.score == 2
    assert result.time_expired is True
    assert result.to_response()["attempt"] == 1
    assert result.to_response()["submittedAt"] == "2026-10-19T10:00:00Z"


def test_no_authorization_header_without_token():
    def handler(request):
        assert "Authorization" not in request.headers
        return httpx.Response(200, json={"score": 0, "total": 1, "status": "graded"})

    asyncio.run(_client(handler).submit(_payload()))


@pytest.mark.parametrize("status", [400, 500, 503])
def test_error_status_raises_transport_error(status):
    client = _client(lambda request: httpx.Response(status, text="boom"))
    with pytest.raises(TransportError) as exc_info:
        asyncio.run(client.submit(_payload()))
    assert exc_info.value.status_code == status


def test_network_error_raises_transport_error():
    def handler(request):
        raise httpx.ConnectError("connection refused", request=request)

    with pytest.raises(TransportError):
        asyncio.run(_client(handler).submit(_payload()))


def test_non_json_body_raises_transport_error():
    client = _client(lambda request: httpx.Response(200, text="<html>"))
    with pytest.raises(TransportError):
        asyncio.run(client.submit(_payload()))


def test_non_object_result_raises_transport_error():
    client = _client(lambda request: httpx.Response(200, json=[1, 2]))
    with pytest.raises(TransportError):
        asyncio.run(client.fetch_result("s1"))


def test_fetch_result_by_id_tolerates_missing_numbers():
    def handler(request):
        assert request.method == "GET"
        assert request.url.path == "/api/submissions/s9"
        return httpx.Response(200, json={"score": None, "status": "graded"})

    result = asyncio.run(_client(handler).fetch_result("s9"))
    assert result.score == 0
    assert result.total == 0


def test_start_exam_returns_session_data():
    def handler(request):
        assert json.loads(request.content) == {"examId": "e1"}
        return httpx.Response(200, json={"submissionId": "s1", "durationSeconds": 60, "questions": []})

    data = asyncio.run(_client(handler).start_exam("e1"))
    assert data["submissionId"] == "s1"
