"""
services/exam_client.py

원격 시험 서버 HTTP 클라이언트 (httpx 비동기).
Public API:
  - start_exam(exam_id)          -> dict              : 응시 시작, 시험 시작 데이터 수신
  - submit(payload)              -> SubmissionResult  : 답안 제출 (재시도 없음, 1회 호출)
  - fetch_result(submission_id)  -> SubmissionResult  : 결과 재조회

모든 실패(네트워크, 비정상 상태 코드, JSON 아닌 본문)는 TransportError로 변환한다.
"""

import logging
from typing import Any, Dict, Optional

import httpx
from pydantic import ValidationError

from timed_exam.exceptions import TransportError
from timed_exam.models.submission_model import SubmissionPayload, SubmissionResult

logger = logging.getLogger(__name__)

_DEFAULT_TIMEOUT = 30.0


class ExamApiClient:
    """
    요청마다 AsyncClient를 생성한다. transport는 테스트에서 httpx.MockTransport 주입용.
    """

    def __init__(
        self,
        base_url: str,
        token: str = "",
        timeout: float = _DEFAULT_TIMEOUT,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.token = token
        self.timeout = timeout
        self.transport = transport

    def _headers(self) -> Dict[str, str]:
        headers = {
            "Content-Type": "application/json",
            "User-Agent": "CBT-Exam-Session/1.0",
        }
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"
        return headers

    async def _request(self, method: str, path: str, json: Any = None) -> Any:
        try:
            async with httpx.AsyncClient(
                base_url=self.base_url,
                timeout=self.timeout,
                transport=self.transport,
            ) as client:
                response = await client.request(method, path, json=json, headers=self._headers())
                response.raise_for_status()
                return response.json()
        except httpx.HTTPStatusError as e:
            status = e.response.status_code
            logger.warning(f"시험 서버 응답 오류: {method} {path} → HTTP {status}")
            raise TransportError(f"HTTP {status}", status_code=status) from e
        except httpx.HTTPError as e:
            logger.warning(f"시험 서버 통신 실패: {method} {path} ({type(e).__name__}: {e})")
            raise TransportError(f"통신 실패: {e}") from e
        except ValueError as e:
            logger.warning(f"시험 서버 응답이 JSON이 아님: {method} {path}")
            raise TransportError("잘못된 응답 본문") from e

    @staticmethod
    def _to_result(data: Any) -> SubmissionResult:
        if not isinstance(data, dict):
            raise TransportError("결과 응답이 객체가 아님")
        try:
            return SubmissionResult.model_validate(data)
        except ValidationError as e:
            raise TransportError(f"결과 응답 형식 오류: {e.error_count()}개") from e

    async def start_exam(self, exam_id: str) -> Dict[str, Any]:
        """응시 시작. 응답: {submissionId, durationSeconds, questions}"""
        data = await self._request("POST", "/exams/start", json={"examId": exam_id})
        if not isinstance(data, dict):
            raise TransportError("시작 응답이 객체가 아님")
        return data

    async def submit(self, payload: SubmissionPayload) -> SubmissionResult:
        logger.info(f"📤 답안 제출: {payload.submission_id} (답안 {len(payload.answers)}개)")
        data = await self._request("POST", "/exams/submit", json=payload.to_request())
        return self._to_result(data)

    async def fetch_result(self, submission_id: str) -> SubmissionResult:
        data = await self._request("GET", f"/submissions/{submission_id}")
        return self._to_result(data)
