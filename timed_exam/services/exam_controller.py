"""
services/exam_controller.py

시험 세션 컨트롤러 — 세션 상태의 단일 소유자.

  - 문제 이동 / 답 선택 / 타이머 틱: exam_service의 순수 전이 함수 + 즉시 저장
  - 제출: 단일 실행 보장(single-flight), 실패해도 결과 화면으로 이동(fail-open)

상태 머신: ACTIVE → SUBMITTING → DONE
  ACTIVE 에서만 이동/선택/틱이 반영된다. DONE 은 종료 상태.
"""

import asyncio
import logging
import threading
from typing import Any, Dict, Optional, Protocol

from timed_exam.exceptions import TransportError
from timed_exam.models.session_state import ExamState, SessionPhase, SessionProgress
from timed_exam.models.submission_model import SubmissionPayload, SubmissionResult
from timed_exam.services import exam_service
from timed_exam.services.countdown import CountdownTimer, format_remaining
from timed_exam.services.progress_store import ProgressStore

logger = logging.getLogger(__name__)


class SubmitTransport(Protocol):
    async def submit(self, payload: SubmissionPayload) -> SubmissionResult: ...


class ResultNavigator(Protocol):
    def go_to_result(
        self,
        submission_id: str,
        result: Optional[SubmissionResult],
        replace: bool = True,
    ) -> None: ...


class ExamController:

    def __init__(
        self,
        state: ExamState,
        store: ProgressStore,
        transport: SubmitTransport,
        navigator: ResultNavigator,
        tick_interval: float = 1.0,
    ):
        self.state = state
        self.store = store
        self.transport = transport
        self.navigator = navigator
        self.timer = CountdownTimer(self.tick, tick_interval)
        # 제출 진행 중 플래그. 비차단 acquire로 원자적 test-and-set
        self._in_flight = threading.Lock()
        self.pending_submission: Optional[asyncio.Task] = None

    # ── 조회 ──────────────────────────────────────────────────────────────
    @property
    def submission_id(self) -> str:
        return self.state.submission_id

    @property
    def progress(self) -> SessionProgress:
        return self.state.progress

    @property
    def phase(self) -> SessionPhase:
        return self.state.phase

    @property
    def submitting(self) -> bool:
        return self.state.phase == SessionPhase.SUBMITTING

    @property
    def is_active(self) -> bool:
        return self.state.phase == SessionPhase.ACTIVE

    def snapshot(self) -> Dict[str, Any]:
        """HTTP 응답용 현재 상태 (정답 정보 없음)."""
        progress = self.state.progress
        question = self.state.current_question
        return {
            "submission_id": self.submission_id,
            "phase": self.state.phase.value,
            "submitting": self.submitting,
            "current_index": progress.current_index,
            "total": len(self.state.session.questions),
            "question": {
                "id": question.id,
                "text": question.text,
                "options": list(question.options),
            },
            "selected_index": progress.answers.get(question.id),
            "answers": dict(progress.answers),
            "answered_count": len(progress.answers),
            "remaining_seconds": progress.remaining_seconds,
            "remaining_display": format_remaining(progress.remaining_seconds),
        }

    # ── 수명 주기 ─────────────────────────────────────────────────────────
    def start(self) -> None:
        """초기 상태를 저장하고 타이머 시작. 실행 중인 이벤트 루프 안에서 호출."""
        if not self.is_active:
            return
        self.store.save(self.submission_id, self.state.progress)
        self.timer.start()
        logger.info(f"시험 시작: {self.submission_id}")

    def close(self) -> None:
        """타이머 정지 (화면 종료/세션 만료). 저장된 진행 상태는 유지."""
        self.timer.stop()

    # ── 상태 전이 ─────────────────────────────────────────────────────────
    def select(self, question_id: str, option_index: int) -> bool:
        if not self.is_active:
            return False
        updated = exam_service.select_answer(
            self.state.session, self.state.progress, question_id, option_index
        )
        if updated is self.state.progress:
            return False
        self.state.progress = updated
        self.store.save_answers(self.submission_id, updated.answers)
        return True

    def next(self) -> bool:
        return self._move(1)

    def previous(self) -> bool:
        return self._move(-1)

    def _move(self, step: int) -> bool:
        if not self.is_active:
            return False
        updated = exam_service.move(self.state.session, self.state.progress, step)
        if updated is self.state.progress:
            return False
        self.state.progress = updated
        self.store.save_current(self.submission_id, updated.current_index)
        return True

    def tick(self) -> None:
        """타이머 콜백. 시간이 다 되면 자동 제출을 한 번만 예약한다."""
        if not self.is_active:
            self.timer.stop()
            return
        updated, expired = exam_service.tick(self.state.progress)
        self.state.progress = updated
        self.store.save_remaining(self.submission_id, updated.remaining_seconds)
        if not expired:
            return

        self.timer.stop()
        logger.info(f"⏰ 시험 시간 종료, 자동 제출: {self.submission_id}")
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            loop = None
        if not self._begin_submission():
            return
        if loop is None:
            # 이벤트 루프 밖의 외부 스케줄러가 호출한 경우 제출을 끝까지 동기 실행
            asyncio.run(self._perform_submission(auto=True))
            return
        self.pending_submission = loop.create_task(self._perform_submission(auto=True))

    # ── 제출 ──────────────────────────────────────────────────────────────
    async def submit(self, auto: bool = False) -> Optional[SubmissionResult]:
        """
        답안 제출. 이미 제출 중이거나 끝난 세션이면 아무것도 하지 않고 None.

        Returns:
            서버가 돌려준 채점 결과. 통신 실패 시 None (결과 화면이 ID로 재조회).
        """
        if not self._begin_submission():
            return None
        return await self._perform_submission(auto)

    def _begin_submission(self) -> bool:
        # 첫 대기 지점(네트워크 호출) 이전에 동기적으로 잠금 + 상태 전환
        if not self._in_flight.acquire(blocking=False):
            logger.debug(f"제출 진행 중, 중복 요청 무시: {self.submission_id}")
            return False
        if not self.is_active:
            self._in_flight.release()
            logger.debug(f"이미 제출된 시험, 요청 무시: {self.submission_id}")
            return False
        self.state.phase = SessionPhase.SUBMITTING
        self.timer.stop()
        return True

    async def _perform_submission(self, auto: bool) -> Optional[SubmissionResult]:
        sid = self.submission_id
        try:
            payload = exam_service.build_payload(self.state.session, self.state.progress)
            logger.info(f"제출 시작: {sid} (자동={auto}, 답안 {len(payload.answers)}개)")
            try:
                result = await self.transport.submit(payload)
            except TransportError as e:
                logger.warning(f"제출 실패, 결과 화면에서 재조회: {sid} ({e})")
                self.store.clear(sid)
                self.navigator.go_to_result(sid, None, replace=True)
                return None
            except Exception:
                logger.exception(f"제출 중 예기치 않은 오류, 결과 화면으로 이동: {sid}")
                self.store.clear(sid)
                self.navigator.go_to_result(sid, None, replace=True)
                return None

            self.store.clear(sid)
            logger.info(f"제출 완료: {sid} (점수 {result.score}/{result.total})")
            self.navigator.go_to_result(sid, result, replace=True)
            return result
        finally:
            self.state.phase = SessionPhase.DONE
            self._in_flight.release()
