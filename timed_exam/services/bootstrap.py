"""
services/bootstrap.py

시험 시작 데이터 + 저장된 진행 상태 → 초기 ExamState.

저장 항목은 각각 독립적으로 복구하며, 없거나 손상된 항목은 조용히 기본값으로 대체:
  current_index=0, answers={}, remaining_seconds=duration_seconds
리다이렉트, 타이머, 네트워크 호출은 하지 않는다 (저장소 읽기만).
"""

import logging
from typing import Any, Mapping, Optional

from pydantic import ValidationError

from timed_exam.exceptions import MissingSessionError
from timed_exam.models.question_model import ExamSession
from timed_exam.models.session_state import ExamState, SessionProgress
from timed_exam.services.progress_store import ProgressStore

logger = logging.getLogger(__name__)


def bootstrap_session(
    start_data: Optional[Mapping[str, Any]],
    store: ProgressStore,
) -> ExamState:
    """
    Args:
        start_data: 이전 화면에서 한 번 전달받는 {submissionId, durationSeconds, questions}
        store:      진행 상태 저장소

    Raises:
        MissingSessionError: 시작 데이터가 없거나 시험으로 해석할 수 없을 때.
                             호출부가 시작 화면으로 보내야 한다.
    """
    if not start_data:
        raise MissingSessionError("시험 시작 정보가 없습니다.")
    try:
        session = ExamSession.model_validate(start_data)
    except ValidationError as e:
        raise MissingSessionError(f"시험 시작 정보가 올바르지 않습니다: {e.error_count()}개 오류") from e

    progress = restore_progress(session, store)
    logger.info(
        f"시험 세션 준비: {session.submission_id} "
        f"(문제 {len(session.questions)}개, 현재 {progress.current_index + 1}번, "
        f"남은 시간 {progress.remaining_seconds}초)"
    )
    return ExamState(session=session, progress=progress)


def restore_progress(session: ExamSession, store: ProgressStore) -> SessionProgress:
    sid = session.submission_id

    current = store.load_current(sid)
    if current is None or current >= len(session.questions):
        current = 0

    answers = store.load_answers(sid)
    if answers is None:
        answers = {}

    remaining = store.load_remaining(sid)
    if remaining is None:
        remaining = session.duration_seconds

    return SessionProgress(
        current_index=current,
        answers=answers,
        remaining_seconds=remaining,
    )
