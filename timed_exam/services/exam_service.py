"""
services/exam_service.py

시험 진행 상태 전이 및 제출 페이로드 생성 비즈니스 로직.
순수 Python 함수로 구성 — 저장, 네트워크, 전역 상태 변경 없음.
각 전이 함수는 새 SessionProgress를 반환하며, 변화가 없으면 입력 객체를 그대로 돌려준다.
"""

import logging
from typing import Any, Dict, List, Optional, Tuple

from timed_exam.models.question_model import ExamSession
from timed_exam.models.session_state import SessionProgress
from timed_exam.models.submission_model import AnswerEntry, SubmissionPayload

logger = logging.getLogger(__name__)


def select_answer(
    session: ExamSession,
    progress: SessionProgress,
    question_id: str,
    option_index: int,
) -> SessionProgress:
    """
    문제 하나의 답을 기록한다 (이전 선택은 덮어씀).

    존재하지 않는 문제이거나 보기 범위를 벗어난 인덱스는 무시하고
    progress를 그대로 반환한다. 호출부는 유효한 보기만 제시해야 한다.
    """
    question = session.find_question(str(question_id))
    if question is None:
        logger.debug(f"알 수 없는 문제 ID 무시: {question_id!r}")
        return progress
    if not _is_valid_index(option_index, len(question.options)):
        logger.debug(f"범위를 벗어난 보기 인덱스 무시: {question_id}={option_index!r}")
        return progress

    answers = dict(progress.answers)
    answers[question.id] = option_index
    return progress.model_copy(update={"answers": answers})


def move(session: ExamSession, progress: SessionProgress, step: int) -> SessionProgress:
    """현재 문제 인덱스를 step만큼 이동. [0, N-1] 범위로 보정하며 경계에서는 변화 없음."""
    last = len(session.questions) - 1
    idx = max(0, min(progress.current_index + step, last))
    if idx == progress.current_index:
        return progress
    return progress.model_copy(update={"current_index": idx})


def tick(progress: SessionProgress) -> Tuple[SessionProgress, bool]:
    """
    1초 경과 처리.

    Returns:
        (새 progress, 만료 여부). 남은 시간이 0 이하가 되면 0으로 고정하고 True.
    """
    remaining = progress.remaining_seconds - 1
    if remaining <= 0:
        return progress.model_copy(update={"remaining_seconds": 0}), True
    return progress.model_copy(update={"remaining_seconds": remaining}), False


def normalize_answers(
    answers: Dict[str, Any],
    question_order: Optional[List[str]] = None,
) -> List[AnswerEntry]:
    """
    답안지를 제출용 리스트로 변환한다.

    정수가 아닌 값(손상된 저장 데이터에서 복구된 값)은 경고 로그만 남기고 제외한다.
    정수값을 갖는 실수(1.0)는 정수로 취급, bool은 제외.

    Args:
        answers:        {question_id: 선택 인덱스}
        question_order: 문제 순서. 주어지면 이 순서대로 정렬하고,
                        목록에 없는 ID는 답안지 순서대로 뒤에 붙인다.
    """
    order = {qid: i for i, qid in enumerate(question_order or [])}
    keys = sorted(answers, key=lambda k: order.get(str(k), len(order)))

    entries: List[AnswerEntry] = []
    for qid in keys:
        value = _as_int(answers[qid])
        if value is None:
            logger.warning(f"정수가 아닌 답안 제외: {qid}={answers[qid]!r}")
            continue
        entries.append(AnswerEntry(question_id=str(qid), selected_index=value))
    return entries


def build_payload(session: ExamSession, progress: SessionProgress) -> SubmissionPayload:
    """제출 페이로드 생성 (ID는 문자열, 인덱스는 정수로 강제)."""
    entries = normalize_answers(progress.answers, [q.id for q in session.questions])
    return SubmissionPayload(submission_id=str(session.submission_id), answers=entries)


# ── 내부 헬퍼 ────────────────────────────────────────────────────────────────

def _is_valid_index(value: Any, size: int) -> bool:
    if isinstance(value, bool) or not isinstance(value, int):
        return False
    return 0 <= value < size


def _as_int(value: Any) -> Optional[int]:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float) and value.is_integer():
        return int(value)
    return None
