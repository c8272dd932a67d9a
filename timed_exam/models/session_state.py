"""
models/session_state.py

시험 진행 상태를 담는 OMR 카드 모델.
Pydantic BaseModel 기반 — 직렬화/역직렬화 및 타입 안전성 확보.
UI 코드 없음.
"""

from enum import Enum
from typing import Any, Dict

from pydantic import BaseModel, Field

from timed_exam.models.question_model import ExamSession


class SessionPhase(str, Enum):
    """세션 상태 머신: ACTIVE → SUBMITTING → DONE (역방향 없음)."""

    ACTIVE = "active"
    SUBMITTING = "submitting"
    DONE = "done"


class SessionProgress(BaseModel):
    """
    저장소에 기록되는 진행 상태 스냅샷.

    Attributes:
        current_index:     현재 풀고 있는 문제의 인덱스 (0-based).
        answers:           사용자 답안지. {question.id: 선택한 보기 인덱스}
                           손상된 저장 데이터에서 복구된 경우 정수가 아닌 값이
                           섞여 있을 수 있으며, 제출 시점에 걸러진다.
        remaining_seconds: 남은 시간 (초).
    """

    current_index: int = Field(
        default=0,
        ge=0,
        description="현재 풀고 있는 문제 인덱스 (0-based)"
    )
    answers: Dict[str, Any] = Field(
        default_factory=dict,
        description="사용자 답안지. key: question.id, value: 선택한 보기 인덱스"
    )
    remaining_seconds: int = Field(
        default=0,
        ge=0,
        description="남은 시간 (초)"
    )


class ExamState(BaseModel):
    """
    컨트롤러 하나가 소유하는 세션 전체 상태.
    session은 불변, progress는 전이 함수가 매번 새 값으로 교체한다.
    """

    session: ExamSession
    progress: SessionProgress
    phase: SessionPhase = SessionPhase.ACTIVE

    @property
    def submission_id(self) -> str:
        return self.session.submission_id

    @property
    def current_question(self):
        return self.session.questions[self.progress.current_index]
