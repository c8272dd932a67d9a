"""
exceptions.py

시험 세션 코어에서 사용하는 예외 계층.
어떤 예외도 프로세스를 중단시키지 않는다 — 호출부가 안전한 화면 이동으로 처리한다.
"""


class ExamSessionError(Exception):
    """시험 세션 관련 예외의 최상위 클래스."""


class MissingSessionError(ExamSessionError):
    """시험 시작 데이터가 없거나 사용할 수 없음. 호출부가 시작 화면으로 리다이렉트."""


class RecoverableStateError(ExamSessionError):
    """저장된 진행 상태가 손상됨. 해당 항목은 없는 것으로 간주하고 기본값 사용."""


class TransportError(ExamSessionError):
    """원격 시험 서버 통신 실패 (네트워크 오류, 비정상 응답 코드, 잘못된 본문)."""

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code
