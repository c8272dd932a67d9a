"""
api/session.py — 멀티유저 인메모리 세션 (쿠키 기반)

각 사용자에게 UUID 세션 ID를 발급하고, 세션별로 독립된 상태를 유지.
세션에는 시험 컨트롤러와 결과 화면 이동 정보가 들어간다.
TTL 경과 시 자동 만료 — 만료된 세션의 타이머는 정지하고, 저장된 진행 상태는 남겨 둔다.
"""

import threading
import time
import uuid
from typing import Any

from config import SESSION_TTL

_lock = threading.Lock()
_sessions: dict[str, dict[str, Any]] = {}
_timestamps: dict[str, float] = {}


def _new_state() -> dict[str, Any]:
    return {
        "controller": None,     # ExamController
        "start_data": None,     # 마지막 시험 시작 데이터 (재접속 시 복구용)
        "route": None,          # 결과 화면 경로 (제출 후)
        "result": None,         # 미리 받은 채점 결과 (SubmissionResult)
    }


def _close_controller(state: dict[str, Any]) -> None:
    controller = state.get("controller")
    if controller is not None:
        controller.close()


def create_session() -> str:
    """새 세션을 생성하고 세션 ID를 반환."""
    sid = uuid.uuid4().hex
    with _lock:
        _sessions[sid] = _new_state()
        _timestamps[sid] = time.time()
    return sid


def get_session(sid: str) -> dict[str, Any] | None:
    """세션 ID로 세션 데이터를 가져옴. 만료되었거나 없으면 None."""
    expired = None
    with _lock:
        if sid not in _sessions:
            return None
        if time.time() - _timestamps[sid] > SESSION_TTL:
            expired = _sessions.pop(sid)
            del _timestamps[sid]
        else:
            _timestamps[sid] = time.time()  # 접근 시 갱신
            return _sessions[sid]
    _close_controller(expired)
    return None


def get(sid: str, key: str, default=None):
    """세션에서 값 읽기."""
    session = get_session(sid)
    if session is None:
        return default
    return session.get(key, default)


def put(sid: str, key: str, value) -> None:
    """세션에 값 쓰기."""
    with _lock:
        if sid in _sessions:
            _sessions[sid][key] = value
            _timestamps[sid] = time.time()


def reset(sid: str) -> None:
    """세션 초기화 (실행 중인 타이머 정지)."""
    with _lock:
        old = _sessions.get(sid)
        if old is not None:
            _sessions[sid] = _new_state()
            _timestamps[sid] = time.time()
    if old is not None:
        _close_controller(old)


def cleanup_expired() -> int:
    """만료된 세션을 정리. 제거된 수 반환."""
    now = time.time()
    with _lock:
        expired = [sid for sid, ts in _timestamps.items() if now - ts > SESSION_TTL]
        removed = [_sessions.pop(sid) for sid in expired]
        for sid in expired:
            del _timestamps[sid]
    for state in removed:
        _close_controller(state)
    return len(removed)


def close_all() -> None:
    """서버 종료 시 모든 타이머 정지."""
    with _lock:
        states = list(_sessions.values())
        _sessions.clear()
        _timestamps.clear()
    for state in states:
        _close_controller(state)
