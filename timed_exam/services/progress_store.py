"""
services/progress_store.py

진행 상태 영속화 어댑터.

응시 ID별로 세 개의 독립 키에 텍스트로 기록한다:
  - exam-{id}-current   : 현재 문제 인덱스 (정수 텍스트)
  - exam-{id}-answers   : 답안지 (JSON 객체)
  - exam-{id}-remaining : 남은 시간 (정수 텍스트)

쓰기는 동기식 덮어쓰기 (last-write-wins).
읽기 시 손상된 항목은 없는 것으로 간주한다 — 예외를 밖으로 던지지 않음.
"""

import json
import logging
import os
import tempfile
import threading
from typing import Any, Callable, Dict, Optional, Protocol, TypeVar

from timed_exam.exceptions import RecoverableStateError
from timed_exam.models.session_state import SessionProgress

logger = logging.getLogger(__name__)

T = TypeVar("T")

_FIELDS = ("current", "answers", "remaining")


class KeyValueStore(Protocol):
    def get_item(self, key: str) -> Optional[str]: ...
    def set_item(self, key: str, value: str) -> None: ...
    def remove_item(self, key: str) -> None: ...


class MemoryStore:
    """프로세스 메모리 키-값 저장소 (기본값)."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._items: Dict[str, str] = {}

    def get_item(self, key: str) -> Optional[str]:
        with self._lock:
            return self._items.get(key)

    def set_item(self, key: str, value: str) -> None:
        with self._lock:
            self._items[key] = value

    def remove_item(self, key: str) -> None:
        with self._lock:
            self._items.pop(key, None)


class JsonFileStore:
    """
    JSON 파일 하나에 모든 키를 기록하는 저장소.
    프로세스가 재시작되어도 진행 상태를 복구할 수 있다.
    매 쓰기마다 임시 파일에 기록 후 os.replace로 교체.
    """

    def __init__(self, path: str) -> None:
        self.path = path
        self._lock = threading.Lock()
        self._items: Dict[str, str] = self._load_file()

    def _load_file(self) -> Dict[str, str]:
        if not os.path.exists(self.path):
            return {}
        try:
            with open(self.path, encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, ValueError) as e:
            logger.warning(f"진행 상태 파일을 읽지 못해 비어 있는 상태로 시작: {self.path} ({e})")
            return {}
        if not isinstance(data, dict):
            logger.warning(f"진행 상태 파일 형식 오류, 무시: {self.path}")
            return {}
        return {str(k): v for k, v in data.items() if isinstance(v, str)}

    def _flush(self) -> None:
        directory = os.path.dirname(os.path.abspath(self.path))
        os.makedirs(directory, exist_ok=True)
        fd, tmp_path = tempfile.mkstemp(dir=directory, suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(self._items, f, ensure_ascii=False)
            os.replace(tmp_path, self.path)
        except OSError:
            if os.path.exists(tmp_path):
                os.remove(tmp_path)
            raise

    def get_item(self, key: str) -> Optional[str]:
        with self._lock:
            return self._items.get(key)

    def set_item(self, key: str, value: str) -> None:
        with self._lock:
            self._items[key] = value
            self._flush()

    def remove_item(self, key: str) -> None:
        with self._lock:
            if self._items.pop(key, None) is not None:
                self._flush()


# ── 디코더 ───────────────────────────────────────────────────────────────────

def _decode_non_negative_int(raw: str) -> int:
    try:
        value = int(raw.strip())
    except (AttributeError, ValueError) as e:
        raise RecoverableStateError(f"정수가 아닌 값: {raw!r}") from e
    if value < 0:
        raise RecoverableStateError(f"음수 값: {raw!r}")
    return value


def _decode_answers(raw: str) -> Dict[str, Any]:
    try:
        data = json.loads(raw)
    except (TypeError, ValueError) as e:
        raise RecoverableStateError(f"JSON 파싱 실패: {raw!r}") from e
    if not isinstance(data, dict):
        raise RecoverableStateError(f"답안지가 객체가 아님: {raw!r}")
    return {str(k): v for k, v in data.items()}


class ProgressStore:
    """SessionProgress ↔ 키-값 저장소 어댑터."""

    def __init__(self, backend: KeyValueStore) -> None:
        self.backend = backend

    @staticmethod
    def key(submission_id: str, field: str) -> str:
        return f"exam-{submission_id}-{field}"

    def _read(self, submission_id: str, field: str, decode: Callable[[str], T]) -> Optional[T]:
        raw = self.backend.get_item(self.key(submission_id, field))
        if raw is None:
            return None
        try:
            return decode(raw)
        except RecoverableStateError as e:
            logger.debug(f"손상된 저장 항목 무시 ({submission_id}/{field}): {e}")
            return None

    # ── 읽기 ──
    def load_current(self, submission_id: str) -> Optional[int]:
        return self._read(submission_id, "current", _decode_non_negative_int)

    def load_answers(self, submission_id: str) -> Optional[Dict[str, Any]]:
        return self._read(submission_id, "answers", _decode_answers)

    def load_remaining(self, submission_id: str) -> Optional[int]:
        return self._read(submission_id, "remaining", _decode_non_negative_int)

    # ── 쓰기 ──
    def save_current(self, submission_id: str, current_index: int) -> None:
        self.backend.set_item(self.key(submission_id, "current"), str(current_index))

    def save_answers(self, submission_id: str, answers: Dict[str, Any]) -> None:
        self.backend.set_item(self.key(submission_id, "answers"), json.dumps(answers))

    def save_remaining(self, submission_id: str, remaining_seconds: int) -> None:
        self.backend.set_item(self.key(submission_id, "remaining"), str(remaining_seconds))

    def save(self, submission_id: str, progress: SessionProgress) -> None:
        """세 항목을 모두 기록."""
        self.save_current(submission_id, progress.current_index)
        self.save_answers(submission_id, progress.answers)
        self.save_remaining(submission_id, progress.remaining_seconds)

    def clear(self, submission_id: str) -> None:
        for field in _FIELDS:
            self.backend.remove_item(self.key(submission_id, field))


def create_progress_store(path: str = "") -> ProgressStore:
    """경로가 주어지면 파일 저장소, 아니면 메모리 저장소."""
    if path:
        logger.info(f"진행 상태 파일 저장소 사용: {path}")
        return ProgressStore(JsonFileStore(path))
    return ProgressStore(MemoryStore())
