"""
api/routes.py — FastAPI 엔드포인트

세션마다 ExamController 하나를 보관하고, 컨트롤러 연산을 JSON API로 노출한다.
모든 엔드포인트는 async — 타이머 틱과 같은 이벤트 루프에서 순차 처리된다.
"""

from typing import Any, Dict, Optional, Union

from fastapi import APIRouter, Body, HTTPException, Request
from pydantic import BaseModel

import config
import api.session as session
from timed_exam.exceptions import MissingSessionError, TransportError
from timed_exam.models.submission_model import SubmissionResult
from timed_exam.services.bootstrap import bootstrap_session
from timed_exam.services.exam_controller import ExamController

router = APIRouter()

ENTRY_ROUTE = "/"

# ── Pydantic request bodies ──────────────────────────────────────────────────

class StartExamBody(BaseModel):
    exam_id: str = ""

class SaveAnswerBody(BaseModel):
    question_id: Union[str, int]
    option_index: int


# ── 헬퍼 ─────────────────────────────────────────────────────────────────────

class SessionNavigator:
    """결과 화면 이동을 세션에 기록한다 (현재 화면 대체, 뒤로 가기로 시험 복귀 불가)."""

    def __init__(self, sid: str):
        self.sid = sid

    def go_to_result(
        self,
        submission_id: str,
        result: Optional[SubmissionResult],
        replace: bool = True,
    ) -> None:
        session.put(self.sid, "route", f"/result/{submission_id}")
        session.put(self.sid, "result", result)
        if replace:
            session.put(self.sid, "start_data", None)


def _missing_session(message: str = "시험 세션이 없습니다.") -> HTTPException:
    return HTTPException(status_code=404, detail={"message": message, "redirect": ENTRY_ROUTE})


def _controller(request: Request) -> ExamController:
    controller: ExamController | None = session.get(request.state.session_id, "controller")
    if controller is None:
        raise _missing_session()
    return controller


def _active_controller(request: Request) -> ExamController:
    controller = _controller(request)
    if not controller.is_active:
        raise HTTPException(status_code=400, detail="이미 제출된 시험입니다.")
    return controller


def _open_exam(request: Request, start_data: Optional[Dict[str, Any]]) -> Dict[str, Any]:
    sid = request.state.session_id
    try:
        state = bootstrap_session(start_data, request.app.state.progress_store)
    except MissingSessionError as e:
        raise _missing_session(str(e))

    previous: ExamController | None = session.get(sid, "controller")
    if previous is not None:
        previous.close()

    controller = ExamController(
        state,
        request.app.state.progress_store,
        request.app.state.exam_client,
        SessionNavigator(sid),
        tick_interval=config.TICK_INTERVAL,
    )
    session.put(sid, "controller", controller)
    session.put(sid, "start_data", start_data)
    session.put(sid, "route", None)
    session.put(sid, "result", None)
    controller.start()
    return controller.snapshot()


# ── 엔드포인트 ───────────────────────────────────────────────────────────────

@router.post("/api/start-exam")
async def start_exam(request: Request, body: StartExamBody):
    exam_id = body.exam_id.strip() or config.EXAM_ID
    if not exam_id:
        raise HTTPException(status_code=400, detail="시험 ID가 설정되지 않았습니다 (EXAM_ID).")
    try:
        start_data = await request.app.state.exam_client.start_exam(exam_id)
    except TransportError:
        raise HTTPException(status_code=502, detail="시험을 시작하지 못했습니다. 다시 시도해 주세요.")
    return _open_exam(request, start_data)


@router.post("/api/open-exam")
async def open_exam(request: Request, start_data: Optional[Dict[str, Any]] = Body(None)):
    """시험 시작 데이터로 세션을 열거나, 새로고침 후 저장된 진행 상태로 복구."""
    if start_data is None:
        start_data = session.get(request.state.session_id, "start_data")
    return _open_exam(request, start_data)


@router.get("/api/exam-state")
async def get_exam_state(request: Request):
    controller = _controller(request)
    state = controller.snapshot()
    state["route"] = session.get(request.state.session_id, "route")
    return state


@router.post("/api/save-answer")
async def save_answer(request: Request, body: SaveAnswerBody):
    controller = _active_controller(request)
    saved = controller.select(str(body.question_id), body.option_index)
    return {"ok": True, "saved": saved, "answered_count": len(controller.progress.answers)}


@router.post("/api/next")
async def next_question(request: Request):
    controller = _active_controller(request)
    moved = controller.next()
    return {"ok": True, "moved": moved, "index": controller.progress.current_index}


@router.post("/api/previous")
async def previous_question(request: Request):
    controller = _active_controller(request)
    moved = controller.previous()
    return {"ok": True, "moved": moved, "index": controller.progress.current_index}


@router.post("/api/submit-exam")
async def submit_exam(request: Request):
    controller = _controller(request)
    result = await controller.submit(auto=False)
    return {
        "ok": True,
        "route": session.get(request.state.session_id, "route"),
        "result": result.to_response() if result else None,
    }


@router.get("/api/results/{submission_id}")
async def get_result(request: Request, submission_id: str):
    sid = request.state.session_id
    preloaded: SubmissionResult | None = session.get(sid, "result")
    if preloaded is not None and session.get(sid, "route") == f"/result/{submission_id}":
        return preloaded.to_response()

    try:
        result = await request.app.state.exam_client.fetch_result(submission_id)
    except TransportError:
        raise HTTPException(status_code=502, detail="결과를 불러오지 못했습니다. 다시 시도해 주세요.")
    return result.to_response()


@router.post("/api/reset")
async def reset_session(request: Request):
    session.reset(request.state.session_id)
    return {"ok": True}
