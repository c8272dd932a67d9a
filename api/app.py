"""
api/app.py — FastAPI 앱 인스턴스 + 세션 미들웨어 + 만료 세션 정리
"""

import asyncio
import logging
from contextlib import asynccontextmanager, suppress
from typing import Optional

from fastapi import FastAPI, Request, Response
from fastapi.middleware.cors import CORSMiddleware

import config
from api.routes import router
import api.session as session
from timed_exam.services.exam_client import ExamApiClient
from timed_exam.services.progress_store import ProgressStore, create_progress_store

SESSION_COOKIE = "cbt_session"

logger = logging.getLogger(__name__)


async def _cleanup_loop(interval: int) -> None:
    # 만료 세션 주기적 정리. 컨트롤러 타이머를 같은 이벤트 루프에서 정지해야 하므로 태스크로 실행
    while True:
        await asyncio.sleep(interval)
        removed = session.cleanup_expired()
        if removed:
            logger.info(f"만료 세션 {removed}개 정리")


def create_app(
    client: Optional[ExamApiClient] = None,
    store: Optional[ProgressStore] = None,
) -> FastAPI:

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info(f"🚀 CBT 시험 서버 시작 (시험 서버: {config.EXAM_API_BASE_URL})")
        cleanup = asyncio.create_task(_cleanup_loop(config.SESSION_CLEANUP_INTERVAL))
        yield
        cleanup.cancel()
        with suppress(asyncio.CancelledError):
            await cleanup
        session.close_all()
        logger.info("🛑 CBT 시험 서버 종료")

    app = FastAPI(title="CBT Exam Session", docs_url=None, redoc_url=None, lifespan=lifespan)
    app.state.exam_client = client or ExamApiClient(
        config.EXAM_API_BASE_URL,
        token=config.EXAM_API_TOKEN,
        timeout=config.HTTP_TIMEOUT,
    )
    app.state.progress_store = store or create_progress_store(config.PROGRESS_STORE_PATH)

    # CORS (모바일 브라우저 등 다양한 출처 허용)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # 세션 미들웨어: 쿠키에서 세션 ID를 읽고, 없으면 새로 발급
    @app.middleware("http")
    async def session_middleware(request: Request, call_next):
        sid = request.cookies.get(SESSION_COOKIE)
        if not sid or session.get_session(sid) is None:
            sid = session.create_session()

        request.state.session_id = sid
        response: Response = await call_next(request)
        response.set_cookie(
            key=SESSION_COOKIE,
            value=sid,
            httponly=True,
            samesite="lax",
            max_age=config.SESSION_TTL,
        )
        return response

    app.include_router(router)

    return app
