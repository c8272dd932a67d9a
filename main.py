"""
main.py — CBT 시험 세션 서버 진입점
"""

import logging
import sys

import uvicorn

from config import DEFAULT_HOST, DEFAULT_PORT, LOG_FILE

# ── 로깅 설정 ────────────────────────────────────────────────────────────────
LOG_FORMAT = '%(asctime)s [%(levelname)s] %(name)s: %(message)s'


def setup_logging(level: int = logging.INFO) -> None:
    try:
        logging.basicConfig(
            level=level,
            format=LOG_FORMAT,
            handlers=[
                logging.FileHandler(LOG_FILE, encoding='utf-8'),
                logging.StreamHandler(sys.stdout)
            ]
        )
    except PermissionError:
        # 로그 파일 점유 시 콘솔 출력만 사용
        logging.basicConfig(level=level, format=LOG_FORMAT)


logger = logging.getLogger(__name__)


def main() -> None:
    setup_logging()
    logger.info("=== CBT Exam Session Server Started ===")

    from api.app import create_app

    app = create_app()
    try:
        uvicorn.run(app, host=DEFAULT_HOST, port=DEFAULT_PORT, log_level="warning")
    except KeyboardInterrupt:
        logger.info("사용자에 의해 종료되었습니다.")


if __name__ == "__main__":
    main()
