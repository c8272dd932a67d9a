import os

# 기본 디렉토리 설정
BASE_DIR = os.path.dirname(os.path.abspath(__file__))

# 경로 설정
LOG_FILE = os.getenv("LOG_FILE", os.path.join(BASE_DIR, "launch.log"))

# 서버 설정
DEFAULT_HOST = os.getenv("HOST", "127.0.0.1")
DEFAULT_PORT = int(os.getenv("PORT", "8000"))

# 원격 시험 서버 설정
EXAM_API_BASE_URL = os.getenv("EXAM_API_BASE_URL", "http://localhost:5000/api")
EXAM_API_TOKEN = os.getenv("EXAM_API_TOKEN", "")
EXAM_ID = os.getenv("EXAM_ID", "")
HTTP_TIMEOUT = float(os.getenv("HTTP_TIMEOUT", "30"))

# 시험 진행 설정
TICK_INTERVAL = float(os.getenv("TICK_INTERVAL", "1.0"))   # 타이머 틱 간격 (초)
PROGRESS_STORE_PATH = os.getenv("PROGRESS_STORE_PATH", "")  # 비어 있으면 메모리 저장소

# 세션 설정
SESSION_TTL = int(os.getenv("SESSION_TTL", "10800"))                 # 3시간
SESSION_CLEANUP_INTERVAL = int(os.getenv("SESSION_CLEANUP_INTERVAL", "300"))  # 5분
