import os

# 기본 디렉토리 설정
BASE_DIR = os.path.dirname(os.path.abspath(__file__))

# 경로 설정
DATA_DIR = os.getenv("ASSESSMENT_DATA_DIR", os.path.join(BASE_DIR, "data"))
LOG_FILE = os.path.join(BASE_DIR, "launch.log")
CATALOG_PATH = os.getenv("CATALOG_PATH", os.path.join(DATA_DIR, "tests.json"))
RESULTS_PATH = os.getenv("RESULTS_PATH", os.path.join(DATA_DIR, "results.json"))

# 서버 설정
DEFAULT_HOST = os.getenv("HOST", "127.0.0.1")
DEFAULT_PORT = int(os.getenv("PORT", "8000"))

# 타이머 설정
TICK_INTERVAL_SECONDS = float(os.getenv("TICK_INTERVAL_SECONDS", "1.0"))
TIME_WARNING_SECONDS = int(os.getenv("TIME_WARNING_SECONDS", "300"))  # 5분 이하이면 경고

# 세션 정리 설정
FINISHED_SESSION_TTL = int(os.getenv("FINISHED_SESSION_TTL", "3600"))  # 종료 후 1시간 보관
CLEANUP_INTERVAL_SECONDS = 300
