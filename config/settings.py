import os
from dotenv import load_dotenv
from urllib.parse import quote_plus

load_dotenv()  # .env 로드


def _as_bool(value, default: bool = False) -> bool:
    if value is None or not value.strip():
        return default
    return value.strip().lower() in ("1", "true", "yes", "y", "on")


# ==========================
# Database
# ==========================

DATABASE_URL = os.getenv("DATABASE_URL")

DB_HOST = os.getenv("DB_HOST")
DB_PORT = os.getenv("DB_PORT", "3306")
DB_NAME = os.getenv("DB_NAME")
DB_USER = os.getenv("DB_USER")
DB_PASSWORD = os.getenv("DB_PASSWORD")
DB_CHARSET = os.getenv("DB_CHARSET", "utf8mb4")


# ==========================
# Browser session
# ==========================

PROFILE_DIR = os.getenv("PROFILE_DIR", ".chrome-profile")
BROWSER_CHANNEL = os.getenv("BROWSER_CHANNEL", "chrome")
# unset -> headless only when a saved profile exists
BROWSER_HEADLESS = os.getenv("BROWSER_HEADLESS")
DRIVE_HOME_URL = os.getenv("DRIVE_HOME_URL", "https://drive.google.com/drive/my-drive")
DRIVE_REFERER = os.getenv("DRIVE_REFERER", "https://drive.google.com/")

CAPTURE_MAX_CHECKS = int(os.getenv("CAPTURE_MAX_CHECKS", "60"))
REDIRECT_MAX_ATTEMPTS = int(os.getenv("REDIRECT_MAX_ATTEMPTS", "5"))
FOLLOW_REDIRECTS = _as_bool(os.getenv("FOLLOW_REDIRECTS"), True)
SCAN_SCROLL_ROUNDS = int(os.getenv("SCAN_SCROLL_ROUNDS", "8"))
SCAN_SCREENSHOT_DIR = os.getenv("SCAN_SCREENSHOT_DIR")


# ==========================
# External tools
# ==========================

DOWNLOADS_DIR = os.getenv("DOWNLOADS_DIR", "downloads")

ARIA2C_BIN = os.getenv("ARIA2C_BIN", "aria2c")
ARIA2C_CONNECTIONS = int(os.getenv("ARIA2C_CONNECTIONS", "16"))
FFMPEG_BIN = os.getenv("FFMPEG_BIN", "ffmpeg")
RCLONE_BIN = os.getenv("RCLONE_BIN", "rclone")
RCLONE_REMOTE = os.getenv("RCLONE_REMOTE", "tyziiu")
RCLONE_CONFIG = os.getenv("RCLONE_CONFIG", os.path.join("config", "rclone.conf"))

MIN_DOWNLOAD_BYTES = int(os.getenv("MIN_DOWNLOAD_BYTES", "100000"))
DOWNLOAD_TIMEOUT = int(os.getenv("DOWNLOAD_TIMEOUT", "3600"))
MERGE_TIMEOUT = int(os.getenv("MERGE_TIMEOUT", "3600"))
UPLOAD_TIMEOUT = int(os.getenv("UPLOAD_TIMEOUT", "7200"))


# ==========================
# Queue / workers
# ==========================

QUEUE_POLL_SECONDS = float(os.getenv("QUEUE_POLL_SECONDS", "2"))
SCAN_CONCURRENCY = int(os.getenv("SCAN_CONCURRENCY", "2"))
AUTO_PROCESS_FILES = _as_bool(os.getenv("AUTO_PROCESS_FILES"), False)
MAX_RETRIES = int(os.getenv("MAX_RETRIES", "0"))  # 0 = unlimited
QUEUE_REMOVE_ON_COMPLETE = _as_bool(os.getenv("QUEUE_REMOVE_ON_COMPLETE"), True)


def database_url() -> str:
    if DATABASE_URL:
        return DATABASE_URL

    if DB_HOST:
        password = quote_plus(DB_PASSWORD or "")
        return (
            f"mysql+pymysql://{DB_USER}:{password}"
            f"@{DB_HOST}:{DB_PORT}/{DB_NAME}"
            f"?charset={DB_CHARSET}"
        )

    return "sqlite:///transfer.db"


def validate_settings():
    if DATABASE_URL or not DB_HOST:
        return

    missing = [
        k for k, v in {
            "DB_HOST": DB_HOST,
            "DB_NAME": DB_NAME,
            "DB_USER": DB_USER,
            "DB_PASSWORD": DB_PASSWORD,
        }.items() if not v
    ]
    if missing:
        raise RuntimeError(f"❌ 환경변수 누락: {', '.join(missing)}")
