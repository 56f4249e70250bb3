import os

from config.settings import DOWNLOADS_DIR, PROFILE_DIR

LOG_DIR = os.getenv("LOG_DIR", "logs")
LOG_FILE = os.path.join(LOG_DIR, "system.log")


def ensure_directories():
    for d in (
        DOWNLOADS_DIR,
        PROFILE_DIR,
        LOG_DIR,
    ):
        os.makedirs(d, exist_ok=True)
