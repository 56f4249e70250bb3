# logging_config.py
import logging
import os
from logging.handlers import RotatingFileHandler

from config.paths import LOG_FILE

FORMAT = "[%(asctime)s] [%(levelname)s] [%(name)s] %(message)s"


def setup_logging(level=logging.INFO, log_file: str = LOG_FILE):
    os.makedirs(os.path.dirname(log_file) or ".", exist_ok=True)

    handler = RotatingFileHandler(
        log_file,
        maxBytes=10 * 1024 * 1024,
        backupCount=5,
        encoding="utf-8"
    )

    formatter = logging.Formatter(FORMAT)
    handler.setFormatter(formatter)

    console = logging.StreamHandler()  # 콘솔도 같이
    console.setFormatter(formatter)

    logging.basicConfig(
        level=level,
        handlers=[handler, console],
        force=True,
    )
