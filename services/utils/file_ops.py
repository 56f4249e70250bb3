import logging
import os
import shutil
from typing import Iterable, List

logger = logging.getLogger("transfer.files")


def rename_file(src: str, new_name: str) -> str:
    """Rename ``src`` inside its own directory. Returns the new path."""
    dest = os.path.join(os.path.dirname(src), new_name)
    if os.path.abspath(dest) == os.path.abspath(src):
        return src

    shutil.move(src, dest)
    return dest


def file_size(path: str) -> int:
    try:
        return os.path.getsize(path)
    except OSError:
        return -1


def remove_files(paths: Iterable[str]) -> List[str]:
    removed = []
    for path in paths:
        if not path or not os.path.exists(path):
            continue
        try:
            os.remove(path)
            removed.append(path)
            logger.info(f"[Cleanup] Deleted: {os.path.basename(path)}")
        except OSError as e:
            logger.warning(f"[Cleanup] Failed to delete {path}: {e}")
    return removed


def format_mb(size: int) -> str:
    return f"{size / 1024 / 1024:.2f} MB"
