# app/api/logs.py
from pathlib import Path
from typing import Optional

from fastapi import APIRouter, Query

from config.paths import LOG_FILE

router = APIRouter(tags=["logs"])


@router.get("/logs")
def read_logs(
    limit: int = Query(200, ge=1, le=5000),
    contains: Optional[str] = Query(None, description='e.g. "[File 12]" or "[Rclone]"'),
):
    """로그 tail 조회 (polling용)"""
    log_file = Path(LOG_FILE)
    if not log_file.exists():
        return {"logs": []}

    lines = log_file.read_text(encoding="utf-8", errors="ignore").splitlines()
    if contains:
        lines = [line for line in lines if contains in line]

    return {"logs": lines[-limit:]}
