from fastapi import APIRouter
from datetime import datetime

from pipeline import state
from pipeline.job_queue import JobQueue
from pipeline.runner import (
    start_pipeline,
    stop_pipeline,
    restart_pipeline,
)

router = APIRouter(prefix="/pipeline", tags=["pipeline"])


# -------------------------
# 상태 확인
# -------------------------
@router.get("/status")
def pipeline_status():
    running = bool(state.tasks)
    alive = running and all(not t.done() for t in state.tasks)

    uptime = None
    if state.started_at:
        uptime = (datetime.now() - state.started_at).total_seconds()

    queue = state.queue or JobQueue()

    return {
        "running": running,
        "workers_alive": alive,
        "browser_running": bool(state.session and state.session.is_running),
        "started_at": state.started_at,
        "uptime_seconds": uptime,
        "queues": queue.counts(),
    }


# -------------------------
# 시작
# -------------------------
@router.post("/start")
async def pipeline_start():
    if state.tasks:
        return {
            "status": "already_running",
            "timestamp": datetime.now(),
        }

    await start_pipeline()
    return {
        "status": "started",
        "timestamp": datetime.now(),
    }


# -------------------------
# 중지
# -------------------------
@router.post("/stop")
async def pipeline_stop():
    if not state.tasks:
        return {
            "status": "already_stopped",
            "timestamp": datetime.now(),
        }

    await stop_pipeline()
    return {
        "status": "stopped",
        "timestamp": datetime.now(),
    }


# -------------------------
# 재시작
# -------------------------
@router.post("/restart")
async def pipeline_restart():
    await restart_pipeline()
    return {
        "status": "restarted",
        "timestamp": datetime.now(),
    }
