# pipeline/state.py
from __future__ import annotations

import asyncio
from datetime import datetime

session = None          # services.browser.session.SessionManager
queue = None            # pipeline.job_queue.JobQueue
tasks: list[asyncio.Task] = []
stop_event: asyncio.Event | None = None
started_at: datetime | None = None
