# pipeline/job_queue.py
"""
SQL 기반 영구 작업 큐

Jobs live in the ``queue_jobs`` table so that pending scans and downloads
survive a restart. Payloads are small JSON dicts of ids and urls.
"""

import json
import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, Optional

from sqlalchemy import func
from sqlalchemy.orm import sessionmaker

from config.db import SessionLocal
from models import queue_job
from models.queue_job import QueueJob

logger = logging.getLogger("transfer.queue")

FOLDER_QUEUE = "folder-scan"
FILE_QUEUE = "file-process"

SCAN_FOLDER = "scan-folder"
SCAN_SUBFOLDER = "scan-subfolder"
PROCESS_FILE = "process-file"


@dataclass
class Job:
    id: int
    queue_name: str
    name: str
    data: Dict = field(default_factory=dict)
    attempts: int = 0


def _to_job(row: QueueJob) -> Job:
    return Job(
        id=row.id,
        queue_name=row.queue_name,
        name=row.name,
        data=json.loads(row.payload or "{}"),
        attempts=row.attempts or 0,
    )


class JobQueue:
    def __init__(self, session_factory: sessionmaker = SessionLocal,
                 remove_on_complete: bool = False):
        self.session_factory = session_factory
        # completed rows are only history; failed rows are kept for inspection
        self.remove_on_complete = remove_on_complete

    def add(self, queue_name: str, name: str, data: Dict) -> Job:
        db = self.session_factory()
        try:
            row = QueueJob(
                queue_name=queue_name,
                name=name,
                payload=json.dumps(data),
                status=queue_job.QUEUED,
            )
            db.add(row)
            db.commit()
            db.refresh(row)
            logger.info(f"[QUEUE] {queue_name} <- {name} #{row.id} {data}")
            return _to_job(row)
        except Exception:
            db.rollback()
            raise
        finally:
            db.close()

    def claim(self, queue_name: str) -> Optional[Job]:
        """Oldest queued job of ``queue_name``, switched to active."""
        db = self.session_factory()
        try:
            row = (
                db.query(QueueJob)
                .filter(
                    QueueJob.queue_name == queue_name,
                    QueueJob.status == queue_job.QUEUED,
                )
                .order_by(QueueJob.id.asc())
                .first()
            )
            if row is None:
                return None

            updated = (
                db.query(QueueJob)
                .filter(QueueJob.id == row.id, QueueJob.status == queue_job.QUEUED)
                .update(
                    {
                        QueueJob.status: queue_job.ACTIVE,
                        QueueJob.attempts: QueueJob.attempts + 1,
                        QueueJob.updated_at: datetime.utcnow(),
                    },
                    synchronize_session=False,
                )
            )
            db.commit()
            if updated != 1:
                return None

            job = _to_job(row)
            job.attempts += 1
            return job
        except Exception:
            db.rollback()
            raise
        finally:
            db.close()

    def complete(self, job_id: int):
        if self.remove_on_complete:
            self.remove(job_id)
            return
        self._set_status(job_id, queue_job.COMPLETED)

    def fail(self, job_id: int, error: str):
        self._set_status(job_id, queue_job.FAILED, error=error)

    def remove(self, job_id: int) -> bool:
        db = self.session_factory()
        try:
            deleted = db.query(QueueJob).filter(QueueJob.id == job_id).delete()
            db.commit()
            return deleted > 0
        except Exception:
            db.rollback()
            raise
        finally:
            db.close()

    def has_open(self, queue_name: str, name: str, data: Dict) -> bool:
        """True when an identical job is still queued or running."""
        db = self.session_factory()
        try:
            return (
                db.query(QueueJob.id)
                .filter(
                    QueueJob.queue_name == queue_name,
                    QueueJob.name == name,
                    QueueJob.payload == json.dumps(data),
                    QueueJob.status.in_([queue_job.QUEUED, queue_job.ACTIVE]),
                )
                .first()
                is not None
            )
        finally:
            db.close()

    def requeue_active(self, queue_name: Optional[str] = None) -> int:
        """Put jobs left active by a dead process back in line."""
        db = self.session_factory()
        try:
            query = db.query(QueueJob).filter(QueueJob.status == queue_job.ACTIVE)
            if queue_name:
                query = query.filter(QueueJob.queue_name == queue_name)
            count = query.update(
                {QueueJob.status: queue_job.QUEUED, QueueJob.updated_at: datetime.utcnow()},
                synchronize_session=False,
            )
            db.commit()
            if count:
                logger.warning(f"[QUEUE] requeued {count} stale active job(s)")
            return count
        except Exception:
            db.rollback()
            raise
        finally:
            db.close()

    def counts(self) -> Dict[str, Dict[str, int]]:
        db = self.session_factory()
        try:
            rows = (
                db.query(QueueJob.queue_name, QueueJob.status, func.count(QueueJob.id))
                .group_by(QueueJob.queue_name, QueueJob.status)
                .all()
            )
        finally:
            db.close()

        result: Dict[str, Dict[str, int]] = {}
        for queue_name, job_status, count in rows:
            result.setdefault(queue_name, {})[job_status] = count
        return result

    def _set_status(self, job_id: int, job_status: str, error: Optional[str] = None):
        db = self.session_factory()
        try:
            # a removed job is simply gone
            db.query(QueueJob).filter(QueueJob.id == job_id).update(
                {
                    QueueJob.status: job_status,
                    QueueJob.error: error,
                    QueueJob.updated_at: datetime.utcnow(),
                },
                synchronize_session=False,
            )
            db.commit()
        except Exception:
            db.rollback()
            raise
        finally:
            db.close()
