from datetime import datetime
from sqlalchemy import Column, Integer, String, Text, DateTime
from config.db import Base

QUEUED = "queued"
ACTIVE = "active"
COMPLETED = "completed"
FAILED = "failed"


class QueueJob(Base):
    __tablename__ = "queue_jobs"

    id = Column(Integer, primary_key=True, autoincrement=True)

    queue_name = Column(String(50), nullable=False, index=True)  # folder-scan / file-process
    name = Column(String(50), nullable=False)                     # scan-folder / scan-subfolder / process-file
    payload = Column(Text, nullable=False, default="{}")

    status = Column(String(20), nullable=False, default=QUEUED, index=True)
    attempts = Column(Integer, nullable=False, default=0)
    error = Column(Text, nullable=True)

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    def __repr__(self):
        return f"<QueueJob(id={self.id}, queue={self.queue_name}, name={self.name}, status={self.status})>"
