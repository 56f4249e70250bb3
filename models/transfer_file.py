from datetime import datetime
from sqlalchemy import Column, Integer, String, Text, DateTime, ForeignKey
from config.db import Base
from models import status


class TransferFile(Base):
    __tablename__ = "transfer_files"

    id = Column(Integer, primary_key=True, autoincrement=True)

    folder_id = Column(
        Integer,
        ForeignKey("transfer_folders.id", ondelete="CASCADE"),
        nullable=False
    )
    original_url = Column(String(1000), nullable=False)
    name = Column(String(255), nullable=False)

    status = Column(String(20), nullable=False, default=status.PENDING)
    retry_count = Column(Integer, nullable=False, default=0)
    error_log = Column(Text, nullable=True)
    local_path = Column(String(1000), nullable=True)

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    @classmethod
    def create_new(cls, folder_id: int, original_url: str, name: str) -> "TransferFile":
        return cls(
            folder_id=folder_id,
            original_url=original_url,
            name=name,
            status=status.PENDING,
            retry_count=0,
        )

    def mark_as_processing(self):
        self.status = status.PROCESSING

    def mark_as_completed(self):
        self.status = status.COMPLETED
        self.error_log = None

    def mark_as_failed(self, error: str, local_path: str | None = None):
        self.status = status.FAILED
        self.error_log = error
        self.retry_count = (self.retry_count or 0) + 1
        if local_path:
            self.local_path = local_path

    def reset_for_retry(self):
        """FAILED -> PENDING. retry_count is kept for auditing."""
        if self.status != status.FAILED:
            raise ValueError(f"file {self.id} is {self.status}, only FAILED files can be retried")
        self.status = status.PENDING
        self.error_log = None

    def can_retry(self, max_retries: int = 0) -> bool:
        if self.status != status.FAILED:
            return False
        return max_retries <= 0 or (self.retry_count or 0) < max_retries

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "folderId": self.folder_id,
            "originalUrl": self.original_url,
            "name": self.name,
            "status": self.status,
            "retryCount": self.retry_count,
            "errorLog": self.error_log,
            "localPath": self.local_path,
            "createdAt": self.created_at,
            "updatedAt": self.updated_at,
        }

    def __repr__(self):
        return f"<TransferFile(id={self.id}, name={self.name}, status={self.status})>"
