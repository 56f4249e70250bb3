from datetime import datetime
from sqlalchemy import Column, Integer, String, DateTime, ForeignKey
from config.db import Base
from models import status

DEFAULT_FOLDER_NAME = "Transfer"


class TransferFolder(Base):
    __tablename__ = "transfer_folders"

    id = Column(Integer, primary_key=True, autoincrement=True)

    url = Column(String(1000), nullable=False)
    name = Column(String(255), nullable=False, default=DEFAULT_FOLDER_NAME)
    path = Column(String(1000), nullable=False, default="")  # 상위 폴더 이름 기준 경로
    parent_id = Column(Integer, ForeignKey("transfer_folders.id"), nullable=True)

    status = Column(String(20), nullable=False, default=status.PENDING)  # PENDING / SCANNING / COMPLETED / FAILED

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    @classmethod
    def create_new(cls, url: str, name: str | None = None, path: str | None = None,
                   parent_id: int | None = None) -> "TransferFolder":
        return cls(
            url=url,
            name=name or DEFAULT_FOLDER_NAME,
            path=path or "",
            parent_id=parent_id,
            status=status.PENDING,
        )

    def mark_as_scanning(self):
        self.status = status.SCANNING

    def mark_as_completed(self):
        self.status = status.COMPLETED

    def mark_as_failed(self):
        self.status = status.FAILED

    def update_name(self, name: str):
        self.name = name
        if not self.path:
            self.path = name

    @property
    def destination(self) -> str:
        return self.path or self.name

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "url": self.url,
            "name": self.name,
            "path": self.path,
            "parentId": self.parent_id,
            "status": self.status,
            "createdAt": self.created_at,
            "updatedAt": self.updated_at,
        }

    def __repr__(self):
        return f"<TransferFolder(id={self.id}, name={self.name}, status={self.status})>"
