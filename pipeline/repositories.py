# pipeline/repositories.py
"""
Folder / File 저장소

Each call opens its own session and closes it before returning, so the
returned rows are detached snapshots (``expire_on_commit=False``). Callers
mutate them through the entity methods and hand them back to ``update``.
"""

from typing import Iterable, List, Optional

from sqlalchemy.orm import sessionmaker

from config.db import SessionLocal
from models import status
from models.transfer_file import TransferFile
from models.transfer_folder import TransferFolder


class _Repository:
    model = None

    def __init__(self, session_factory: sessionmaker = SessionLocal):
        self.session_factory = session_factory

    def create(self, entity):
        db = self.session_factory()
        try:
            db.add(entity)
            db.commit()
            db.refresh(entity)
            return entity
        except Exception:
            db.rollback()
            raise
        finally:
            db.close()

    def get(self, entity_id) -> Optional[object]:
        db = self.session_factory()
        try:
            return db.get(self.model, entity_id)
        finally:
            db.close()

    def update(self, entity):
        db = self.session_factory()
        try:
            merged = db.merge(entity)
            db.commit()
            db.refresh(merged)
            return merged
        except Exception:
            db.rollback()
            raise
        finally:
            db.close()

    def delete(self, entity_id) -> bool:
        db = self.session_factory()
        try:
            row = db.get(self.model, entity_id)
            if row is None:
                return False
            db.delete(row)
            db.commit()
            return True
        except Exception:
            db.rollback()
            raise
        finally:
            db.close()

    def _find(self, *criteria) -> list:
        db = self.session_factory()
        try:
            return (
                db.query(self.model)
                .filter(*criteria)
                .order_by(self.model.created_at.asc(), self.model.id.asc())
                .all()
            )
        finally:
            db.close()


class FolderRepository(_Repository):
    model = TransferFolder

    def list_all(self) -> List[TransferFolder]:
        return self._find()

    def find_children(self, parent_id: int) -> List[TransferFolder]:
        return self._find(TransferFolder.parent_id == parent_id)


class FileRepository(_Repository):
    model = TransferFile

    def create_many(self, entities: Iterable[TransferFile]) -> List[TransferFile]:
        entities = list(entities)
        if not entities:
            return []

        db = self.session_factory()
        try:
            db.add_all(entities)
            db.commit()
            for entity in entities:
                db.refresh(entity)
            return entities
        except Exception:
            db.rollback()
            raise
        finally:
            db.close()

    def find_by_folder_id(self, folder_id: int) -> List[TransferFile]:
        return self._find(TransferFile.folder_id == folder_id)

    def find_pending_files(self) -> List[TransferFile]:
        return self._find(TransferFile.status == status.PENDING)

    def find_failed_files(self) -> List[TransferFile]:
        return self._find(TransferFile.status == status.FAILED)
