import os
import sys
import tempfile
from pathlib import Path

import pytest

# Ensure tests can import project packages regardless of how pytest is invoked.
ROOT = Path(__file__).resolve().parents[1]
ROOT_STR = str(ROOT)
if ROOT_STR not in sys.path:
    sys.path.insert(0, ROOT_STR)

# keep the module-level engine away from the working tree
os.environ.setdefault("DATABASE_URL", f"sqlite:///{tempfile.gettempdir()}/transfer-test.db")
os.environ.setdefault("LOG_DIR", tempfile.mkdtemp(prefix="transfer-logs-"))

from sqlalchemy import create_engine  # noqa: E402
from sqlalchemy.orm import sessionmaker  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

from config.db import init_db  # noqa: E402
from pipeline.job_queue import JobQueue  # noqa: E402
from pipeline.repositories import FileRepository, FolderRepository  # noqa: E402


@pytest.fixture
def session_factory():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    init_db(bind=engine)
    factory = sessionmaker(autocommit=False, autoflush=False, expire_on_commit=False, bind=engine)
    yield factory
    engine.dispose()


@pytest.fixture
def folders(session_factory):
    return FolderRepository(session_factory)


@pytest.fixture
def files(session_factory):
    return FileRepository(session_factory)


@pytest.fixture
def queue(session_factory):
    return JobQueue(session_factory)
