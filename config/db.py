from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, declarative_base
from config.settings import database_url, validate_settings

validate_settings()

DB_URL = database_url()

_engine_kwargs = {"pool_pre_ping": True, "echo": False}
if DB_URL.startswith("sqlite"):
    # workers and the API share one process
    _engine_kwargs["connect_args"] = {"check_same_thread": False}
else:
    _engine_kwargs["pool_recycle"] = 3600

engine = create_engine(DB_URL, **_engine_kwargs)

SessionLocal = sessionmaker(
    autocommit=False,
    autoflush=False,
    expire_on_commit=False,
    bind=engine
)

Base = declarative_base()


def init_db(bind=None):
    # models must be imported so their tables register on Base.metadata
    from models import transfer_folder, transfer_file, queue_job  # noqa: F401

    Base.metadata.create_all(bind=bind or engine)
