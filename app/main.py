import logging
from fastapi import FastAPI

from app.lifespan import lifespan
from app.api.pipeline import router as pipeline_router
from app.api.transfer import router as transfer_router
from app.api.logs import router as log_router
from config.logging_config import setup_logging

setup_logging()
logger = logging.getLogger("app")


def create_app(use_lifespan: bool = True) -> FastAPI:
    app = FastAPI(
        title="Drive Transfer Pipeline API",
        lifespan=lifespan if use_lifespan else None,
    )

    app.include_router(pipeline_router)
    app.include_router(transfer_router)
    app.include_router(log_router, prefix="/api")
    return app


app = create_app()
