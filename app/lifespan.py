from contextlib import asynccontextmanager
import logging

from config.db import init_db
from pipeline.runner import start_pipeline, stop_pipeline

logger = logging.getLogger("lifespan")


@asynccontextmanager
async def lifespan(app):
    logger.info("🚀 FastAPI startup")
    init_db()
    await start_pipeline()

    yield

    logger.info("🛑 FastAPI shutdown")
    await stop_pipeline()
