import asyncio
import logging
from datetime import datetime

from config import settings
from config.paths import ensure_directories
from pipeline import state
from pipeline.job_queue import FILE_QUEUE, FOLDER_QUEUE, JobQueue
from pipeline.repositories import FileRepository, FolderRepository
from pipeline.worker import QueueWorker
from services.browser.folder_crawler import FolderCrawler
from services.browser.session import SessionManager
from services.browser.stream_locator import StreamLocator
from services.media.downloader import ParallelDownloader
from services.media.merger import Merger
from services.media.process_runner import AsyncProcessRunner
from services.media.uploader import Uploader
from workers.file_process import FileProcessWorker
from workers.folder_scan import FolderScanWorker

logger = logging.getLogger("pipeline")


def _headless_setting():
    # blank in .env means "decide from the saved profile"
    raw = (settings.BROWSER_HEADLESS or "").strip()
    if not raw:
        return None
    return settings._as_bool(raw)


def build_workers(session: SessionManager, queue: JobQueue):
    folders = FolderRepository()
    files = FileRepository()
    runner = AsyncProcessRunner()

    scan_worker = FolderScanWorker(
        folders, files, queue,
        crawler=FolderCrawler(session),
    )
    file_worker = FileProcessWorker(
        folders, files, queue,
        locator=StreamLocator(session),
        downloader=ParallelDownloader(runner),
        merger=Merger(runner),
        uploader=Uploader(runner),
    )

    return [
        QueueWorker(queue, FOLDER_QUEUE, scan_worker.process,
                    concurrency=settings.SCAN_CONCURRENCY,
                    poll_interval=settings.QUEUE_POLL_SECONDS),
        # one file at a time: shared session and provider rate limits
        QueueWorker(queue, FILE_QUEUE, file_worker.process,
                    concurrency=1,
                    poll_interval=settings.QUEUE_POLL_SECONDS),
    ]


async def start_pipeline():
    if state.tasks:
        logger.warning("Pipeline already running")
        return

    logger.info("🚀 Transfer Pipeline Starting...")

    ensure_directories()

    session = state.session or SessionManager(headless=_headless_setting())
    # no session means nothing else can work
    await session.ensure_ready()

    queue = state.queue or JobQueue(remove_on_complete=settings.QUEUE_REMOVE_ON_COMPLETE)
    queue.requeue_active()

    stop_event = asyncio.Event()
    workers = build_workers(session, queue)

    state.session = session
    state.queue = queue
    state.stop_event = stop_event
    state.tasks = [asyncio.create_task(w.run(stop_event)) for w in workers]
    state.started_at = datetime.now()

    logger.info("✅ Pipeline running")


async def stop_pipeline():
    if not state.tasks:
        return

    logger.info("🛑 Shutting down pipeline...")
    state.stop_event.set()
    await asyncio.gather(*state.tasks, return_exceptions=True)

    state.tasks = []
    state.stop_event = None
    state.started_at = None

    if state.session is not None:
        await state.session.shutdown()

    logger.info("✅ Pipeline stopped cleanly")


async def restart_pipeline():
    logger.info("🔁 Restarting pipeline...")
    await stop_pipeline()
    await start_pipeline()
    logger.info("✅ Pipeline restarted")
