# workers/file_process.py
import logging
import os
import uuid
from dataclasses import dataclass
from typing import Optional

from config import settings
from models import status
from pipeline.job_queue import Job, JobQueue
from pipeline.repositories import FileRepository, FolderRepository
from pipeline.worker import run_sync
from services.browser.stream_locator import StreamLocator
from services.errors import NotFound
from services.media.downloader import ParallelDownloader
from services.media.merger import Merger
from services.media.uploader import Uploader, canonical_file_name
from services.utils.file_ops import remove_files

logger = logging.getLogger("transfer.process")


@dataclass
class WorkFiles:
    video: str
    audio: str
    output: str
    final: Optional[str] = None

    @classmethod
    def for_token(cls, directory: str, token: str) -> "WorkFiles":
        return cls(
            video=os.path.join(directory, f"video_{token}.mp4"),
            audio=os.path.join(directory, f"audio_{token}.mp4"),
            output=os.path.join(directory, f"output_{token}.mp4"),
        )

    def all(self):
        return [p for p in (self.video, self.audio, self.output, self.final) if p]

    def last_known(self) -> str:
        return self.final or self.output


class FileProcessWorker:
    """
    process-file 작업 처리 (동시성 1)

    locate -> download x2 -> merge -> upload -> cleanup. Any stage failure
    is recorded on the file and the job is dropped from the queue; retries
    go through the retry endpoints.
    """

    def __init__(self, folders: FolderRepository, files: FileRepository,
                 queue: JobQueue, locator: StreamLocator,
                 downloader: ParallelDownloader, merger: Merger, uploader: Uploader,
                 work_dir: str = settings.DOWNLOADS_DIR):
        self.folders = folders
        self.files = files
        self.queue = queue
        self.locator = locator
        self.downloader = downloader
        self.merger = merger
        self.uploader = uploader
        self.work_dir = work_dir

    async def process(self, job: Job):
        file_id = job.data["fileId"]
        logger.info(f"[File {file_id}] Starting processing")

        file = await run_sync(self.files.get, file_id)
        if file is None:
            raise NotFound(f"File {file_id} not found")

        if file.status == status.COMPLETED:
            # duplicate job for a file that already made it
            logger.info(f"[File {file_id}] Already completed, skipping")
            return

        folder = await run_sync(self.folders.get, file.folder_id)
        if folder is None:
            raise NotFound(f"Folder {file.folder_id} not found")

        os.makedirs(self.work_dir, exist_ok=True)
        work = WorkFiles.for_token(self.work_dir, f"{file.id}_{uuid.uuid4().hex[:8]}")

        try:
            file.mark_as_processing()
            file = await run_sync(self.files.update, file)

            streams = await self.locator.locate(file.original_url)

            logger.info(f"[File {file_id}] Downloading streams...")
            await self.downloader.fetch_pair(
                streams.video_url, streams.audio_url, streams.headers,
                work.video, work.audio,
            )

            logger.info(f"[File {file_id}] Merging files with FFmpeg...")
            await self.merger.merge(work.video, work.audio, work.output)

            # renamed before upload; tracked so a failed upload still gets cleaned
            work.final = os.path.join(self.work_dir, canonical_file_name(file.name, work.output))
            work.final = await self.uploader.upload(work.output, folder.destination, file.name)

            file.local_path = work.final
            file.mark_as_completed()
            await run_sync(self.files.update, file)
            logger.info(f"[File {file_id}] Processing completed successfully")

        except Exception as e:
            logger.error(f"[File {file_id}] Processing failed: {e}")
            file.mark_as_failed(str(e) or type(e).__name__, local_path=work.last_known())
            await run_sync(self.files.update, file)

            # the failure lives on the file row now
            await run_sync(self.queue.remove, job.id)

        finally:
            remove_files(work.all())
