# workers/folder_scan.py
import logging

from config import settings
from models.transfer_file import TransferFile
from models.transfer_folder import TransferFolder
from pipeline.job_queue import (
    FILE_QUEUE,
    FOLDER_QUEUE,
    PROCESS_FILE,
    SCAN_SUBFOLDER,
    Job,
    JobQueue,
)
from pipeline.repositories import FileRepository, FolderRepository
from pipeline.worker import run_sync
from services.browser.folder_crawler import FolderCrawler
from services.errors import NotFound

logger = logging.getLogger("transfer.scan")


def child_path(parent_path: str, child_name: str) -> str:
    parent_path = (parent_path or "").strip("/")
    return f"{parent_path}/{child_name}" if parent_path else child_name


class FolderScanWorker:
    """
    scan-folder / scan-subfolder 작업 처리

    PENDING -> SCANNING -> COMPLETED | FAILED
    """

    def __init__(self, folders: FolderRepository, files: FileRepository,
                 queue: JobQueue, crawler: FolderCrawler,
                 auto_process: bool = settings.AUTO_PROCESS_FILES):
        self.folders = folders
        self.files = files
        self.queue = queue
        self.crawler = crawler
        self.auto_process = auto_process

    async def process(self, job: Job):
        folder_id = job.data["folderId"]
        folder_url = job.data["folderUrl"]
        logger.info(f"[Folder {folder_id}] Starting scan: {folder_url}")

        folder = await run_sync(self.folders.get, folder_id)
        if folder is None:
            raise NotFound(f"Folder {folder_id} not found")

        try:
            folder.mark_as_scanning()
            folder = await run_sync(self.folders.update, folder)

            listing = await self.crawler.crawl(folder_url)
            logger.info(f"[Folder {folder_id}] Found {len(listing.videos)} videos")

            created = await run_sync(self.files.create_many, [
                TransferFile.create_new(
                    folder_id=folder.id,
                    original_url=video.url,
                    name=video.name,
                )
                for video in listing.videos
            ])

            if listing.name:
                logger.info(f"[Folder {folder_id}] Folder name: {listing.name}")
                folder.update_name(listing.name)
                folder = await run_sync(self.folders.update, folder)

            for sub in listing.subfolders:
                child = await run_sync(
                    self.folders.create,
                    TransferFolder.create_new(
                        url=sub.url,
                        name=sub.name,
                        path=child_path(folder.destination, sub.name),
                        parent_id=folder.id,
                    )
                )
                await run_sync(self.queue.add, FOLDER_QUEUE, SCAN_SUBFOLDER, {
                    "folderId": child.id,
                    "folderUrl": child.url,
                    "parentId": folder.id,
                    "parentPath": folder.destination,
                })
                logger.info(f"[Folder {folder_id}] Subfolder queued: {child.path}")

            if self.auto_process:
                for file in created:
                    await run_sync(self.queue.add, FILE_QUEUE, PROCESS_FILE, {"fileId": file.id})

            folder.mark_as_completed()
            await run_sync(self.folders.update, folder)
            logger.info(f"[Folder {folder_id}] Scan completed successfully")

        except Exception as e:
            logger.error(f"[Folder {folder_id}] Scan failed: {e}")
            current = await run_sync(self.folders.get, folder_id)
            if current is not None:
                current.mark_as_failed()
                await run_sync(self.folders.update, current)
            raise
