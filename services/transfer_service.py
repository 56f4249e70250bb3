# services/transfer_service.py
import logging
from typing import List, Optional

from config import settings
from models.transfer_file import TransferFile
from models.transfer_folder import TransferFolder
from pipeline.job_queue import FILE_QUEUE, FOLDER_QUEUE, PROCESS_FILE, SCAN_FOLDER, JobQueue
from pipeline.repositories import FileRepository, FolderRepository
from services.errors import NotFound

logger = logging.getLogger("transfer.service")


class TransferService:
    def __init__(self, folders: FolderRepository, files: FileRepository,
                 queue: JobQueue, max_retries: int = settings.MAX_RETRIES):
        self.folders = folders
        self.files = files
        self.queue = queue
        self.max_retries = max_retries

    def create_folder_scan(self, url: str, name: Optional[str] = None) -> TransferFolder:
        logger.info(f"Creating transfer folder: {url}")

        folder = self.folders.create(TransferFolder.create_new(url=url, name=name))
        self.queue.add(FOLDER_QUEUE, SCAN_FOLDER, {
            "folderId": folder.id,
            "folderUrl": folder.url,
        })

        logger.info(f"Folder {folder.id} created and queued for scanning")
        return folder

    def list_folders(self) -> List[TransferFolder]:
        return self.folders.list_all()

    def list_folder_files(self, folder_id: int) -> List[TransferFile]:
        if self.folders.get(folder_id) is None:
            raise NotFound(f"Folder {folder_id} not found")
        return self.files.find_by_folder_id(folder_id)

    def process_pending_files(self) -> int:
        queued = 0
        for file in self.files.find_pending_files():
            data = {"fileId": file.id}
            if self.queue.has_open(FILE_QUEUE, PROCESS_FILE, data):
                continue
            self.queue.add(FILE_QUEUE, PROCESS_FILE, data)
            queued += 1

        logger.info(f"Queued {queued} files for processing")
        return queued

    def retry_failed_files(self) -> dict:
        retried = []
        for file in self.files.find_failed_files():
            if not file.can_retry(self.max_retries):
                logger.warning(f"File {file.id} reached max retries ({file.retry_count})")
                continue
            self._requeue(file)
            retried.append(file)

        logger.info(f"Queued {len(retried)} failed files for retry")
        return {
            "count": len(retried),
            "files": [
                {"id": f.id, "name": f.name, "originalUrl": f.original_url}
                for f in retried
            ],
        }

    def retry_file(self, file_id: int) -> bool:
        file = self.files.get(file_id)
        if file is None or not file.can_retry(self.max_retries):
            logger.warning(f"File {file_id} not found or not retryable")
            return False

        self._requeue(file)
        logger.info(f"Queued file {file_id} for retry")
        return True

    def _requeue(self, file: TransferFile):
        file.reset_for_retry()
        self.files.update(file)
        self.queue.add(FILE_QUEUE, PROCESS_FILE, {"fileId": file.id})
