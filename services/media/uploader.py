import logging
import os
from typing import List, Optional

from config import settings
from services.errors import UploadFailure
from services.media.process_runner import AsyncProcessRunner, ProcessRunner
from services.utils.file_ops import rename_file

logger = logging.getLogger("transfer.upload")


def canonical_file_name(name: str, local_path: str) -> str:
    """``name`` with the container suffix of ``local_path`` (clip -> clip.mp4)."""
    suffix = os.path.splitext(local_path)[1]
    if suffix and not name.lower().endswith(suffix.lower()):
        return f"{name}{suffix}"
    return name


class Uploader:
    """rclone copy 로 대상 드라이브 업로드"""

    def __init__(self, runner: Optional[ProcessRunner] = None,
                 binary: str = settings.RCLONE_BIN,
                 remote: str = settings.RCLONE_REMOTE,
                 config_path: Optional[str] = settings.RCLONE_CONFIG,
                 timeout: int = settings.UPLOAD_TIMEOUT):
        self.runner = runner or AsyncProcessRunner()
        self.binary = binary
        self.remote = remote
        self.config_path = config_path
        self.timeout = timeout

    def destination(self, folder_name: str) -> str:
        return f"{self.remote}:{folder_name}"

    def build_args(self, local_path: str, folder_name: str) -> List[str]:
        args = [
            self.binary,
            "copy",
            local_path,
            self.destination(folder_name),
            "--timeout", "5m",
            "--retries", "3",
        ]
        if self.config_path:
            args += ["--config", self.config_path]
        return args

    async def upload(self, local_path: str, destination_folder_name: str, canonical_name: str) -> str:
        target_name = canonical_file_name(canonical_name, local_path)

        file_to_upload = local_path
        try:
            file_to_upload = rename_file(local_path, target_name)
            logger.info(f"[Rclone] Renamed to: {target_name}")
        except OSError as e:
            logger.warning(f"[Rclone] Failed to rename: {e}")

        dest = self.destination(destination_folder_name)
        logger.info(f"[Rclone] Uploading {os.path.basename(file_to_upload)} to {dest}...")

        result = await self.runner.run(
            self.build_args(file_to_upload, destination_folder_name),
            timeout=self.timeout,
        )
        if result.stdout:
            logger.info(result.stdout.strip())
        if not result.ok:
            logger.error(f"[Rclone] Upload failed: {result.tail()}")
            raise UploadFailure(f"rclone exited with {result.exit_code}: {result.tail()}")

        logger.info(f"[Rclone] Upload successful: {os.path.basename(file_to_upload)}")
        return file_to_upload
