import asyncio
import logging
import os
from typing import Dict, List, Optional

from config import settings
from services.errors import DownloadIntegrityError, TransferError
from services.media.process_runner import AsyncProcessRunner, ProcessRunner
from services.utils.file_ops import file_size, format_mb

logger = logging.getLogger("transfer.download")


def _header(headers: Dict[str, str], name: str) -> Optional[str]:
    for key, value in headers.items():
        if key.lower() == name:
            return value
    return None


class ParallelDownloader:
    """
    aria2c 멀티 커넥션 다운로드

    Video and audio of one item are fetched concurrently by ``fetch_pair``.
    """

    def __init__(self, runner: Optional[ProcessRunner] = None,
                 binary: str = settings.ARIA2C_BIN,
                 connections: int = settings.ARIA2C_CONNECTIONS,
                 min_bytes: int = settings.MIN_DOWNLOAD_BYTES,
                 timeout: int = settings.DOWNLOAD_TIMEOUT):
        self.runner = runner or AsyncProcessRunner()
        self.binary = binary
        self.connections = connections
        self.min_bytes = min_bytes
        self.timeout = timeout

    def build_args(self, url: str, headers: Dict[str, str], output_path: str) -> List[str]:
        args = [
            self.binary,
            f"--max-connection-per-server={self.connections}",
            f"--split={self.connections}",
            "--min-split-size=1M",
            "--allow-overwrite=true",
            "--auto-file-renaming=false",
            "--check-certificate=false",
            "--console-log-level=warn",
            "--timeout=60",
            "--max-tries=5",
            f"--dir={os.path.dirname(os.path.abspath(output_path))}",
            f"--out={os.path.basename(output_path)}",
        ]

        for name, label in (("cookie", "Cookie"), ("user-agent", "User-Agent"), ("referer", "Referer")):
            value = _header(headers, name)
            if value:
                args.append(f"--header={label}: {value}")

        args.append(url)
        return args

    async def fetch(self, url: str, headers: Dict[str, str], output_path: str) -> int:
        label = os.path.basename(output_path)
        logger.info(f"[Download] Starting {label}")

        try:
            result = await self.runner.run(
                self.build_args(url, headers, output_path),
                timeout=self.timeout,
            )
            size = file_size(output_path)

            if not result.ok:
                logger.warning(f"[Download] {label} exited with {result.exit_code}: {result.tail()}")

            # exit status alone is not trusted: an expired locator returns a tiny error page
            if size < self.min_bytes:
                raise DownloadIntegrityError(
                    f"File too small: {max(size, 0)} bytes for {label} "
                    f"(exit {result.exit_code}). Likely an error page."
                )

            logger.info(f"[Download] {label} finished. Size: {format_mb(size)}")
            return size

        except Exception:
            partial = file_size(output_path)
            if partial >= 0:
                logger.error(f"[Download] {label} failed, partial file {format_mb(partial)}")
            raise

    async def fetch_pair(self, video_url: str, audio_url: str, headers: Dict[str, str],
                         video_path: str, audio_path: str):
        results = await asyncio.gather(
            self.fetch(video_url, headers, video_path),
            self.fetch(audio_url, headers, audio_path),
            return_exceptions=True,
        )

        errors = [r for r in results if isinstance(r, BaseException)]
        if errors:
            error = errors[0]
            if isinstance(error, TransferError):
                raise error
            raise TransferError(f"Download failed: {error}") from error

        return tuple(results)
