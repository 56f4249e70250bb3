import logging
from typing import List, Optional

from config import settings
from services.errors import MergeFailure
from services.media.process_runner import AsyncProcessRunner, ProcessRunner

logger = logging.getLogger("transfer.merge")


class Merger:
    def __init__(self, runner: Optional[ProcessRunner] = None,
                 binary: str = settings.FFMPEG_BIN,
                 timeout: int = settings.MERGE_TIMEOUT):
        self.runner = runner or AsyncProcessRunner()
        self.binary = binary
        self.timeout = timeout

    def build_args(self, video_path: str, audio_path: str, output_path: str) -> List[str]:
        return [
            self.binary,
            "-hide_banner",
            "-loglevel", "error",
            "-i", video_path,
            "-i", audio_path,
            "-c:v", "copy",
            "-c:a", "aac",
            "-y",
            output_path,
        ]

    async def merge(self, video_path: str, audio_path: str, output_path: str) -> str:
        logger.info(f"[Merge] ffmpeg -> {output_path}")

        result = await self.runner.run(
            self.build_args(video_path, audio_path, output_path),
            timeout=self.timeout,
        )
        if not result.ok:
            raise MergeFailure(f"ffmpeg exited with {result.exit_code}: {result.tail()}")

        return output_path
