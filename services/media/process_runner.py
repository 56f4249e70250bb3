import asyncio
import logging
from dataclasses import dataclass
from typing import Optional, Sequence

logger = logging.getLogger("transfer.process")

TIMEOUT_EXIT_CODE = -9


@dataclass
class ProcessResult:
    exit_code: int
    stdout: str = ""
    stderr: str = ""
    timed_out: bool = False

    @property
    def ok(self) -> bool:
        return self.exit_code == 0 and not self.timed_out

    def tail(self, lines: int = 5) -> str:
        text = (self.stderr or self.stdout or "").strip()
        return "\n".join(text.splitlines()[-lines:])


class ProcessRunner:
    """Runs an external command and reports its exit code and output."""

    async def run(self, args: Sequence[str], timeout: Optional[float] = None) -> ProcessResult:
        raise NotImplementedError


class AsyncProcessRunner(ProcessRunner):
    async def run(self, args: Sequence[str], timeout: Optional[float] = None) -> ProcessResult:
        logger.debug(f"[EXEC] {' '.join(args)}")
        try:
            proc = await asyncio.create_subprocess_exec(
                *args,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
        except FileNotFoundError as e:
            return ProcessResult(exit_code=127, stderr=str(e))

        try:
            stdout, stderr = await asyncio.wait_for(proc.communicate(), timeout=timeout)
        except asyncio.TimeoutError:
            proc.kill()
            await proc.wait()
            logger.error(f"[EXEC] {args[0]} killed after {timeout}s")
            return ProcessResult(
                exit_code=TIMEOUT_EXIT_CODE,
                stderr=f"{args[0]} timed out after {timeout}s",
                timed_out=True,
            )

        return ProcessResult(
            exit_code=proc.returncode,
            stdout=stdout.decode("utf-8", errors="replace"),
            stderr=stderr.decode("utf-8", errors="replace"),
        )
