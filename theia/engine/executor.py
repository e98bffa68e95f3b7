from __future__ import annotations

import asyncio
import contextlib
import logging
from typing import Sequence

logger = logging.getLogger(__name__)


class CommandExecutionError(Exception):
    """The external tool could not be started, timed out, or exited non-zero."""

    def __init__(
        self,
        command: str,
        message: str,
        returncode: int | None = None,
        stderr: str = "",
    ) -> None:
        super().__init__(f"{message}: {command}")
        self.command = command
        self.returncode = returncode
        self.stderr = stderr


class CommandExecutor:
    """Runs a platform command through the shell and returns its stdout."""

    def __init__(
        self,
        timeout: float = 30.0,
        benign_stderr: Sequence[str] = ("Permission denied",),
    ) -> None:
        self.timeout = timeout
        self.benign_stderr = tuple(benign_stderr)

    async def execute(self, command: str) -> str:
        try:
            proc = await asyncio.create_subprocess_shell(
                command,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
        except OSError as exc:
            raise CommandExecutionError(command, f"cannot start ({exc})") from exc

        try:
            out, err = await asyncio.wait_for(proc.communicate(), timeout=self.timeout)
        except asyncio.TimeoutError as exc:
            with contextlib.suppress(ProcessLookupError):
                proc.kill()
            await proc.wait()
            raise CommandExecutionError(
                command, f"timed out after {self.timeout:.0f}s"
            ) from exc

        stdout = out.decode(errors="replace")
        stderr = err.decode(errors="replace").strip()

        if proc.returncode != 0:
            raise CommandExecutionError(
                command,
                f"exited with status {proc.returncode}",
                returncode=proc.returncode,
                stderr=stderr,
            )

        # lsof warns about sockets it may not inspect; that is expected
        if stderr and not any(marker in stderr for marker in self.benign_stderr):
            logger.warning("Command %r wrote to stderr: %s", command, stderr)
        return stdout
