"""
Blocking execution of the external Windows utilities the repair relies on.
"""

from __future__ import annotations

import subprocess
from dataclasses import dataclass
from typing import Optional, Protocol, Sequence

from text_assoc_repair.text_assoc_repair import logger as app_logger


@dataclass(frozen=True)
class CommandResult:
    returncode: Optional[int]
    stdout: str = ""
    stderr: str = ""

    @property
    def ok(self) -> bool:
        return self.returncode == 0

    def describe(self) -> str:
        """Short human-readable reason used in failure messages."""
        output = (self.stderr or self.stdout).strip()
        if self.returncode is None:
            return output or "command could not be started"
        if output:
            return f"exit code {self.returncode}: {output[-200:]}"
        return f"exit code {self.returncode}"


class CommandRunner(Protocol):
    def run(self, args: Sequence[str]) -> CommandResult:
        ...


class SubprocessRunner:
    """Runs each command to completion and captures its output."""

    def __init__(self, *, timeout: Optional[int] = 60) -> None:
        self.timeout = timeout
        self._logger = app_logger.get_logger()

    def run(self, args: Sequence[str]) -> CommandResult:
        cmd = [str(arg) for arg in args]
        self._logger.debug("Running: {}", " ".join(cmd))
        try:
            completed = subprocess.run(
                cmd,
                capture_output=True,
                text=True,
                timeout=self.timeout,
            )
        except (OSError, subprocess.SubprocessError) as exc:
            self._logger.debug("Command {} failed to start: {}", cmd[0], exc)
            return CommandResult(returncode=None, stderr=str(exc))
        return CommandResult(
            returncode=completed.returncode,
            stdout=completed.stdout.strip(),
            stderr=completed.stderr.strip(),
        )
