"""
Read-back of the repaired values and the optional Explorer restart.
"""

from __future__ import annotations

import time
from typing import Callable, List

from core.command_runner import CommandRunner
from core.registry_store import RegistryStore, class_root_key, open_command_key
from shared.run_report import RunStage, StepOutcome
from text_assoc_repair.text_assoc_repair import logger as app_logger

SHELL_PROCESS = "explorer.exe"
RESTART_GRACE_SECONDS = 2.0


def verify_associations(registry: RegistryStore, primary_extension: str, prog_id: str) -> List[StepOutcome]:
    """Read back the primary extension's handler and the open command."""
    checks = [
        (f"{primary_extension} default", class_root_key(primary_extension)),
        (f"{prog_id} open command", open_command_key(prog_id)),
    ]
    logger = app_logger.get_logger()
    outcomes = []
    for name, path in checks:
        try:
            value = registry.read_value(path)
        except OSError as exc:
            logger.error("Could not read {}: {}", path, exc)
            outcomes.append(StepOutcome(RunStage.VERIFY, name, False, str(exc)))
            continue
        if value is None:
            logger.warning("{} is not set ({})", name, path)
            outcomes.append(StepOutcome(RunStage.VERIFY, name, False, "value not set"))
            continue
        logger.info("{}: {}", name, value)
        outcomes.append(StepOutcome(RunStage.VERIFY, name, True, value))
    return outcomes


class ShellRefresher:
    """
    Terminates Explorer so it reloads association state.

    Windows normally relaunches the shell on its own; if it has not come back
    after a short grace period it is started explicitly.
    """

    def __init__(
        self,
        runner: CommandRunner,
        *,
        grace_seconds: float = RESTART_GRACE_SECONDS,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self.runner = runner
        self.grace_seconds = grace_seconds
        self._sleep = sleep
        self._logger = app_logger.get_logger()

    def restart(self) -> StepOutcome:
        name = f"restart {SHELL_PROCESS}"
        self._logger.info("Restarting {} to apply changes...", SHELL_PROCESS)
        result = self.runner.run(["taskkill", "/F", "/IM", SHELL_PROCESS])
        if not result.ok:
            self._logger.error("Could not stop {}: {}", SHELL_PROCESS, result.describe())
            self._advise_manual_restart()
            return StepOutcome(RunStage.SHELL, name, False, result.describe())

        self._sleep(self.grace_seconds)
        if not self._is_running():
            self._logger.debug("{} did not relaunch itself; starting it.", SHELL_PROCESS)
            started = self.runner.run(["cmd", "/c", "start", "", SHELL_PROCESS])
            if not started.ok:
                self._logger.error("Could not start {}: {}", SHELL_PROCESS, started.describe())
                self._advise_manual_restart()
                return StepOutcome(RunStage.SHELL, name, False, started.describe())

        self._logger.info("{} restarted.", SHELL_PROCESS)
        return StepOutcome(RunStage.SHELL, name, True)

    def skip(self) -> StepOutcome:
        self._logger.warning("Shell restart skipped.")
        self._advise_manual_restart()
        return StepOutcome(RunStage.SHELL, f"restart {SHELL_PROCESS}", True, "skipped")

    def _is_running(self) -> bool:
        result = self.runner.run(["tasklist", "/FI", f"IMAGENAME eq {SHELL_PROCESS}", "/NH"])
        return result.ok and SHELL_PROCESS in result.stdout.lower()

    def _advise_manual_restart(self) -> None:
        self._logger.warning("Restart Explorer or log off and back on for the changes to take effect.")
