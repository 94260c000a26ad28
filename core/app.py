"""
Coordinator running backup, repair, verification and shell refresh in order.
"""

from __future__ import annotations

from datetime import datetime
from typing import Callable, Optional

from core.association_repair import AssociationRepairer
from core.backup import BackupExporter
from core.command_runner import CommandRunner, SubprocessRunner
from core.registry_store import RegistryStore
from core.settings import RepairSettings
from core.shell_refresh import ShellRefresher, verify_associations
from shared.association_model import ProgramIdentifierCommand
from shared.run_report import RunReport, RunStage, StepOutcome
from text_assoc_repair.text_assoc_repair import logger as app_logger

APP_NAME = "Text Association Repair"
APP_VERSION = "1.0.0"


class RepairCoordinator:
    """
    Linear run: Backing Up -> Repairing -> Verifying -> Restarting/Skipping.

    No stage failure changes the next transition; every failure ends up as a
    failed StepOutcome in the returned report.
    """

    def __init__(
        self,
        settings: RepairSettings,
        *,
        registry: Optional[RegistryStore] = None,
        runner: Optional[CommandRunner] = None,
        refresher: Optional[ShellRefresher] = None,
        clock: Callable[[], datetime] = datetime.now,
    ) -> None:
        self.settings = settings
        self.registry = registry or RegistryStore()
        self.runner = runner or SubprocessRunner()
        self.refresher = refresher or ShellRefresher(self.runner)
        self._clock = clock
        self._logger = app_logger.get_logger()

    def run(self) -> RunReport:
        report = RunReport()
        self._logger.info("{} v{}", APP_NAME, APP_VERSION)

        self._backup(report)
        self._repair(report)
        self._verify(report)
        self._refresh_shell(report)

        self._log_summary(report)
        return report

    def _backup(self, report: RunReport) -> None:
        exporter = BackupExporter(self.runner, self.settings.backup_dir)
        records = exporter.export_all(
            self.settings.extensions,
            self.settings.prog_id,
            timestamp=self._clock(),
        )
        report.backups.extend(records)
        for record in records:
            detail = record.destination.name if record.succeeded else f"exit status {record.exit_status}"
            report.add(StepOutcome(RunStage.BACKUP, f"export {record.source_key}", record.succeeded, detail))

    def _repair(self, report: RunReport) -> None:
        self._logger.info("Repairing associations for {}", ", ".join(self.settings.extensions))
        repairer = AssociationRepairer(self.registry, self.runner)
        command = ProgramIdentifierCommand(prog_id=self.settings.prog_id, editor_path=self.settings.editor_path)
        report.extend(
            repairer.repair_all(
                self.settings.extensions.targets(self.settings.prog_id),
                self.settings.primary_extension,
                command,
            )
        )

    def _verify(self, report: RunReport) -> None:
        self._logger.info("Verifying changes...")
        outcomes = verify_associations(self.registry, self.settings.primary_extension, self.settings.prog_id)
        for outcome in outcomes:
            report.readback[outcome.name] = outcome.detail if outcome.ok else None
        report.extend(outcomes)

    def _refresh_shell(self, report: RunReport) -> None:
        if self.settings.skip_shell_restart:
            report.add(self.refresher.skip())
            return
        outcome = self.refresher.restart()
        report.shell_restarted = outcome.ok
        report.add(outcome)

    def _log_summary(self, report: RunReport) -> None:
        backed_up = sum(1 for record in report.backups if record.succeeded)
        self._logger.info("Backups written: {}/{} in {}", backed_up, len(report.backups), self.settings.backup_dir)
        failures = report.failed_changes
        if failures:
            self._logger.warning("Completed with {} failed step(s):", len(failures))
            for outcome in failures:
                self._logger.warning("  {} / {}: {}", outcome.stage.value, outcome.name, outcome.detail)
        else:
            self._logger.success("Text file associations repaired.")
