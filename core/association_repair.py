"""
Rebinds text-like extensions to the shared program identifier.

The mapping is written through every layer Windows consults: the
extension's class-root key, the program identifier's open command, and the
legacy tables maintained by ``assoc`` and ``ftype``.
"""

from __future__ import annotations

from typing import Iterable, List

from core.command_runner import CommandRunner
from core.registry_store import RegistryStore, class_root_key, open_command_key
from shared.association_model import AssociationTarget, ProgramIdentifierCommand
from shared.run_report import RunStage, StepOutcome
from text_assoc_repair.text_assoc_repair import logger as app_logger

SHELL_NEW_SUBKEY = "ShellNew"
NULL_FILE_VALUE = "NullFile"


class AssociationRepairer:
    def __init__(self, registry: RegistryStore, runner: CommandRunner) -> None:
        self.registry = registry
        self.runner = runner
        self._logger = app_logger.get_logger()

    def set_extension_default(self, target: AssociationTarget) -> StepOutcome:
        name = f"set {target.extension} -> {target.prog_id}"
        try:
            self.registry.write_value(class_root_key(target.extension), "", target.prog_id)
        except OSError as exc:
            return self._failed(name, exc)
        self._logger.info("Associated {} with {}", target.extension, target.prog_id)
        return StepOutcome(RunStage.REPAIR, name, True, target.prog_id)

    def ensure_new_file_template(self, extension: str) -> StepOutcome:
        """Restore the Explorer "New > ..." entry that creates an empty file."""
        name = f"ShellNew for {extension}"
        path = f"{class_root_key(extension)}\\{SHELL_NEW_SUBKEY}"
        try:
            if not self.registry.key_exists(path):
                self.registry.create_key(path)
                self._logger.debug("Created {}", path)
            self.registry.write_value(path, NULL_FILE_VALUE, "")
        except OSError as exc:
            return self._failed(name, exc)
        self._logger.info("Restored 'New' menu template for {}", extension)
        return StepOutcome(RunStage.REPAIR, name, True)

    def set_open_command(self, command: ProgramIdentifierCommand) -> StepOutcome:
        name = f"open command for {command.prog_id}"
        try:
            self.registry.write_value(open_command_key(command.prog_id), "", command.command)
        except OSError as exc:
            return self._failed(name, exc)
        self._logger.info("Set {} open command to {}", command.prog_id, command.command)
        return StepOutcome(RunStage.REPAIR, name, True, command.command)

    def assoc(self, target: AssociationTarget) -> StepOutcome:
        binding = f"{target.extension}={target.prog_id}"
        return self._run_builtin("assoc", binding)

    def ftype(self, command: ProgramIdentifierCommand) -> StepOutcome:
        binding = f"{command.prog_id}={command.command}"
        return self._run_builtin("ftype", binding)

    def repair_all(
        self,
        targets: Iterable[AssociationTarget],
        primary_extension: str,
        command: ProgramIdentifierCommand,
    ) -> List[StepOutcome]:
        targets = list(targets)
        outcomes: List[StepOutcome] = []
        for target in targets:
            outcomes.append(self.set_extension_default(target))
            if target.extension == primary_extension:
                outcomes.append(self.ensure_new_file_template(target.extension))

        outcomes.append(self.set_open_command(command))

        for target in targets:
            outcomes.append(self.assoc(target))
        outcomes.append(self.ftype(command))
        return outcomes

    def _run_builtin(self, builtin: str, binding: str) -> StepOutcome:
        # assoc and ftype are cmd.exe built-ins that read their raw argument
        # text, so no token may be quoted: pass each space-separated part alone.
        name = f"{builtin} {binding}"
        result = self.runner.run(["cmd", "/c", builtin, *binding.split()])
        if not result.ok:
            self._logger.warning("{} failed: {}", name, result.describe())
            return StepOutcome(RunStage.REPAIR, name, False, result.describe())
        self._logger.debug("{} -> {}", name, result.stdout)
        return StepOutcome(RunStage.REPAIR, name, True, result.stdout)

    def _failed(self, name: str, exc: OSError) -> StepOutcome:
        self._logger.error("Step '{}' failed: {}", name, exc)
        return StepOutcome(RunStage.REPAIR, name, False, str(exc))
