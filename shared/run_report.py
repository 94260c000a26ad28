"""
Structured outcomes recorded while a repair run progresses.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Dict, List, Optional


class RunStage(Enum):
    BACKUP = "Backup"
    REPAIR = "Repair"
    VERIFY = "Verify"
    SHELL = "Shell"


@dataclass(frozen=True)
class BackupRecord:
    source_key: str
    destination: Path
    exit_status: Optional[int]

    @property
    def succeeded(self) -> bool:
        return self.exit_status == 0


@dataclass(frozen=True)
class StepOutcome:
    """Result of a single named step; `detail` carries the value or error text."""

    stage: RunStage
    name: str
    ok: bool
    detail: str = ""


@dataclass
class RunReport:
    """Ordered record of everything a run attempted."""

    backups: List[BackupRecord] = field(default_factory=list)
    outcomes: List[StepOutcome] = field(default_factory=list)
    readback: Dict[str, Optional[str]] = field(default_factory=dict)
    shell_restarted: bool = False

    def add(self, outcome: StepOutcome) -> None:
        self.outcomes.append(outcome)

    def extend(self, outcomes: List[StepOutcome]) -> None:
        self.outcomes.extend(outcomes)

    def outcomes_for(self, stage: RunStage) -> List[StepOutcome]:
        return [outcome for outcome in self.outcomes if outcome.stage is stage]

    @property
    def failures(self) -> List[StepOutcome]:
        return [outcome for outcome in self.outcomes if not outcome.ok]

    @property
    def has_failures(self) -> bool:
        return bool(self.failures)

    @property
    def failed_changes(self) -> List[StepOutcome]:
        """Failures outside the backup stage, where absent keys are expected."""
        return [outcome for outcome in self.failures if outcome.stage is not RunStage.BACKUP]
