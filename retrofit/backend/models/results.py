"""
Result Data Models

Immutable values produced by the setup pipeline: the outcome of the game
install search, a per-stage result, and the folded report for a whole run.
"""

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, List, Optional, Tuple

from .errors import NotFoundError


@dataclass(frozen=True)
class SearchOutcome:
    """Result of probing Steam libraries for an app install."""
    install_path: Optional[Path] = None
    probed: Tuple[Path, ...] = ()

    @property
    def found(self) -> bool:
        return self.install_path is not None

    def require(self, display_name: str = "game") -> Path:
        """Return the install path or raise NotFoundError listing every probed steamapps dir."""
        if self.install_path is None:
            raise NotFoundError(f"Could not find {display_name} in any Steam library", self.probed)
        return self.install_path


class StageStatus(Enum):
    SUCCESS = "success"
    FAILED = "failed"
    SKIPPED = "skipped"


class ErrorKind(Enum):
    """Separates expected negative outcomes from unexpected faults."""
    EXPECTED = "expected"
    FAULT = "fault"


@dataclass(frozen=True)
class StageResult:
    """Outcome of one pipeline stage."""
    name: str
    status: StageStatus
    message: str = ""
    error_kind: Optional[ErrorKind] = None
    value: Any = field(default=None, compare=False)

    @property
    def ok(self) -> bool:
        return self.status == StageStatus.SUCCESS

    @classmethod
    def success(cls, name: str, message: str, value: Any = None) -> 'StageResult':
        return cls(name, StageStatus.SUCCESS, message, None, value)

    @classmethod
    def failure(cls, name: str, message: str, kind: ErrorKind) -> 'StageResult':
        return cls(name, StageStatus.FAILED, message, kind)

    @classmethod
    def skipped(cls, name: str, message: str = "skipped") -> 'StageResult':
        return cls(name, StageStatus.SKIPPED, message)


@dataclass(frozen=True)
class SetupReport:
    """Every stage outcome of a setup run, in pipeline order."""
    stages: Tuple[StageResult, ...] = ()
    fatal_stage: Optional[str] = None

    @property
    def success(self) -> bool:
        return all(stage.status != StageStatus.FAILED for stage in self.stages)

    @property
    def errors(self) -> List[str]:
        return [f"{s.name}: {s.message}" for s in self.stages if s.status == StageStatus.FAILED]

    def stage(self, name: str) -> Optional[StageResult]:
        for result in self.stages:
            if result.name == name:
                return result
        return None

    @property
    def game_path(self) -> Optional[Path]:
        result = self.stage("game")
        return result.value if result and result.ok else None

    def summary(self) -> str:
        lines = []
        for result in self.stages:
            lines.append(f"  [{result.status.value.upper():7}] {result.name}: {result.message}")
        if self.fatal_stage:
            lines.append(f"Setup stopped at stage '{self.fatal_stage}'.")
        if self.success:
            lines.append("Setup completed successfully.")
        else:
            lines.append(f"Setup finished with {len(self.errors)} error(s):")
            lines.extend(f"  - {err}" for err in self.errors)
        return "\n".join(lines)
