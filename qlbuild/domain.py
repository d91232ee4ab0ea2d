"""
Core domain models for qlbuild.

These dataclasses describe stage outcomes and the pipeline report.
They intentionally avoid any filesystem or subprocess dependencies so
they can be reused by every stage and by the tests.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Literal, Optional

OutcomeStatus = Literal["ok", "warning", "fatal"]


@dataclass(frozen=True)
class StageOutcome:
    """
    A single tagged result produced by a pipeline stage.

    Warnings are advisory and never stop the run; a fatal outcome
    carries the exit status the CLI should return.
    """

    status: OutcomeStatus
    detail: str = ""
    exit_code: int = 0


def ok(detail: str = "") -> StageOutcome:
    return StageOutcome(status="ok", detail=detail)


def warning(detail: str) -> StageOutcome:
    return StageOutcome(status="warning", detail=detail)


def fatal(detail: str, exit_code: int = 1) -> StageOutcome:
    return StageOutcome(status="fatal", detail=detail, exit_code=exit_code)


@dataclass
class StageResult:
    """
    All outcomes reported by one stage, in the order they happened.
    """

    stage: str
    outcomes: List[StageOutcome] = field(default_factory=list)

    def add(self, outcome: StageOutcome) -> StageOutcome:
        self.outcomes.append(outcome)
        return outcome

    @property
    def is_fatal(self) -> bool:
        return any(o.status == "fatal" for o in self.outcomes)

    @property
    def warnings(self) -> List[StageOutcome]:
        return [o for o in self.outcomes if o.status == "warning"]

    @property
    def fatal_outcome(self) -> Optional[StageOutcome]:
        for outcome in self.outcomes:
            if outcome.status == "fatal":
                return outcome
        return None


@dataclass
class PipelineReport:
    """
    Results of a full pipeline run.

    stages lists every stage that ran, including the one that failed;
    stages after a fatal outcome never appear.
    """

    stages: List[StageResult] = field(default_factory=list)
    exit_code: int = 0

    @property
    def succeeded(self) -> bool:
        return self.exit_code == 0

    @property
    def stage_names(self) -> List[str]:
        return [s.stage for s in self.stages]

    @property
    def warnings(self) -> List[StageOutcome]:
        return [w for s in self.stages for w in s.warnings]
