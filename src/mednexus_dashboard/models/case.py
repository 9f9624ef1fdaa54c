from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import List, Optional

from ..exceptions import InvalidTransitionError


class CaseState(str, Enum):
    QUEUED = "queued"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"

    @property
    def terminal(self) -> bool:
        return self in (CaseState.COMPLETED, CaseState.FAILED)


@dataclass
class MedicalCase:
    case_id: str
    hospital_id: str = ""
    symptoms: List[str] = field(default_factory=list)
    notes: str = ""
    age: Optional[int] = None
    gender: Optional[str] = None


@dataclass
class CaseProcessingStatus:
    """Progress of one case through the analysis pipeline.

    Progress only moves forward until the case fails, at which point it
    drops back to 0. Completed and failed are terminal.
    """

    case_id: str
    state: CaseState = CaseState.QUEUED
    progress: int = 0
    analysis_complete: bool = False
    patterns_detected: int = 0
    similar_cases_found: int = 0
    consultation_requested: bool = False
    estimated_completion: Optional[datetime] = None
    submitted_at: Optional[datetime] = None

    @property
    def is_terminal(self) -> bool:
        return self.state.terminal

    def start(self) -> None:
        if self.state is not CaseState.QUEUED:
            raise InvalidTransitionError(
                f"Case {self.case_id} cannot start from state '{self.state.value}'"
            )
        self.state = CaseState.PROCESSING

    def advance(self, progress: int) -> None:
        if self.state is not CaseState.PROCESSING:
            raise InvalidTransitionError(
                f"Case {self.case_id} is not processing (state '{self.state.value}')"
            )
        self.progress = max(self.progress, min(100, int(progress)))

    def complete(self, at: datetime) -> None:
        if self.state is not CaseState.PROCESSING:
            raise InvalidTransitionError(
                f"Case {self.case_id} cannot complete from state '{self.state.value}'"
            )
        self.state = CaseState.COMPLETED
        self.progress = 100
        self.estimated_completion = at

    def fail(self, at: datetime) -> None:
        if self.state.terminal:
            raise InvalidTransitionError(
                f"Case {self.case_id} already finished as '{self.state.value}'"
            )
        self.state = CaseState.FAILED
        self.progress = 0
        self.estimated_completion = at


@dataclass(frozen=True)
class CaseHistoryRecord:
    """A finished case, kept for the hourly performance analytics."""

    case_id: str
    state: CaseState
    submitted_at: datetime
    finished_at: datetime

    @property
    def processing_minutes(self) -> float:
        return (self.finished_at - self.submitted_at).total_seconds() / 60.0


__all__ = ["CaseHistoryRecord", "CaseProcessingStatus", "CaseState", "MedicalCase"]
