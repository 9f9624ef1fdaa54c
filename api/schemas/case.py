from __future__ import annotations

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

from mednexus_dashboard.models import CaseState, MedicalCase


class CaseInput(BaseModel):
    case_id: str = Field(min_length=1)
    hospital_id: str = ""
    symptoms: List[str] = Field(default_factory=list)
    notes: str = ""
    age: Optional[int] = Field(default=None, ge=0, le=130)
    gender: Optional[str] = None

    def to_case(self) -> MedicalCase:
        return MedicalCase(
            case_id=self.case_id,
            hospital_id=self.hospital_id,
            symptoms=list(self.symptoms),
            notes=self.notes,
            age=self.age,
            gender=self.gender,
        )


class CaseStatusResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    case_id: str
    state: CaseState
    progress: int
    analysis_complete: bool
    patterns_detected: int
    similar_cases_found: int
    consultation_requested: bool
    estimated_completion: Optional[datetime] = None
    submitted_at: Optional[datetime] = None
