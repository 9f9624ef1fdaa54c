from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, Field

from mednexus_dashboard.models import ConsultationRequest, ConsultationStatus


class ConsultationUpdate(BaseModel):
    request_id: str = Field(min_length=1)
    case_id: str
    specialty: str
    status: ConsultationStatus

    def to_request(self) -> ConsultationRequest:
        return ConsultationRequest(
            request_id=self.request_id,
            case_id=self.case_id,
            specialty=self.specialty,
            status=self.status,
        )


class ConsultationUpdateResponse(BaseModel):
    request_id: str
    status: ConsultationStatus
    notification_id: Optional[str] = None
