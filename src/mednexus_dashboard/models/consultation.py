from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class ConsultationStatus(str, Enum):
    PENDING = "pending"
    MATCHED = "matched"
    ACTIVE = "active"
    COMPLETED = "completed"
    EXPIRED = "expired"


@dataclass(frozen=True)
class ConsultationRequest:
    request_id: str
    case_id: str
    specialty: str
    status: ConsultationStatus = ConsultationStatus.PENDING


__all__ = ["ConsultationRequest", "ConsultationStatus"]
