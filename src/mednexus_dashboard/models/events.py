"""Typed dispatcher payloads and the envelope subscribers receive."""

from __future__ import annotations

from dataclasses import dataclass, fields, is_dataclass
from datetime import datetime
from enum import Enum
from typing import Any, ClassVar, Dict, Optional, Union

from .consultation import ConsultationRequest
from .insight import AIInsight, DashboardNotification
from .metrics import DashboardMetrics


class EventType(str, Enum):
    CASE_QUEUED = "case_queued"
    CASE_PROCESSING = "case_processing"
    CASE_COMPLETED = "case_completed"
    CASE_FAILED = "case_failed"
    INSIGHT_ADDED = "insight_added"
    NOTIFICATION_ADDED = "notification_added"
    METRICS_UPDATED = "metrics_updated"
    CONSULTATION_UPDATED = "consultation_updated"


@dataclass(frozen=True)
class CaseQueued:
    case_id: str
    type: ClassVar[EventType] = EventType.CASE_QUEUED


@dataclass(frozen=True)
class CaseProgress:
    case_id: str
    progress: int
    stage: str
    type: ClassVar[EventType] = EventType.CASE_PROCESSING


@dataclass(frozen=True)
class CaseCompleted:
    case_id: str
    type: ClassVar[EventType] = EventType.CASE_COMPLETED


@dataclass(frozen=True)
class CaseFailed:
    case_id: str
    error: str
    type: ClassVar[EventType] = EventType.CASE_FAILED


@dataclass(frozen=True)
class InsightAdded:
    insight: AIInsight
    type: ClassVar[EventType] = EventType.INSIGHT_ADDED


@dataclass(frozen=True)
class NotificationAdded:
    notification: DashboardNotification
    type: ClassVar[EventType] = EventType.NOTIFICATION_ADDED


@dataclass(frozen=True)
class MetricsUpdated:
    metrics: DashboardMetrics
    type: ClassVar[EventType] = EventType.METRICS_UPDATED


@dataclass(frozen=True)
class ConsultationUpdated:
    request: ConsultationRequest
    notification_id: Optional[str] = None
    type: ClassVar[EventType] = EventType.CONSULTATION_UPDATED


EventPayload = Union[
    CaseQueued,
    CaseProgress,
    CaseCompleted,
    CaseFailed,
    InsightAdded,
    NotificationAdded,
    MetricsUpdated,
    ConsultationUpdated,
]


@dataclass(frozen=True)
class DashboardEvent:
    type: EventType
    data: EventPayload
    timestamp: datetime

    def to_dict(self) -> Dict[str, Any]:
        return {
            "type": self.type.value,
            "data": to_jsonable(self.data),
            "timestamp": self.timestamp.isoformat(),
        }


def to_jsonable(value: Any) -> Any:
    """Convert dataclasses, enums and datetimes into JSON-safe primitives."""
    if is_dataclass(value) and not isinstance(value, type):
        return {f.name: to_jsonable(getattr(value, f.name)) for f in fields(value)}
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, dict):
        return {str(k): to_jsonable(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [to_jsonable(v) for v in value]
    return value


__all__ = [
    "CaseCompleted",
    "CaseFailed",
    "CaseProgress",
    "CaseQueued",
    "ConsultationUpdated",
    "DashboardEvent",
    "EventPayload",
    "EventType",
    "InsightAdded",
    "MetricsUpdated",
    "NotificationAdded",
    "to_jsonable",
]
