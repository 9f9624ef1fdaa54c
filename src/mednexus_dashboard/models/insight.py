from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Optional, Tuple


class InsightType(str, Enum):
    PATTERN_DETECTED = "pattern_detected"
    RARE_DISEASE_ALERT = "rare_disease_alert"
    SIMILAR_CASE_FOUND = "similar_case_found"
    CONSULTATION_RECOMMENDED = "consultation_recommended"


class Priority(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"

    @property
    def rank(self) -> int:
        return _PRIORITY_RANK[self]


_PRIORITY_RANK = {
    Priority.LOW: 1,
    Priority.MEDIUM: 2,
    Priority.HIGH: 3,
    Priority.CRITICAL: 4,
}


class NotificationKind(str, Enum):
    INFO = "info"
    SUCCESS = "success"
    WARNING = "warning"
    ERROR = "error"


@dataclass(frozen=True)
class InsightDraft:
    type: InsightType
    case_id: str
    title: str
    description: str
    confidence: float
    priority: Priority
    action_required: bool = False
    recommendations: Tuple[str, ...] = ()


@dataclass(frozen=True)
class AIInsight:
    id: str
    type: InsightType
    case_id: str
    title: str
    description: str
    confidence: float
    priority: Priority
    created_at: datetime
    action_required: bool = False
    recommendations: Tuple[str, ...] = ()

    @classmethod
    def from_draft(cls, draft: InsightDraft, id: str, created_at: datetime) -> "AIInsight":
        return cls(
            id=id,
            type=draft.type,
            case_id=draft.case_id,
            title=draft.title,
            description=draft.description,
            confidence=float(draft.confidence),
            priority=draft.priority,
            created_at=created_at,
            action_required=draft.action_required,
            recommendations=tuple(draft.recommendations),
        )


@dataclass(frozen=True)
class NotificationDraft:
    kind: NotificationKind
    title: str
    message: str
    action_url: Optional[str] = None


@dataclass
class DashboardNotification:
    id: str
    kind: NotificationKind
    title: str
    message: str
    timestamp: datetime
    read: bool = False
    action_url: Optional[str] = None

    def mark_read(self) -> None:
        self.read = True


__all__ = [
    "AIInsight",
    "DashboardNotification",
    "InsightDraft",
    "InsightType",
    "NotificationDraft",
    "NotificationKind",
    "Priority",
]
