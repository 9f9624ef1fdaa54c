"""Domain records: cases, insights, notifications, metrics and events."""

from .case import CaseHistoryRecord, CaseProcessingStatus, CaseState, MedicalCase
from .consultation import ConsultationRequest, ConsultationStatus
from .events import (
    CaseCompleted,
    CaseFailed,
    CaseProgress,
    CaseQueued,
    ConsultationUpdated,
    DashboardEvent,
    EventPayload,
    EventType,
    InsightAdded,
    MetricsUpdated,
    NotificationAdded,
)
from .insight import (
    AIInsight,
    DashboardNotification,
    InsightDraft,
    InsightType,
    NotificationDraft,
    NotificationKind,
    Priority,
)
from .metrics import DashboardMetrics

__all__ = [
    "AIInsight",
    "CaseCompleted",
    "CaseFailed",
    "CaseHistoryRecord",
    "CaseProcessingStatus",
    "CaseProgress",
    "CaseQueued",
    "CaseState",
    "ConsultationRequest",
    "ConsultationStatus",
    "ConsultationUpdated",
    "DashboardEvent",
    "DashboardMetrics",
    "DashboardNotification",
    "EventPayload",
    "EventType",
    "InsightAdded",
    "InsightDraft",
    "InsightType",
    "MedicalCase",
    "MetricsUpdated",
    "NotificationAdded",
    "NotificationDraft",
    "NotificationKind",
    "Priority",
]
