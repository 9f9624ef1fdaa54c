from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from datetime import datetime, timedelta
from typing import Dict, List, Optional

from ..config import RetentionSettings
from ..dispatcher import EventDispatcher
from ..models.case import CaseHistoryRecord, CaseProcessingStatus
from ..models.events import InsightAdded, NotificationAdded
from ..models.insight import (
    AIInsight,
    DashboardNotification,
    InsightDraft,
    NotificationDraft,
    NotificationKind,
    Priority,
)
from ..utils.clock import Clock, utc_now
from ..utils.ids import new_id

logger = logging.getLogger(__name__)

# High and critical insights raise a notification alongside the insight.
COMPANION_KINDS: Dict[Priority, NotificationKind] = {
    Priority.HIGH: NotificationKind.WARNING,
    Priority.CRITICAL: NotificationKind.ERROR,
}


@dataclass(frozen=True)
class PruneReport:
    insights: int = 0
    notifications: int = 0
    statuses: int = 0
    history: int = 0

    @property
    def total(self) -> int:
        return self.insights + self.notifications + self.statuses + self.history


class DashboardStore:
    """Owns insights, notifications, case statuses and finished-case history.

    No method awaits, so every mutation is atomic with respect to other
    tasks on the event loop.
    """

    def __init__(
        self,
        dispatcher: EventDispatcher,
        retention: Optional[RetentionSettings] = None,
        clock: Clock = utc_now,
    ):
        self._dispatcher = dispatcher
        self._retention = retention or RetentionSettings()
        self._clock = clock
        self._insights: Dict[str, AIInsight] = {}
        self._notifications: Dict[str, DashboardNotification] = {}
        self._statuses: Dict[str, CaseProcessingStatus] = {}
        self._history: List[CaseHistoryRecord] = []

    # ------------------------------------------------------------------
    # Insights
    # ------------------------------------------------------------------

    def add_insight(self, draft: InsightDraft) -> str:
        now = self._clock()
        insight = AIInsight.from_draft(draft, id=new_id("insight", now), created_at=now)
        self._insights[insight.id] = insight

        companion = COMPANION_KINDS.get(insight.priority)
        if companion is not None:
            self.add_notification(
                NotificationDraft(
                    kind=companion,
                    title=insight.title,
                    message=insight.description,
                    action_url=f"/cases/{insight.case_id}",
                )
            )

        self._dispatcher.publish(InsightAdded(insight=insight))
        return insight.id

    def list_insights(self, limit: int = 10) -> List[AIInsight]:
        ordered = sorted(
            self._insights.values(),
            key=lambda i: (i.priority.rank, i.created_at),
            reverse=True,
        )
        return ordered[: max(0, limit)]

    @property
    def insight_count(self) -> int:
        return len(self._insights)

    # ------------------------------------------------------------------
    # Notifications
    # ------------------------------------------------------------------

    def add_notification(self, draft: NotificationDraft) -> str:
        now = self._clock()
        notification = DashboardNotification(
            id=new_id("notification", now),
            kind=draft.kind,
            title=draft.title,
            message=draft.message,
            timestamp=now,
            read=False,
            action_url=draft.action_url,
        )
        self._notifications[notification.id] = notification
        self._dispatcher.publish(NotificationAdded(notification=replace(notification)))
        return notification.id

    def list_notifications(self, unread_only: bool = False) -> List[DashboardNotification]:
        items = [
            replace(n)
            for n in self._notifications.values()
            if not (unread_only and n.read)
        ]
        items.sort(key=lambda n: n.timestamp, reverse=True)
        return items

    def mark_read(self, notification_id: str) -> None:
        notification = self._notifications.get(notification_id)
        if notification is not None:
            notification.mark_read()

    def has_notification(self, notification_id: str) -> bool:
        return notification_id in self._notifications

    @property
    def unread_count(self) -> int:
        return sum(1 for n in self._notifications.values() if not n.read)

    # ------------------------------------------------------------------
    # Case statuses and history
    # ------------------------------------------------------------------

    def put_status(self, status: CaseProcessingStatus) -> None:
        self._statuses[status.case_id] = status

    def get_status(self, case_id: str) -> Optional[CaseProcessingStatus]:
        status = self._statuses.get(case_id)
        return replace(status) if status is not None else None

    def active_statuses(self) -> List[CaseProcessingStatus]:
        return [replace(s) for s in self._statuses.values() if not s.is_terminal]

    def record_outcome(self, status: CaseProcessingStatus) -> None:
        if not status.is_terminal or status.estimated_completion is None:
            return
        self._history.append(
            CaseHistoryRecord(
                case_id=status.case_id,
                state=status.state,
                submitted_at=status.submitted_at or status.estimated_completion,
                finished_at=status.estimated_completion,
            )
        )

    def history(self) -> List[CaseHistoryRecord]:
        return list(self._history)

    # ------------------------------------------------------------------
    # Retention
    # ------------------------------------------------------------------

    def prune(self, now: Optional[datetime] = None) -> PruneReport:
        now = now or self._clock()
        r = self._retention
        insight_cutoff = now - timedelta(hours=r.insight_hours)
        notification_cutoff = now - timedelta(days=r.notification_days)
        status_cutoff = now - timedelta(hours=r.status_hours)
        history_cutoff = now - timedelta(hours=r.history_hours)

        stale_insights = [k for k, v in self._insights.items() if v.created_at < insight_cutoff]
        for key in stale_insights:
            del self._insights[key]

        stale_notifications = [
            k for k, v in self._notifications.items() if v.timestamp < notification_cutoff
        ]
        for key in stale_notifications:
            del self._notifications[key]

        stale_statuses = [
            k
            for k, v in self._statuses.items()
            if v.is_terminal
            and v.estimated_completion is not None
            and v.estimated_completion < status_cutoff
        ]
        for key in stale_statuses:
            del self._statuses[key]

        kept_history = [h for h in self._history if h.finished_at >= history_cutoff]
        dropped_history = len(self._history) - len(kept_history)
        self._history = kept_history

        report = PruneReport(
            insights=len(stale_insights),
            notifications=len(stale_notifications),
            statuses=len(stale_statuses),
            history=dropped_history,
        )
        logger.info(
            "Retention sweep removed %d insights, %d notifications, %d statuses, %d history records",
            report.insights,
            report.notifications,
            report.statuses,
            report.history,
        )
        return report


__all__ = ["COMPANION_KINDS", "DashboardStore", "PruneReport"]
