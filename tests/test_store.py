from __future__ import annotations

from datetime import timedelta

from mednexus_dashboard.config import RetentionSettings
from mednexus_dashboard.data import DashboardStore
from mednexus_dashboard.models import (
    CaseProcessingStatus,
    CaseState,
    EventType,
    InsightDraft,
    InsightType,
    NotificationDraft,
    NotificationKind,
    Priority,
)


def _draft(priority, case_id="c1", title="t"):
    return InsightDraft(
        type=InsightType.PATTERN_DETECTED,
        case_id=case_id,
        title=title,
        description="d",
        confidence=90,
        priority=priority,
    )


def _note(title="hello"):
    return NotificationDraft(kind=NotificationKind.INFO, title=title, message="m")


def test_insights_sorted_by_priority_then_recency(store, clock):
    ids = {}
    for name, priority in [
        ("low", Priority.LOW),
        ("critical", Priority.CRITICAL),
        ("high_old", Priority.HIGH),
        ("high_new", Priority.HIGH),
    ]:
        ids[store.add_insight(_draft(priority, title=name))] = name
        clock.advance(minutes=1)

    titles = [i.title for i in store.list_insights()]
    assert titles == ["critical", "high_new", "high_old", "low"]
    assert [i.title for i in store.list_insights(limit=2)] == ["critical", "high_new"]


def test_insight_ids_and_timestamps_are_assigned(store, clock):
    insight_id = store.add_insight(_draft(Priority.LOW))
    insight = store.list_insights()[0]
    assert insight.id == insight_id
    assert insight_id.startswith(f"insight_{int(clock.now.timestamp() * 1000)}_")
    assert insight.created_at == clock.now


def test_high_and_critical_insights_add_companion_notifications(store, events):
    store.add_insight(_draft(Priority.MEDIUM, case_id="m"))
    store.add_insight(_draft(Priority.HIGH, case_id="h"))
    store.add_insight(_draft(Priority.CRITICAL, case_id="c"))

    notes = {n.action_url: n.kind for n in store.list_notifications()}
    assert notes == {"/cases/h": NotificationKind.WARNING, "/cases/c": NotificationKind.ERROR}
    kinds = [e.type for e in events]
    assert kinds.count(EventType.INSIGHT_ADDED) == 3
    assert kinds.count(EventType.NOTIFICATION_ADDED) == 2


def test_notifications_newest_first_and_unread_filter(store, clock):
    first = store.add_notification(_note("first"))
    clock.advance(seconds=5)
    store.add_notification(_note("second"))

    assert [n.title for n in store.list_notifications()] == ["second", "first"]
    store.mark_read(first)
    assert [n.title for n in store.list_notifications(unread_only=True)] == ["second"]
    assert store.unread_count == 1


def test_mark_read_is_idempotent_and_ignores_unknown_ids(store):
    note_id = store.add_notification(_note())
    store.mark_read(note_id)
    assert store.list_notifications()[0].read is True
    store.mark_read(note_id)
    assert store.list_notifications()[0].read is True
    store.mark_read("notification_does_not_exist")


def test_listed_notifications_are_copies(store):
    store.add_notification(_note())
    listed = store.list_notifications()[0]
    listed.read = True
    assert store.list_notifications()[0].read is False


def test_insight_retention_window(store, clock):
    store.add_insight(_draft(Priority.LOW, title="old"))
    clock.advance(hours=2)
    store.add_insight(_draft(Priority.LOW, title="young"))
    clock.advance(hours=23)

    report = store.prune()
    assert report.insights == 1
    assert [i.title for i in store.list_insights()] == ["young"]


def test_notification_retention_is_seven_days(store, clock):
    store.add_notification(_note("old"))
    clock.advance(days=6)
    store.add_notification(_note("recent"))
    clock.advance(days=1, minutes=1)

    report = store.prune()
    assert report.notifications == 1
    assert [n.title for n in store.list_notifications()] == ["recent"]


def test_terminal_statuses_pruned_after_an_hour(store, clock):
    done = CaseProcessingStatus(case_id="done", state=CaseState.COMPLETED, progress=100,
                                estimated_completion=clock.now)
    running = CaseProcessingStatus(case_id="running", state=CaseState.PROCESSING, progress=30,
                                   estimated_completion=clock.now - timedelta(hours=5))
    store.put_status(done)
    store.put_status(running)

    clock.advance(minutes=30)
    assert store.prune().statuses == 0
    clock.advance(minutes=31)
    assert store.prune().statuses == 1
    assert store.get_status("done") is None
    assert store.get_status("running") is not None
    assert [s.case_id for s in store.active_statuses()] == ["running"]


def test_history_pruned_with_its_own_window(dispatcher, clock):
    store = DashboardStore(dispatcher, retention=RetentionSettings(history_hours=2), clock=clock)
    status = CaseProcessingStatus(case_id="c", state=CaseState.COMPLETED, progress=100,
                                  estimated_completion=clock.now, submitted_at=clock.now - timedelta(minutes=4))
    store.record_outcome(status)
    assert len(store.history()) == 1
    assert store.history()[0].processing_minutes == 4

    clock.advance(hours=3)
    report = store.prune()
    assert report.history == 1
    assert report.total == 1
    assert store.history() == []


def test_record_outcome_ignores_running_cases(store, clock):
    store.record_outcome(CaseProcessingStatus(case_id="c", state=CaseState.PROCESSING))
    assert store.history() == []
