from __future__ import annotations

import asyncio
from datetime import timedelta

from conftest import FakeJobQueue, FakeNetwork, FakeStorage
from mednexus_dashboard.dashboard import MetricsAggregator
from mednexus_dashboard.models import EventType


def _aggregator(dispatcher, clock, storage=None, queue=None, network=None, local=0):
    counter = {"n": local}
    aggregator = MetricsAggregator(
        dispatcher,
        storage=storage or FakeStorage(total_files=100, files_this_month=90),
        job_queue=queue or FakeJobQueue(pending=4),
        network=network or FakeNetwork(block_time=clock.now - timedelta(hours=10)),
        local_case_count=lambda: counter["n"],
        clock=clock,
    )
    return aggregator, counter


def test_healthy_collaborators_feed_every_field(dispatcher, clock, events):
    aggregator, _ = _aggregator(dispatcher, clock)
    metrics = asyncio.run(aggregator.refresh())

    assert metrics.total_cases == 100
    assert metrics.cases_processed_today == 3
    assert metrics.global_consultations == 15
    assert metrics.active_cases == 4
    assert metrics.active_consultations == 1
    assert metrics.average_processing_time == 15.2
    assert metrics.system_load == 55
    assert metrics.ai_accuracy == 94.8
    assert metrics.uptime == 10.0
    assert metrics.degraded_fields == ()
    assert metrics.refreshed_at == clock.now
    assert [e.type for e in events] == [EventType.METRICS_UPDATED]
    assert events[0].data.metrics == metrics


def test_total_cases_floor_uses_local_counter(dispatcher, clock):
    aggregator, _ = _aggregator(dispatcher, clock, storage=FakeStorage(total_files=3), local=5)
    metrics = asyncio.run(aggregator.refresh())
    assert metrics.total_cases == 5


def test_total_cases_floor_applies_between_refreshes(dispatcher, clock):
    aggregator, counter = _aggregator(dispatcher, clock, storage=FakeStorage(total_files=3))
    asyncio.run(aggregator.refresh())
    assert aggregator.snapshot.total_cases == 3
    counter["n"] = 5
    assert aggregator.snapshot.total_cases == 5


def test_storage_outage_degrades_storage_fields(dispatcher, clock):
    aggregator, _ = _aggregator(dispatcher, clock, storage=FakeStorage(fail=True), local=2)
    metrics = asyncio.run(aggregator.refresh())

    assert metrics.total_cases == 2
    assert metrics.cases_processed_today == 0
    assert metrics.global_consultations == 0
    assert metrics.active_cases == 4
    assert set(metrics.degraded_fields) == {
        "total_cases",
        "cases_processed_today",
        "global_consultations",
    }


def test_uninitialized_queue_uses_degraded_constants(dispatcher, clock):
    queue = FakeJobQueue(initialized=False, connected=False, pending=0)
    aggregator, _ = _aggregator(dispatcher, clock, queue=queue)
    metrics = asyncio.run(aggregator.refresh())

    assert metrics.average_processing_time == 45.0
    assert metrics.system_load == 85
    assert metrics.ai_accuracy == 78.5
    assert metrics.active_cases == 0
    assert metrics.active_consultations == 1


def test_status_failure_alone_keeps_pending_count(dispatcher, clock):
    queue = FakeJobQueue(pending=10, fail_status=True)
    aggregator, _ = _aggregator(dispatcher, clock, queue=queue)
    metrics = asyncio.run(aggregator.refresh())

    assert metrics.active_cases == 10
    assert metrics.active_consultations == 3
    assert metrics.ai_accuracy == 78.5
    assert "ai_accuracy" in metrics.degraded_fields
    assert "active_cases" not in metrics.degraded_fields


def test_network_outage_defaults_uptime(dispatcher, clock):
    aggregator, _ = _aggregator(dispatcher, clock, network=FakeNetwork(fail=True))
    metrics = asyncio.run(aggregator.refresh())
    assert metrics.uptime == 24
    assert metrics.degraded_fields == ("uptime",)


def test_uptime_is_capped(dispatcher, clock):
    network = FakeNetwork(block_time=clock.now - timedelta(days=60))
    aggregator, _ = _aggregator(dispatcher, clock, network=network)
    assert asyncio.run(aggregator.refresh()).uptime == 720


def test_total_failure_falls_back_to_baseline(dispatcher, clock, events):
    aggregator, _ = _aggregator(
        dispatcher,
        clock,
        storage=FakeStorage(fail=True),
        queue=FakeJobQueue(fail_status=True, fail_pending=True),
        local=7,
    )
    metrics = asyncio.run(aggregator.refresh())

    assert metrics.total_cases == 7
    assert metrics.active_cases == 0
    assert metrics.cases_processed_today == 0
    assert metrics.global_consultations == 0
    assert metrics.active_consultations == 0
    assert metrics.average_processing_time == 60
    assert metrics.ai_accuracy == 0
    assert metrics.system_load == 100
    assert metrics.uptime == 0
    assert metrics.degraded is True
    assert events[-1].type is EventType.METRICS_UPDATED
