from __future__ import annotations

import logging
import math
from dataclasses import replace
from typing import Awaitable, Callable, List, Optional, TypeVar

from ..config import MetricsSettings
from ..dispatcher import EventDispatcher
from ..exceptions import CollaboratorUnavailableError
from ..models.events import MetricsUpdated
from ..models.metrics import DashboardMetrics
from ..utils.clock import Clock, utc_now
from .collaborators import JobQueueStatusSource, NetworkProbe, StorageStatsSource

logger = logging.getLogger(__name__)

T = TypeVar("T")


class MetricsAggregator:
    """Blends collaborator readings into one dashboard-wide snapshot.

    Each field degrades on its own when the collaborator feeding it fails.
    When storage stats, service status and pending jobs all fail, the whole
    snapshot becomes a minimal baseline. ``total_cases`` never drops below
    the number of cases submitted through this process.
    """

    def __init__(
        self,
        dispatcher: EventDispatcher,
        storage: StorageStatsSource,
        job_queue: JobQueueStatusSource,
        network: NetworkProbe,
        local_case_count: Callable[[], int],
        settings: Optional[MetricsSettings] = None,
        clock: Clock = utc_now,
    ):
        self._dispatcher = dispatcher
        self._storage = storage
        self._job_queue = job_queue
        self._network = network
        self._local_case_count = local_case_count
        self._settings = settings or MetricsSettings()
        self._clock = clock
        self._snapshot = DashboardMetrics()

    @property
    def snapshot(self) -> DashboardMetrics:
        floor = self._local_case_count()
        if self._snapshot.total_cases < floor:
            return replace(self._snapshot, total_cases=floor)
        return self._snapshot

    async def refresh(self) -> DashboardMetrics:
        s = self._settings
        local = self._local_case_count()

        storage = await self._attempt("storage stats", self._storage.get_storage_stats)
        status = await self._attempt("service status", self._job_queue.get_service_status)
        pending = await self._attempt("pending jobs", self._job_queue.get_pending_jobs_count)

        if storage is None and status is None and pending is None:
            logger.error("All metrics collaborators failed; publishing baseline metrics")
            snapshot = DashboardMetrics(
                total_cases=local,
                average_processing_time=s.baseline_processing_time,
                ai_accuracy=0.0,
                system_load=s.baseline_system_load,
                uptime=0.0,
                degraded_fields=(
                    "total_cases",
                    "active_cases",
                    "cases_processed_today",
                    "average_processing_time",
                    "ai_accuracy",
                    "global_consultations",
                    "active_consultations",
                    "system_load",
                    "uptime",
                ),
                refreshed_at=self._clock(),
            )
        else:
            snapshot = await self._compose(local, storage, status, pending)
            if snapshot.degraded_fields:
                logger.warning("Metrics degraded: %s", ", ".join(snapshot.degraded_fields))

        self._snapshot = snapshot
        self._dispatcher.publish(MetricsUpdated(metrics=self.snapshot))
        return self.snapshot

    async def _compose(self, local, storage, status, pending) -> DashboardMetrics:
        s = self._settings
        degraded: List[str] = []

        if storage is not None:
            total_cases = max(storage.total_files, local)
            cases_today = storage.files_this_month // 30
            global_consultations = math.floor(storage.total_files * s.consultation_rate)
        else:
            total_cases, cases_today, global_consultations = local, 0, 0
            degraded += ["total_cases", "cases_processed_today", "global_consultations"]

        if pending is not None:
            active_cases = pending
            active_consultations = max(1, math.floor(pending * s.active_consultation_rate))
        else:
            active_cases, active_consultations = 0, 0
            degraded += ["active_cases", "active_consultations"]

        if status is not None and status.initialized:
            avg_time = s.processing_time_live
            load = s.system_load_live
        else:
            avg_time = s.processing_time_degraded
            load = s.system_load_degraded
            degraded += ["average_processing_time", "system_load"]

        if status is not None and status.network_connected:
            accuracy = s.accuracy_connected
        else:
            accuracy = s.accuracy_degraded
            degraded.append("ai_accuracy")

        uptime = await self._uptime_hours()
        if uptime is None:
            uptime = s.uptime_default_hours
            degraded.append("uptime")

        return DashboardMetrics(
            total_cases=total_cases,
            active_cases=active_cases,
            cases_processed_today=cases_today,
            average_processing_time=avg_time,
            ai_accuracy=accuracy,
            global_consultations=global_consultations,
            active_consultations=active_consultations,
            system_load=load,
            uptime=uptime,
            degraded_fields=tuple(degraded),
            refreshed_at=self._clock(),
        )

    async def _uptime_hours(self) -> Optional[float]:
        latest = await self._attempt("latest block", self._network.get_latest_block_number)
        if latest is None:
            return None
        block = await self._attempt("block info", lambda: self._network.get_block(latest))
        if block is None:
            return None
        logger.debug("Latest block %d carries %d transactions", latest, block.transaction_count)
        hours = (self._clock() - block.timestamp).total_seconds() / 3600.0
        if hours <= 0:
            return self._settings.uptime_default_hours
        return round(min(hours, self._settings.uptime_cap_hours), 2)

    async def _attempt(self, label: str, call: Callable[[], Awaitable[T]]) -> Optional[T]:
        try:
            return await call()
        except CollaboratorUnavailableError as exc:
            logger.debug("%s unavailable: %s", label, exc)
        except Exception as exc:
            logger.warning("%s lookup failed: %s", label, exc)
        return None


__all__ = ["MetricsAggregator"]
