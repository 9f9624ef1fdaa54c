from __future__ import annotations

import asyncio
import logging
from typing import Awaitable, Callable, Dict, List, Optional, Tuple

import httpx

from ..analysis.fallback import ProviderFallbackManager, ProviderResult, ProviderStatus
from ..analysis.outcomes import AnalysisOutcomeSource, ProviderOutcomeSource, RandomOutcomeSource
from ..analysis.providers import AnalysisProvider, build_providers
from ..config import DashboardSettings
from ..data.store import DashboardStore, PruneReport
from ..dispatcher import EventDispatcher, Subscriber
from ..models.case import CaseProcessingStatus, MedicalCase
from ..models.consultation import ConsultationRequest, ConsultationStatus
from ..models.events import ConsultationUpdated
from ..models.insight import AIInsight, DashboardNotification, NotificationDraft, NotificationKind
from ..models.metrics import DashboardMetrics
from ..processing.pipeline import CaseProcessingPipeline, Sleep
from ..utils.clock import Clock, utc_now
from .analytics import feature_utilization, performance_analytics
from .collaborators import (
    HttpStorageStats,
    JobQueueStatusSource,
    JsonRpcNetworkProbe,
    NetworkProbe,
    StorageStatsSource,
    StoreJobQueue,
    UnavailableCollaborator,
)
from .metrics import MetricsAggregator

logger = logging.getLogger(__name__)

CONSULTATION_NOTICES: Dict[ConsultationStatus, Tuple[NotificationKind, str, str]] = {
    ConsultationStatus.MATCHED: (
        NotificationKind.SUCCESS,
        "Consultation Matched",
        "Your {specialty} consultation request has been matched with an expert",
    ),
    ConsultationStatus.ACTIVE: (
        NotificationKind.INFO,
        "Consultation Started",
        "Your {specialty} consultation is now active",
    ),
    ConsultationStatus.COMPLETED: (
        NotificationKind.SUCCESS,
        "Consultation Completed",
        "Your {specialty} consultation has been completed",
    ),
    ConsultationStatus.EXPIRED: (
        NotificationKind.WARNING,
        "Consultation Expired",
        "Your {specialty} consultation request has expired",
    ),
}


class DashboardContext:
    """Process-wide dashboard state, built once at startup.

    Owns the store, dispatcher, provider manager, pipeline and metrics
    aggregator, plus the two background timers (metrics refresh and
    retention sweep) that ``start``/``stop`` manage together.
    """

    def __init__(
        self,
        settings: DashboardSettings,
        dispatcher: EventDispatcher,
        store: DashboardStore,
        providers: ProviderFallbackManager,
        pipeline: CaseProcessingPipeline,
        aggregator: MetricsAggregator,
        clock: Clock = utc_now,
        closers: Optional[List[Callable[[], Awaitable[None]]]] = None,
    ):
        self.settings = settings
        self.dispatcher = dispatcher
        self.store = store
        self.providers = providers
        self.pipeline = pipeline
        self.aggregator = aggregator
        self._clock = clock
        self._closers = closers or []
        self._timers: List[asyncio.Task] = []

    @classmethod
    def from_settings(
        cls,
        settings: DashboardSettings,
        *,
        providers: Optional[List[AnalysisProvider]] = None,
        outcomes: Optional[AnalysisOutcomeSource] = None,
        storage: Optional[StorageStatsSource] = None,
        job_queue: Optional[JobQueueStatusSource] = None,
        network: Optional[NetworkProbe] = None,
        http_client: Optional[httpx.AsyncClient] = None,
        clock: Clock = utc_now,
        sleep: Sleep = asyncio.sleep,
    ) -> "DashboardContext":
        dispatcher = EventDispatcher(clock=clock)
        store = DashboardStore(dispatcher, retention=settings.retention, clock=clock)
        manager = ProviderFallbackManager(
            providers if providers is not None else build_providers(settings.providers, client=http_client)
        )

        if outcomes is None:
            random_source = RandomOutcomeSource(
                consultation_probability=settings.pipeline.consultation_probability,
                seed=settings.pipeline.random_seed,
            )
            if settings.pipeline.outcome_source == "random":
                outcomes = random_source
            else:
                outcomes = ProviderOutcomeSource(manager, delegate=random_source)

        pipeline = CaseProcessingPipeline(
            store, dispatcher, outcomes, settings=settings.pipeline, clock=clock, sleep=sleep
        )

        collab = settings.collaborators
        closers: List[Callable[[], Awaitable[None]]] = [manager.aclose]
        if storage is None:
            if collab.storage_stats_url:
                storage = HttpStorageStats(
                    collab.storage_stats_url, collab.request_timeout_seconds, client=http_client
                )
                closers.append(storage.aclose)
            else:
                storage = UnavailableCollaborator("storage stats")
        if network is None:
            if collab.rpc_url:
                network = JsonRpcNetworkProbe(
                    collab.rpc_url, collab.request_timeout_seconds, client=http_client
                )
                closers.append(network.aclose)
            else:
                network = UnavailableCollaborator("network probe")
        if job_queue is None:
            job_queue = StoreJobQueue(store, manager)

        aggregator = MetricsAggregator(
            dispatcher,
            storage=storage,
            job_queue=job_queue,
            network=network,
            local_case_count=lambda: pipeline.submitted_count,
            settings=settings.metrics,
            clock=clock,
        )
        return cls(
            settings=settings,
            dispatcher=dispatcher,
            store=store,
            providers=manager,
            pipeline=pipeline,
            aggregator=aggregator,
            clock=clock,
            closers=closers,
        )

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    @property
    def running(self) -> bool:
        return any(not t.done() for t in self._timers)

    async def start(self) -> None:
        if self.running:
            return
        await self.aggregator.refresh()
        self._timers = [
            asyncio.create_task(
                self._every(self.settings.metrics.refresh_interval_seconds, self.aggregator.refresh),
                name="metrics-refresh",
            ),
            asyncio.create_task(
                self._every(self.settings.retention.sweep_interval_seconds, self.prune),
                name="retention-sweep",
            ),
        ]
        logger.info(
            "Dashboard started with providers %s (primary %s)",
            ", ".join(self.providers.provider_ids),
            self.providers.primary_provider,
        )

    async def stop(self) -> None:
        timers, self._timers = self._timers, []
        for task in timers:
            task.cancel()
        if timers:
            await asyncio.gather(*timers, return_exceptions=True)
        await self.pipeline.cancel_all()
        for close in self._closers:
            await close()
        logger.info("Dashboard stopped")

    async def _every(self, interval: float, job: Callable[[], Awaitable[object]]) -> None:
        while True:
            await asyncio.sleep(interval)
            try:
                await job()
            except Exception:
                logger.exception("Background job %s failed", getattr(job, "__name__", job))

    async def prune(self) -> PruneReport:
        return self.store.prune(self._clock())

    # ------------------------------------------------------------------
    # Cases
    # ------------------------------------------------------------------

    def submit_case(self, case: MedicalCase) -> CaseProcessingStatus:
        return self.pipeline.submit(case)

    def get_case_status(self, case_id: str) -> Optional[CaseProcessingStatus]:
        return self.store.get_status(case_id)

    def get_active_statuses(self) -> List[CaseProcessingStatus]:
        return self.store.active_statuses()

    async def wait_for_cases(self) -> None:
        await self.pipeline.join()

    # ------------------------------------------------------------------
    # Insights, notifications, metrics
    # ------------------------------------------------------------------

    def get_insights(self, limit: int = 10) -> List[AIInsight]:
        return self.store.list_insights(limit)

    def get_notifications(self, unread_only: bool = False) -> List[DashboardNotification]:
        return self.store.list_notifications(unread_only)

    def mark_notification_read(self, notification_id: str) -> None:
        self.store.mark_read(notification_id)

    def get_metrics(self) -> DashboardMetrics:
        return self.aggregator.snapshot

    def performance_analytics(self, hours: int = 24) -> Dict[str, List]:
        return performance_analytics(self.store.history(), self._clock(), hours=hours)

    def feature_utilization(self) -> Dict[str, float]:
        return feature_utilization(self.get_metrics(), self.store.insight_count)

    def subscribe(self, callback: Subscriber) -> Callable[[], None]:
        return self.dispatcher.subscribe(callback)

    # ------------------------------------------------------------------
    # Providers and consultations
    # ------------------------------------------------------------------

    def available_providers(self) -> List[ProviderStatus]:
        return self.providers.available_providers()

    def set_current_provider(self, provider_id: str) -> None:
        self.providers.set_current_provider(provider_id)

    async def analyze(
        self, case: MedicalCase, preferred_provider: Optional[str] = None
    ) -> ProviderResult:
        return await self.providers.analyze(case, preferred_provider)

    def update_consultation_status(self, request: ConsultationRequest) -> Optional[str]:
        notice = CONSULTATION_NOTICES.get(request.status)
        notification_id = None
        if notice is not None:
            kind, title, template = notice
            notification_id = self.store.add_notification(
                NotificationDraft(
                    kind=kind,
                    title=title,
                    message=template.format(specialty=request.specialty),
                    action_url=f"/consultations/{request.request_id}",
                )
            )
        self.dispatcher.publish(
            ConsultationUpdated(request=request, notification_id=notification_id)
        )
        return notification_id


__all__ = ["CONSULTATION_NOTICES", "DashboardContext"]
