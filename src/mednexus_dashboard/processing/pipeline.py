from __future__ import annotations

import asyncio
import logging
from dataclasses import replace
from datetime import timedelta
from typing import Awaitable, Callable, Dict, Optional

from ..analysis.outcomes import AnalysisOutcomeSource, PatternDetection
from ..analysis.providers import PatternType
from ..config import PipelineSettings
from ..data.store import DashboardStore
from ..dispatcher import EventDispatcher
from ..models.case import CaseProcessingStatus, MedicalCase
from ..models.events import CaseCompleted, CaseFailed, CaseProgress, CaseQueued
from ..models.insight import (
    InsightDraft,
    InsightType,
    NotificationDraft,
    NotificationKind,
    Priority,
)
from ..utils.clock import Clock, utc_now

logger = logging.getLogger(__name__)

Sleep = Callable[[float], Awaitable[None]]

PATTERN_RECOMMENDATIONS = ("Consult specialist", "Additional testing recommended")
SIMILAR_CASE_RECOMMENDATIONS = ("Review similar case treatments", "Consider proven protocols")
CONSULTATION_RECOMMENDATIONS = (
    "Request cross-border consultation",
    "Specify required specialty",
)


class CaseProcessingPipeline:
    """Runs each submitted case through the staged analysis state machine.

    Every case runs as its own asyncio task. Stage outcomes come from the
    injected ``AnalysisOutcomeSource``; results land in the store and every
    stage boundary is published on the dispatcher. A failing stage marks the
    case failed and is never raised back to the submitter.
    """

    def __init__(
        self,
        store: DashboardStore,
        dispatcher: EventDispatcher,
        outcomes: AnalysisOutcomeSource,
        settings: Optional[PipelineSettings] = None,
        clock: Clock = utc_now,
        sleep: Sleep = asyncio.sleep,
    ):
        self._store = store
        self._dispatcher = dispatcher
        self._outcomes = outcomes
        self._settings = settings or PipelineSettings()
        self._clock = clock
        self._sleep = sleep
        self._tasks: Dict[str, asyncio.Task] = {}
        self._submitted = 0

    @property
    def submitted_count(self) -> int:
        return self._submitted

    @property
    def in_flight(self) -> int:
        return sum(1 for t in self._tasks.values() if not t.done())

    def submit(self, case: MedicalCase) -> CaseProcessingStatus:
        """Queue ``case`` and start its run in the background.

        Must be called from inside the running event loop. Returns a copy of
        the queued status; a case whose run is still in flight is not
        started twice.
        """
        running = self._tasks.get(case.case_id)
        if running is not None and not running.done():
            existing = self._store.get_status(case.case_id)
            if existing is not None:
                logger.info("Case %s is already being processed", case.case_id)
                return existing

        now = self._clock()
        status = CaseProcessingStatus(
            case_id=case.case_id,
            estimated_completion=now + timedelta(minutes=self._settings.estimate_horizon_minutes),
            submitted_at=now,
        )
        self._store.put_status(status)
        self._submitted += 1
        self._dispatcher.publish(CaseQueued(case_id=case.case_id))
        queued = replace(status)

        task = asyncio.get_running_loop().create_task(
            self.run(case, status), name=f"case-pipeline-{case.case_id}"
        )
        self._tasks[case.case_id] = task
        task.add_done_callback(lambda t, cid=case.case_id: self._forget(cid, t))
        return queued

    async def run(self, case: MedicalCase, status: CaseProcessingStatus) -> CaseProcessingStatus:
        s = self._settings
        try:
            status.start()
            status.advance(s.started_progress)
            self._checkpoint(status, "started")

            await self._sleep(s.pattern_delay_seconds)
            status.advance(s.patterns_progress)
            detection = await self._outcomes.detect_patterns(case)
            status.patterns_detected = detection.count
            self._emit_pattern_insight(case, detection)
            self._checkpoint(status, "pattern_detection")

            await self._sleep(s.similarity_delay_seconds)
            status.advance(s.similarity_progress)
            similar = await self._outcomes.find_similar_cases(case)
            status.similar_cases_found = similar
            if similar > s.similar_case_threshold:
                self._store.add_insight(
                    InsightDraft(
                        type=InsightType.SIMILAR_CASE_FOUND,
                        case_id=case.case_id,
                        title="Similar Cases Found",
                        description=f"Found {similar} similar cases with successful outcomes",
                        confidence=88,
                        priority=Priority.MEDIUM,
                        action_required=False,
                        recommendations=SIMILAR_CASE_RECOMMENDATIONS,
                    )
                )
            self._checkpoint(status, "similarity_search")

            await self._sleep(s.analysis_delay_seconds)
            status.advance(s.analysis_progress)
            status.analysis_complete = True
            if await self._outcomes.needs_consultation(case):
                status.consultation_requested = True
                self._store.add_insight(
                    InsightDraft(
                        type=InsightType.CONSULTATION_RECOMMENDED,
                        case_id=case.case_id,
                        title="Expert Consultation Recommended",
                        description="Complex case requires specialist consultation",
                        confidence=85,
                        priority=Priority.HIGH,
                        action_required=True,
                        recommendations=CONSULTATION_RECOMMENDATIONS,
                    )
                )
            self._checkpoint(status, "analysis_complete")

            status.complete(self._clock())
            self._store.record_outcome(status)
            self._store.add_notification(
                NotificationDraft(
                    kind=NotificationKind.SUCCESS,
                    title="Case Analysis Complete",
                    message=f"AI analysis completed for case {case.case_id}",
                    action_url=f"/cases/{case.case_id}",
                )
            )
            self._dispatcher.publish(CaseCompleted(case_id=case.case_id))
            logger.info("Case %s analysis completed", case.case_id)
        except Exception as exc:
            logger.exception("AI pipeline failed for case %s", case.case_id)
            status.fail(self._clock())
            self._store.record_outcome(status)
            self._store.add_notification(
                NotificationDraft(
                    kind=NotificationKind.ERROR,
                    title="Case Processing Failed",
                    message=f"Failed to process case {case.case_id}",
                    action_url=f"/cases/{case.case_id}",
                )
            )
            self._dispatcher.publish(
                CaseFailed(case_id=case.case_id, error=str(exc) or exc.__class__.__name__)
            )
        return status

    async def join(self) -> None:
        """Wait for every in-flight case run to finish."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks.values()), return_exceptions=True)

    async def cancel_all(self) -> None:
        tasks = list(self._tasks.values())
        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)
        self._tasks.clear()

    def _emit_pattern_insight(self, case: MedicalCase, detection: PatternDetection) -> None:
        s = self._settings
        rare = [
            m
            for m in detection.matches
            if m.pattern_type is PatternType.RARE_DISEASE and m.confidence >= s.rare_disease_confidence
        ]
        if rare:
            top = max(rare, key=lambda m: m.confidence)
            self._store.add_insight(
                InsightDraft(
                    type=InsightType.RARE_DISEASE_ALERT,
                    case_id=case.case_id,
                    title="Rare Disease Alert",
                    description=top.description or f"Pattern {top.pattern_id} strongly matches this case",
                    confidence=top.confidence,
                    priority=Priority.CRITICAL,
                    action_required=True,
                    recommendations=tuple(top.recommended_actions) or PATTERN_RECOMMENDATIONS,
                )
            )
        elif detection.count > s.pattern_threshold:
            self._store.add_insight(
                InsightDraft(
                    type=InsightType.PATTERN_DETECTED,
                    case_id=case.case_id,
                    title="Rare Disease Pattern Detected",
                    description=(
                        f"Identified {detection.count} patterns consistent with rare disease presentations"
                    ),
                    confidence=92,
                    priority=Priority.HIGH,
                    action_required=True,
                    recommendations=PATTERN_RECOMMENDATIONS,
                )
            )

    def _checkpoint(self, status: CaseProcessingStatus, stage: str) -> None:
        self._dispatcher.publish(
            CaseProgress(case_id=status.case_id, progress=status.progress, stage=stage)
        )

    def _forget(self, case_id: str, task: asyncio.Task) -> None:
        if self._tasks.get(case_id) is task:
            del self._tasks[case_id]


__all__ = ["CaseProcessingPipeline"]
