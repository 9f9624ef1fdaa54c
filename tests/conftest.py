import asyncio
import sys
from datetime import datetime, timedelta, timezone
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parents[1]
SRC = ROOT / "src"
for path in (SRC, ROOT):
    if str(path) not in sys.path:
        sys.path.insert(0, str(path))

from mednexus_dashboard.analysis import AnalysisProvider, PatternDetection, PatternMatch
from mednexus_dashboard.config import DashboardSettings, PipelineSettings, ProviderSettings
from mednexus_dashboard.dashboard import BlockInfo, ServiceStatus, StorageStats
from mednexus_dashboard.data import DashboardStore
from mednexus_dashboard.dispatcher import EventDispatcher
from mednexus_dashboard.exceptions import AnalysisStageError, CollaboratorUnavailableError
from mednexus_dashboard.models import MedicalCase


class FakeClock:
    def __init__(self, start=datetime(2025, 3, 14, 12, 0, tzinfo=timezone.utc)):
        self.now = start

    def __call__(self):
        return self.now

    def advance(self, **delta):
        self.now = self.now + timedelta(**delta)
        return self.now


class StaticProvider(AnalysisProvider):
    """Provider returning canned patterns, or raising ``error``."""

    def __init__(self, provider_id, patterns=(), error=None, configured=True, delay=0.0, timeout=5.0):
        super().__init__(
            ProviderSettings(id=provider_id, display_name=provider_id.title(), timeout_seconds=timeout)
        )
        self.patterns = list(patterns)
        self.error = error
        self._configured = configured
        self.delay = delay
        self.calls = 0

    @property
    def configured(self):
        return self._configured

    async def analyze(self, case):
        self.calls += 1
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error is not None:
            raise self.error
        return list(self.patterns)


class ScriptedOutcomes:
    """Deterministic outcome source; ``fail_at`` names the stage that raises."""

    def __init__(self, patterns=1, similar=3, consult=False, matches=(), fail_at=None):
        self.patterns = patterns
        self.similar = similar
        self.consult = consult
        self.matches = tuple(matches)
        self.fail_at = fail_at

    async def detect_patterns(self, case):
        if self.fail_at == "patterns":
            raise AnalysisStageError("pattern service exploded")
        return PatternDetection(count=self.patterns, matches=self.matches, provider="scripted")

    async def find_similar_cases(self, case):
        if self.fail_at == "similarity":
            raise AnalysisStageError("similarity index offline")
        return self.similar

    async def needs_consultation(self, case):
        if self.fail_at == "consultation":
            raise AnalysisStageError("consultation check failed")
        return self.consult


class FakeStorage:
    def __init__(self, total_files=0, files_this_month=0, fail=False):
        self.stats = StorageStats(total_files=total_files, files_this_month=files_this_month)
        self.fail = fail

    async def get_storage_stats(self):
        if self.fail:
            raise CollaboratorUnavailableError("storage down")
        return self.stats


class FakeJobQueue:
    def __init__(self, initialized=True, connected=True, pending=0, fail_status=False, fail_pending=False):
        self.status = ServiceStatus(initialized=initialized, network_connected=connected)
        self.pending = pending
        self.fail_status = fail_status
        self.fail_pending = fail_pending

    async def get_service_status(self):
        if self.fail_status:
            raise RuntimeError("queue status unavailable")
        return self.status

    async def get_pending_jobs_count(self):
        if self.fail_pending:
            raise RuntimeError("queue count unavailable")
        return self.pending


class FakeNetwork:
    def __init__(self, block_time=None, fail=False):
        self.block_time = block_time
        self.fail = fail

    async def get_latest_block_number(self):
        if self.fail:
            raise CollaboratorUnavailableError("rpc down")
        return 1234

    async def get_block(self, number):
        return BlockInfo(number=number, transaction_count=3, timestamp=self.block_time)


async def no_sleep(seconds):
    return None


def make_pattern(pattern_id="p1", confidence=80.0, pattern_type="symptom_cluster", **extra):
    return PatternMatch(
        pattern_id=pattern_id, confidence=confidence, pattern_type=pattern_type, **extra
    )


def make_case(case_id="case-1", symptoms=("fatigue", "rash")):
    return MedicalCase(case_id=case_id, hospital_id="hosp-1", symptoms=list(symptoms))


def fast_settings(**pipeline_overrides) -> DashboardSettings:
    pipeline = PipelineSettings(
        pattern_delay_seconds=0,
        similarity_delay_seconds=0,
        analysis_delay_seconds=0,
        **pipeline_overrides,
    )
    return DashboardSettings(pipeline=pipeline)


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def dispatcher(clock):
    return EventDispatcher(clock=clock)


@pytest.fixture
def events(dispatcher):
    received = []
    dispatcher.subscribe(received.append)
    return received


@pytest.fixture
def store(dispatcher, clock):
    return DashboardStore(dispatcher, clock=clock)
