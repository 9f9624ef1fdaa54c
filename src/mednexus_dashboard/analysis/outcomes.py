"""Sources for the per-stage outcomes of the case pipeline.

The pipeline never decides how many patterns or similar cases a case has;
it asks an ``AnalysisOutcomeSource``. Production wiring uses the provider
fallback manager for pattern detection; the random source reproduces the
demo behaviour and is seeded through config for repeatable runs.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Protocol, Tuple

import numpy as np

from ..exceptions import AnalysisStageError
from ..models.case import MedicalCase
from .fallback import ProviderFallbackManager
from .providers import PatternMatch


@dataclass(frozen=True)
class PatternDetection:
    count: int
    matches: Tuple[PatternMatch, ...] = ()
    provider: Optional[str] = None


class AnalysisOutcomeSource(Protocol):
    async def detect_patterns(self, case: MedicalCase) -> PatternDetection: ...

    async def find_similar_cases(self, case: MedicalCase) -> int: ...

    async def needs_consultation(self, case: MedicalCase) -> bool: ...


class RandomOutcomeSource:
    def __init__(
        self,
        consultation_probability: float = 0.3,
        seed: Optional[int] = None,
        rng: Optional[np.random.Generator] = None,
    ):
        self.consultation_probability = consultation_probability
        self._rng = rng if rng is not None else np.random.default_rng(seed)

    async def detect_patterns(self, case: MedicalCase) -> PatternDetection:
        return PatternDetection(count=int(self._rng.integers(1, 4)))

    async def find_similar_cases(self, case: MedicalCase) -> int:
        return int(self._rng.integers(2, 10))

    async def needs_consultation(self, case: MedicalCase) -> bool:
        return bool(self._rng.random() < self.consultation_probability)


class ProviderOutcomeSource:
    """Pattern detection through the fallback manager; the rest is delegated."""

    def __init__(
        self,
        manager: ProviderFallbackManager,
        delegate: Optional[AnalysisOutcomeSource] = None,
    ):
        self._manager = manager
        self._delegate = delegate or RandomOutcomeSource()

    async def detect_patterns(self, case: MedicalCase) -> PatternDetection:
        result = await self._manager.analyze(case)
        if not result.success:
            raise AnalysisStageError(f"Pattern detection failed: {result.error}")
        return PatternDetection(
            count=len(result.patterns),
            matches=result.patterns,
            provider=result.used_provider,
        )

    async def find_similar_cases(self, case: MedicalCase) -> int:
        return await self._delegate.find_similar_cases(case)

    async def needs_consultation(self, case: MedicalCase) -> bool:
        return await self._delegate.needs_consultation(case)


__all__ = [
    "AnalysisOutcomeSource",
    "PatternDetection",
    "ProviderOutcomeSource",
    "RandomOutcomeSource",
]
