from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence, Tuple

from ..exceptions import ProviderTimeoutError, UnknownProviderError
from ..models.case import MedicalCase
from .providers import AnalysisProvider, PatternMatch

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ProviderResult:
    patterns: Tuple[PatternMatch, ...]
    used_provider: str
    success: bool
    error: Optional[str] = None


@dataclass(frozen=True)
class ProviderStatus:
    provider_id: str
    display_name: str
    description: str
    configured: bool
    primary: bool
    current: bool


class ProviderFallbackManager:
    """Routes analysis calls to one provider and cascades when the primary fails.

    Providers keep the order they were given in; the first one is the
    primary. Only a failing primary triggers the cascade. A failing
    non-primary provider is reported as-is.
    """

    def __init__(self, providers: Sequence[AnalysisProvider]):
        if not providers:
            raise ValueError("At least one analysis provider is required")
        self._providers: Dict[str, AnalysisProvider] = {}
        for provider in providers:
            if provider.provider_id in self._providers:
                raise ValueError(f"Duplicate provider id '{provider.provider_id}'")
            self._providers[provider.provider_id] = provider
        self._order: List[str] = [p.provider_id for p in providers]
        self._current = self._order[0]

    @property
    def primary_provider(self) -> str:
        return self._order[0]

    @property
    def current_provider(self) -> str:
        return self._current

    @property
    def provider_ids(self) -> List[str]:
        return list(self._order)

    def set_current_provider(self, provider_id: str) -> None:
        if provider_id not in self._providers:
            raise UnknownProviderError(provider_id)
        self._current = provider_id
        logger.info("Switched current AI provider to %s", provider_id)

    def available_providers(self) -> List[ProviderStatus]:
        return [
            ProviderStatus(
                provider_id=pid,
                display_name=self._providers[pid].display_name,
                description=self._providers[pid].description,
                configured=self._providers[pid].configured,
                primary=pid == self.primary_provider,
                current=pid == self._current,
            )
            for pid in self._order
        ]

    def is_configured(self, provider_id: str) -> bool:
        provider = self._providers.get(provider_id)
        return provider is not None and provider.configured

    async def analyze(
        self, case: MedicalCase, preferred_provider: Optional[str] = None
    ) -> ProviderResult:
        target = preferred_provider or self._current
        if target not in self._providers:
            logger.warning("Analysis of case %s requested unknown provider %s", case.case_id, target)
            return ProviderResult(
                patterns=(),
                used_provider=target,
                success=False,
                error=str(UnknownProviderError(target)),
            )

        try:
            patterns = await self._invoke(target, case)
            return ProviderResult(patterns=tuple(patterns), used_provider=target, success=True)
        except Exception as exc:
            last_error = str(exc) or exc.__class__.__name__
            logger.warning("Provider %s failed for case %s: %s", target, case.case_id, last_error)

        if target != self.primary_provider:
            return ProviderResult(patterns=(), used_provider=target, success=False, error=last_error)

        for fallback in self._order[1:]:
            if not self._providers[fallback].configured:
                logger.info("Skipping unconfigured fallback provider %s", fallback)
                continue
            logger.info("Falling back to %s for case %s", fallback, case.case_id)
            try:
                patterns = await self._invoke(fallback, case)
                return ProviderResult(
                    patterns=tuple(patterns), used_provider=fallback, success=True
                )
            except Exception as exc:
                last_error = str(exc) or exc.__class__.__name__
                logger.warning(
                    "Fallback provider %s failed for case %s: %s", fallback, case.case_id, last_error
                )

        logger.error("All AI providers failed for case %s", case.case_id)
        return ProviderResult(patterns=(), used_provider=target, success=False, error=last_error)

    async def _invoke(self, provider_id: str, case: MedicalCase) -> List[PatternMatch]:
        provider = self._providers[provider_id]
        logger.info("Attempting analysis of case %s with %s", case.case_id, provider_id)
        try:
            return list(
                await asyncio.wait_for(provider.analyze(case), timeout=provider.timeout_seconds)
            )
        except asyncio.TimeoutError as exc:
            raise ProviderTimeoutError(
                provider_id, f"{provider.display_name} timed out after {provider.timeout_seconds:g}s"
            ) from exc

    async def aclose(self) -> None:
        for provider in self._providers.values():
            try:
                await provider.aclose()
            except Exception:
                logger.exception("Failed to close provider %s", provider.provider_id)


__all__ = ["ProviderFallbackManager", "ProviderResult", "ProviderStatus"]
