from __future__ import annotations

import json
import logging
import os
import re
from abc import ABC, abstractmethod
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple

import httpx
from pydantic import BaseModel, Field, ValidationError

from ..config import ProviderSettings
from ..exceptions import (
    ProviderError,
    ProviderNotConfiguredError,
    ProviderResponseError,
    ProviderTimeoutError,
)
from ..models.case import MedicalCase

logger = logging.getLogger(__name__)


class PatternType(str, Enum):
    RARE_DISEASE = "rare_disease"
    SYMPTOM_CLUSTER = "symptom_cluster"
    TREATMENT_RESPONSE = "treatment_response"
    GENETIC_MARKER = "genetic_marker"


class PatternMatch(BaseModel):
    pattern_id: str
    confidence: float = Field(ge=0, le=100)
    pattern_type: PatternType
    description: str = ""
    supporting_cases: List[str] = Field(default_factory=list)
    recommended_actions: List[str] = Field(default_factory=list)


SYSTEM_PROMPT = (
    "You are a clinical pattern recognition assistant. Compare the case against "
    "known disease patterns and reply with JSON only, shaped as "
    '{"patterns": [{"pattern_id": str, "confidence": 0-100, "pattern_type": '
    '"rare_disease"|"symptom_cluster"|"treatment_response"|"genetic_marker", '
    '"description": str, "supporting_cases": [str], "recommended_actions": [str]}]}.'
)

_FENCE_RE = re.compile(r"^```(?:json)?\s*|\s*```$", re.MULTILINE)


class AnalysisProvider(ABC):
    """One interchangeable pattern-recognition backend."""

    def __init__(self, settings: ProviderSettings):
        self.settings = settings

    @property
    def provider_id(self) -> str:
        return self.settings.id

    @property
    def display_name(self) -> str:
        return self.settings.label

    @property
    def description(self) -> str:
        return self.settings.description

    @property
    def timeout_seconds(self) -> float:
        return float(self.settings.timeout_seconds)

    @property
    def configured(self) -> bool:
        return True

    @abstractmethod
    async def analyze(self, case: MedicalCase) -> List[PatternMatch]:
        """Return pattern matches for ``case`` or raise a ``ProviderError``."""

    async def aclose(self) -> None:
        return None


class KeywordPatternProvider(AnalysisProvider):
    """Matches case symptoms against a configured table of disease patterns.

    Each table entry looks like::

        {"id": "fabry", "name": "Fabry disease", "type": "rare_disease",
         "symptoms": ["burning pain", "angiokeratoma"], "actions": [...]}

    Confidence is the share of the pattern's symptoms present in the case.
    """

    async def analyze(self, case: MedicalCase) -> List[PatternMatch]:
        observed = {s.strip().lower() for s in case.symptoms if s and s.strip()}
        matches: List[PatternMatch] = []
        for entry in self.settings.patterns:
            expected = [str(s).strip().lower() for s in entry.get("symptoms", [])]
            if not expected:
                continue
            hits = [s for s in expected if s in observed]
            if not hits:
                continue
            matches.append(
                PatternMatch(
                    pattern_id=str(entry.get("id", entry.get("name", "pattern"))),
                    confidence=round(100.0 * len(hits) / len(expected), 1),
                    pattern_type=PatternType(entry.get("type", PatternType.SYMPTOM_CLUSTER.value)),
                    description=f"{entry.get('name', entry.get('id'))}: matched {', '.join(hits)}",
                    recommended_actions=[str(a) for a in entry.get("actions", [])],
                )
            )
        matches.sort(key=lambda m: m.confidence, reverse=True)
        return matches


class ChatCompletionProvider(AnalysisProvider):
    """OpenAI-compatible ``/chat/completions`` backend reached over httpx.

    When ``metadata_url`` is set, the endpoint and model are discovered with
    a GET before every inference call, each under its own timeout.
    """

    def __init__(
        self,
        settings: ProviderSettings,
        api_key: Optional[str] = None,
        client: Optional[httpx.AsyncClient] = None,
    ):
        super().__init__(settings)
        self._api_key = api_key
        self._client = client or httpx.AsyncClient()
        self._owns_client = client is None

    @property
    def configured(self) -> bool:
        has_endpoint = bool(self.settings.base_url or self.settings.metadata_url)
        has_key = bool(self._api_key) or not self.settings.api_key_env
        return has_endpoint and has_key

    async def analyze(self, case: MedicalCase) -> List[PatternMatch]:
        if not self.configured:
            raise ProviderNotConfiguredError(
                self.provider_id, f"{self.display_name} service not configured"
            )
        endpoint, model = await self._resolve_endpoint()
        payload = {
            "model": model,
            "messages": build_messages(case),
            "temperature": 0.1,
        }
        headers = {"Content-Type": "application/json"}
        if self._api_key:
            headers["Authorization"] = f"Bearer {self._api_key}"

        timeout = httpx.Timeout(
            self.settings.inference_timeout_seconds,
            connect=self.settings.connect_timeout_seconds,
        )
        try:
            response = await self._client.post(
                f"{endpoint.rstrip('/')}/chat/completions",
                json=payload,
                headers=headers,
                timeout=timeout,
            )
        except httpx.TimeoutException as exc:
            raise ProviderTimeoutError(
                self.provider_id,
                f"AI inference request timed out after {self.settings.inference_timeout_seconds:g}s",
            ) from exc
        except httpx.HTTPError as exc:
            raise ProviderError(self.provider_id, f"{self.display_name} unreachable: {exc}") from exc

        if response.status_code >= 400:
            raise ProviderResponseError(
                self.provider_id,
                f"{self.display_name} API error: {response.status_code} {response.reason_phrase}",
            )
        try:
            content = response.json()["choices"][0]["message"]["content"]
        except (ValueError, KeyError, IndexError, TypeError) as exc:
            raise ProviderResponseError(
                self.provider_id, f"{self.display_name} returned an unexpected completion body"
            ) from exc
        return parse_patterns(self.provider_id, content)

    async def _resolve_endpoint(self) -> Tuple[str, Optional[str]]:
        if not self.settings.metadata_url:
            return str(self.settings.base_url), self.settings.model

        try:
            response = await self._client.get(
                self.settings.metadata_url,
                timeout=httpx.Timeout(self.settings.metadata_timeout_seconds),
            )
            response.raise_for_status()
            meta = response.json()
        except httpx.TimeoutException as exc:
            raise ProviderTimeoutError(
                self.provider_id,
                f"Metadata request timed out after {self.settings.metadata_timeout_seconds:g}s",
            ) from exc
        except (httpx.HTTPError, ValueError) as exc:
            raise ProviderError(self.provider_id, f"Metadata request failed: {exc}") from exc

        endpoint = meta.get("endpoint") or self.settings.base_url
        if not endpoint:
            raise ProviderResponseError(self.provider_id, "Metadata did not include an endpoint")
        return str(endpoint), meta.get("model") or self.settings.model

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()


def build_messages(case: MedicalCase) -> List[Dict[str, str]]:
    lines = [f"Case ID: {case.case_id}"]
    if case.age is not None or case.gender:
        lines.append(f"Patient: age {case.age if case.age is not None else 'unknown'}, "
                     f"gender {case.gender or 'unknown'}")
    lines.append(f"Symptoms: {', '.join(case.symptoms) if case.symptoms else 'none reported'}")
    if case.notes:
        lines.append(f"Notes: {case.notes}")
    return [
        {"role": "system", "content": SYSTEM_PROMPT},
        {"role": "user", "content": "\n".join(lines)},
    ]


def parse_patterns(provider_id: str, content: str) -> List[PatternMatch]:
    """Parse a model reply into pattern matches.

    Accepts a bare JSON list or an object with a ``patterns`` list, with or
    without a markdown code fence around it.
    """
    text = _FENCE_RE.sub("", content.strip()).strip()
    try:
        data: Any = json.loads(text)
    except json.JSONDecodeError as exc:
        raise ProviderResponseError(provider_id, "Model reply was not valid JSON") from exc

    if isinstance(data, Mapping):
        data = data.get("patterns", [])
    if not isinstance(data, list):
        raise ProviderResponseError(provider_id, "Model reply did not contain a pattern list")
    try:
        return [PatternMatch.model_validate(item) for item in data]
    except ValidationError as exc:
        raise ProviderResponseError(
            provider_id, f"Model reply failed validation: {exc.error_count()} errors"
        ) from exc


def build_provider(
    settings: ProviderSettings,
    client: Optional[httpx.AsyncClient] = None,
    env: Optional[Mapping[str, str]] = None,
) -> AnalysisProvider:
    if settings.kind == "keyword":
        return KeywordPatternProvider(settings)
    if settings.kind == "chat_completion":
        env = os.environ if env is None else env
        api_key = env.get(settings.api_key_env) if settings.api_key_env else None
        if settings.api_key_env and not api_key:
            logger.info("%s disabled: %s is not set", settings.label, settings.api_key_env)
        return ChatCompletionProvider(settings, api_key=api_key, client=client)
    raise ValueError(f"Unknown provider kind '{settings.kind}'")


def build_providers(
    settings: Sequence[ProviderSettings],
    client: Optional[httpx.AsyncClient] = None,
    env: Optional[Mapping[str, str]] = None,
) -> List[AnalysisProvider]:
    return [build_provider(s, client=client, env=env) for s in settings]


__all__ = [
    "AnalysisProvider",
    "ChatCompletionProvider",
    "KeywordPatternProvider",
    "PatternMatch",
    "PatternType",
    "build_messages",
    "build_provider",
    "build_providers",
    "parse_patterns",
]
