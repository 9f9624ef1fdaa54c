from __future__ import annotations

import os
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Tuple, Type, TypeVar

import yaml


DEFAULT_CONFIG_PATH = Path("config.yaml")

PROVIDER_KINDS = ("chat_completion", "keyword")

T = TypeVar("T")


def load_config(path: str | os.PathLike | None = None) -> Dict[str, Any]:
    cfg_path = Path(path) if path else DEFAULT_CONFIG_PATH
    with open(cfg_path, "r") as f:
        return yaml.safe_load(f) or {}


@dataclass(frozen=True)
class PipelineSettings:
    started_progress: int = 10
    patterns_progress: int = 30
    similarity_progress: int = 60
    analysis_progress: int = 90
    pattern_threshold: int = 2
    similar_case_threshold: int = 5
    rare_disease_confidence: float = 90.0
    consultation_probability: float = 0.3
    estimate_horizon_minutes: float = 30.0
    pattern_delay_seconds: float = 2.0
    similarity_delay_seconds: float = 3.0
    analysis_delay_seconds: float = 1.0
    # "provider" consults the fallback manager for patterns; "random" never does.
    outcome_source: str = "provider"
    random_seed: Optional[int] = None


@dataclass(frozen=True)
class RetentionSettings:
    insight_hours: float = 24.0
    notification_days: float = 7.0
    status_hours: float = 1.0
    history_hours: float = 24.0
    sweep_interval_seconds: float = 3600.0


@dataclass(frozen=True)
class MetricsSettings:
    refresh_interval_seconds: float = 30.0
    processing_time_live: float = 15.2
    processing_time_degraded: float = 45.0
    accuracy_connected: float = 94.8
    accuracy_degraded: float = 78.5
    system_load_live: float = 55.0
    system_load_degraded: float = 85.0
    uptime_default_hours: float = 24.0
    uptime_cap_hours: float = 720.0
    consultation_rate: float = 0.15
    active_consultation_rate: float = 0.3
    baseline_processing_time: float = 60.0
    baseline_system_load: float = 100.0


@dataclass(frozen=True)
class ProviderSettings:
    id: str
    kind: str = "keyword"
    display_name: str = ""
    description: str = ""
    base_url: Optional[str] = None
    model: Optional[str] = None
    api_key_env: Optional[str] = None
    metadata_url: Optional[str] = None
    timeout_seconds: float = 90.0
    metadata_timeout_seconds: float = 30.0
    inference_timeout_seconds: float = 60.0
    connect_timeout_seconds: float = 8.0
    patterns: Tuple[Dict[str, Any], ...] = ()

    @property
    def label(self) -> str:
        return self.display_name or self.id


@dataclass(frozen=True)
class CollaboratorSettings:
    storage_stats_url: Optional[str] = None
    rpc_url: Optional[str] = None
    request_timeout_seconds: float = 10.0


DEFAULT_PROVIDERS: Tuple[ProviderSettings, ...] = (
    ProviderSettings(
        id="local-patterns",
        kind="keyword",
        display_name="Local Pattern Library",
        description="Symptom keyword matching against the configured pattern table",
    ),
)


@dataclass(frozen=True)
class DashboardSettings:
    pipeline: PipelineSettings = field(default_factory=PipelineSettings)
    retention: RetentionSettings = field(default_factory=RetentionSettings)
    metrics: MetricsSettings = field(default_factory=MetricsSettings)
    providers: Tuple[ProviderSettings, ...] = DEFAULT_PROVIDERS
    collaborators: CollaboratorSettings = field(default_factory=CollaboratorSettings)
    log_level: str = "INFO"

    @classmethod
    def from_config(cls, cfg: Optional[Mapping[str, Any]]) -> "DashboardSettings":
        cfg = cfg or {}
        providers = tuple(_parse_provider(entry) for entry in cfg.get("providers") or [])
        ids = [p.id for p in providers]
        if len(ids) != len(set(ids)):
            raise ValueError(f"Duplicate provider ids in config: {ids}")
        return cls(
            pipeline=_parse_section(PipelineSettings, cfg.get("pipeline")),
            retention=_parse_section(RetentionSettings, cfg.get("retention")),
            metrics=_parse_section(MetricsSettings, cfg.get("metrics")),
            providers=providers or DEFAULT_PROVIDERS,
            collaborators=_parse_section(CollaboratorSettings, cfg.get("collaborators")),
            log_level=str((cfg.get("logging") or {}).get("level", "INFO")).upper(),
        )


def load_settings(path: str | os.PathLike | None = None) -> DashboardSettings:
    return DashboardSettings.from_config(load_config(path))


def _parse_section(cls: Type[T], raw: Any) -> T:
    if not isinstance(raw, dict):
        return cls()
    known = {f.name for f in fields(cls)}
    return cls(**{k: v for k, v in raw.items() if k in known})


def _parse_provider(raw: Any) -> ProviderSettings:
    if not isinstance(raw, dict) or not raw.get("id"):
        raise ValueError(f"Provider entry needs an 'id': {raw!r}")
    kind = str(raw.get("kind", "keyword"))
    if kind not in PROVIDER_KINDS:
        raise ValueError(f"Unknown provider kind '{kind}' for provider '{raw['id']}'")
    known = {f.name for f in fields(ProviderSettings)}
    entry = {k: v for k, v in raw.items() if k in known and k != "patterns"}
    entry["id"] = str(raw["id"])
    entry["kind"] = kind
    patterns = raw.get("patterns") or []
    entry["patterns"] = tuple(p for p in patterns if isinstance(p, dict))
    return ProviderSettings(**entry)


__all__ = [
    "CollaboratorSettings",
    "DEFAULT_CONFIG_PATH",
    "DashboardSettings",
    "MetricsSettings",
    "PipelineSettings",
    "ProviderSettings",
    "RetentionSettings",
    "load_config",
    "load_settings",
]
