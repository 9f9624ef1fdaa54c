from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional, Tuple


@dataclass(frozen=True)
class DashboardMetrics:
    total_cases: int = 0
    active_cases: int = 0
    cases_processed_today: int = 0
    average_processing_time: float = 0.0
    ai_accuracy: float = 0.0
    global_consultations: int = 0
    active_consultations: int = 0
    system_load: float = 0.0
    uptime: float = 0.0
    # Names of fields that fell back to a degraded value on the last refresh.
    degraded_fields: Tuple[str, ...] = ()
    refreshed_at: Optional[datetime] = None

    @property
    def degraded(self) -> bool:
        return bool(self.degraded_fields)


__all__ = ["DashboardMetrics"]
