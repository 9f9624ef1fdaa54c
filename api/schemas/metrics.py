from __future__ import annotations

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict


class MetricsResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    total_cases: int
    active_cases: int
    cases_processed_today: int
    average_processing_time: float
    ai_accuracy: float
    global_consultations: int
    active_consultations: int
    system_load: float
    uptime: float
    degraded_fields: List[str]
    refreshed_at: Optional[datetime] = None


class AnalyticsResponse(BaseModel):
    timestamps: List[str]
    processing_minutes: List[float]
    cases_processed: List[int]
    failure_rate: List[float]


class UtilizationResponse(BaseModel):
    similar_case_matching: float
    pattern_recognition: float
    consultations: float
    high_volume_processing: float
    ai_insights: float
