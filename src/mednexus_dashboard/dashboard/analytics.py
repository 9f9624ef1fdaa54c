from __future__ import annotations

from datetime import datetime
from typing import Dict, List, Sequence

import pandas as pd

from ..models.case import CaseHistoryRecord, CaseState
from ..models.metrics import DashboardMetrics


def performance_analytics(
    history: Sequence[CaseHistoryRecord],
    now: datetime,
    hours: int = 24,
) -> Dict[str, List]:
    """Hourly processing stats for the ``hours`` buckets ending at ``now``.

    Each bucket is labelled by the start of its hour. Hours without finished
    cases report zeros.
    """
    end = pd.Timestamp(now).tz_convert("UTC").floor("h")
    buckets = pd.date_range(end=end, periods=hours, freq="h").as_unit("ns")

    if history:
        df = pd.DataFrame(
            {
                "finished_at": [r.finished_at for r in history],
                "minutes": [r.processing_minutes for r in history],
                "failed": [r.state is CaseState.FAILED for r in history],
            }
        )
        df["bucket"] = pd.to_datetime(df["finished_at"], utc=True).dt.floor("h")
        stats = df.groupby("bucket").agg(
            processing_minutes=("minutes", "mean"),
            cases_processed=("minutes", "size"),
            failure_rate=("failed", "mean"),
        )
        stats.index = pd.DatetimeIndex(stats.index).as_unit("ns")
        stats = stats.reindex(buckets, fill_value=0)
    else:
        stats = pd.DataFrame(
            {"processing_minutes": 0.0, "cases_processed": 0, "failure_rate": 0.0},
            index=buckets,
        )

    return {
        "timestamps": [ts.isoformat() for ts in buckets],
        "processing_minutes": [round(float(v), 2) for v in stats["processing_minutes"]],
        "cases_processed": [int(v) for v in stats["cases_processed"]],
        "failure_rate": [round(float(v), 4) for v in stats["failure_rate"]],
    }


def feature_utilization(metrics: DashboardMetrics, insight_count: int) -> Dict[str, float]:
    total = metrics.total_cases
    return {
        "similar_case_matching": min(95.0, total * 0.8),
        "pattern_recognition": min(87.0, total * 0.6),
        "consultations": min(23.0, total * 0.15),
        "high_volume_processing": min(100.0, total * 1.2),
        "ai_insights": float(min(78, insight_count)),
    }


__all__ = ["feature_utilization", "performance_analytics"]
