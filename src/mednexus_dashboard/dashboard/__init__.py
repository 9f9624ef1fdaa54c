"""Dashboard-facing services: collaborators, metrics, analytics and the context."""

from .analytics import feature_utilization, performance_analytics
from .collaborators import (
    BlockInfo,
    HttpStorageStats,
    JsonRpcNetworkProbe,
    ServiceStatus,
    StorageStats,
    StoreJobQueue,
    UnavailableCollaborator,
)
from .context import DashboardContext
from .metrics import MetricsAggregator

__all__ = [
    "BlockInfo",
    "DashboardContext",
    "HttpStorageStats",
    "JsonRpcNetworkProbe",
    "MetricsAggregator",
    "ServiceStatus",
    "StorageStats",
    "StoreJobQueue",
    "UnavailableCollaborator",
    "feature_utilization",
    "performance_analytics",
]
