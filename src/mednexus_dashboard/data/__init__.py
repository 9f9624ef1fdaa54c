"""In-memory store for insights, notifications and case statuses."""

from .store import DashboardStore, PruneReport

__all__ = ["DashboardStore", "PruneReport"]
