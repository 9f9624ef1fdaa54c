"""Clock, id and logging helpers shared across the dashboard core."""

from .clock import Clock, utc_now
from .ids import new_id
from .logs import configure_logging

__all__ = ["Clock", "configure_logging", "new_id", "utc_now"]
