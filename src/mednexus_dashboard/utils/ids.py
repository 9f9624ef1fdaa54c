from __future__ import annotations

import secrets
import string
from datetime import datetime

_ALPHABET = string.ascii_lowercase + string.digits


def new_id(prefix: str, now: datetime, length: int = 9) -> str:
    """Build ids shaped like ``insight_1718000000000_k3j9x0a2b``."""
    millis = int(now.timestamp() * 1000)
    suffix = "".join(secrets.choice(_ALPHABET) for _ in range(length))
    return f"{prefix}_{millis}_{suffix}"


__all__ = ["new_id"]
