from __future__ import annotations

import os
from typing import List


def get_cors_origins() -> List[str]:
    origins_env = os.getenv("CORS_ORIGINS", "")
    if origins_env:
        return [o.strip() for o in origins_env.split(",") if o.strip()]
    return [
        "http://localhost:3000",
        "http://127.0.0.1:3000",
    ]


def get_config_path() -> str:
    return os.getenv("MEDNEXUS_CONFIG", "config.yaml")


def is_debug() -> bool:
    return os.getenv("MEDNEXUS_DEBUG", "").lower() in {"1", "true", "yes"}


EVENT_QUEUE_SIZE = int(os.getenv("MEDNEXUS_EVENT_QUEUE_SIZE", "100"))
