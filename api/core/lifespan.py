from __future__ import annotations

from contextlib import asynccontextmanager

from fastapi import FastAPI

from mednexus_dashboard.config import DashboardSettings, load_config
from mednexus_dashboard.dashboard import DashboardContext
from mednexus_dashboard.utils import configure_logging

from .config import get_config_path


@asynccontextmanager
async def lifespan(app: FastAPI):
    cfg = load_config(get_config_path())
    settings = DashboardSettings.from_config(cfg)
    configure_logging(settings.log_level)

    context = DashboardContext.from_settings(settings)
    await context.start()

    app.state.cfg = cfg
    app.state.settings = settings
    app.state.context = context
    try:
        yield
    finally:
        await context.stop()
        app.state.context = None
