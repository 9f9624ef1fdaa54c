import logging
import traceback

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from mednexus_dashboard.exceptions import UnknownProviderError

from .core.config import get_cors_origins, is_debug
from .core.lifespan import lifespan
from .routers import cases, consultations, events, health, insights, metrics, notifications, providers

logger = logging.getLogger(__name__)

app = FastAPI(
    title="MedNexus Dashboard API",
    version="1.0.0",
    description="Case analysis pipeline, AI insights, notifications and live dashboard metrics",
    lifespan=lifespan,
)


@app.exception_handler(UnknownProviderError)
async def unknown_provider_handler(request: Request, exc: UnknownProviderError):
    return JSONResponse(status_code=404, content={"detail": str(exc)})


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    content = {"detail": str(exc)}
    if is_debug():
        content["traceback"] = traceback.format_exception(type(exc), exc, exc.__traceback__)
    return JSONResponse(status_code=500, content=content)

app.add_middleware(
    CORSMiddleware,
    allow_origins=get_cors_origins(),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(health.router)
app.include_router(cases.router)
app.include_router(insights.router)
app.include_router(notifications.router)
app.include_router(metrics.router)
app.include_router(providers.router)
app.include_router(consultations.router)
app.include_router(events.router)
