from fastapi import APIRouter, Request

router = APIRouter(tags=["health"])


@router.get("/health")
async def health():
    return {"status": "ok"}


@router.get("/ready")
async def ready(request: Request):
    context = getattr(request.app.state, "context", None)
    if context is None:
        return {"status": "not_ready", "reason": "dashboard context not started"}
    if not context.running:
        return {"status": "not_ready", "reason": "background timers not running"}
    return {"status": "ready"}
