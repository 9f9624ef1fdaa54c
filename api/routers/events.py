from fastapi import APIRouter, Request
from fastapi.responses import StreamingResponse

from ..core.config import EVENT_QUEUE_SIZE
from ..services.event_stream import EventStream

router = APIRouter(prefix="/api/v1", tags=["events"])


@router.get("/events")
async def events(request: Request):
    stream = EventStream(request.app.state.context, max_queue=EVENT_QUEUE_SIZE)
    return StreamingResponse(
        stream.sse(),
        media_type="text/event-stream",
        headers={"Cache-Control": "no-cache", "X-Accel-Buffering": "no"},
    )
