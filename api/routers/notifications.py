from typing import List

from fastapi import APIRouter, Request, Response, status

from ..schemas.insight import NotificationResponse

router = APIRouter(prefix="/api/v1", tags=["notifications"])


@router.get("/notifications", response_model=List[NotificationResponse])
async def list_notifications(request: Request, unread_only: bool = False):
    items = request.app.state.context.get_notifications(unread_only)
    return [NotificationResponse.model_validate(n) for n in items]


@router.post("/notifications/{notification_id}/read", status_code=status.HTTP_204_NO_CONTENT)
async def mark_read(notification_id: str, request: Request):
    request.app.state.context.mark_notification_read(notification_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
