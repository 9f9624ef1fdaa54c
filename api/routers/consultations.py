from fastapi import APIRouter, Request

from ..schemas.consultation import ConsultationUpdate, ConsultationUpdateResponse

router = APIRouter(prefix="/api/v1", tags=["consultations"])


@router.post("/consultations/status", response_model=ConsultationUpdateResponse)
async def update_status(body: ConsultationUpdate, request: Request):
    notification_id = request.app.state.context.update_consultation_status(body.to_request())
    return ConsultationUpdateResponse(
        request_id=body.request_id,
        status=body.status,
        notification_id=notification_id,
    )
