from typing import List

from fastapi import APIRouter, Query, Request

from ..schemas.insight import InsightResponse

router = APIRouter(prefix="/api/v1", tags=["insights"])


@router.get("/insights", response_model=List[InsightResponse])
async def list_insights(request: Request, limit: int = Query(10, ge=1, le=100)):
    insights = request.app.state.context.get_insights(limit)
    return [InsightResponse.model_validate(i) for i in insights]
