from fastapi import APIRouter, Query, Request

from ..schemas.metrics import AnalyticsResponse, MetricsResponse, UtilizationResponse

router = APIRouter(prefix="/api/v1", tags=["metrics"])


@router.get("/metrics", response_model=MetricsResponse)
async def metrics(request: Request):
    return MetricsResponse.model_validate(request.app.state.context.get_metrics())


@router.get("/metrics/analytics", response_model=AnalyticsResponse)
async def analytics(request: Request, hours: int = Query(24, ge=1, le=168)):
    return AnalyticsResponse(**request.app.state.context.performance_analytics(hours))


@router.get("/metrics/utilization", response_model=UtilizationResponse)
async def utilization(request: Request):
    return UtilizationResponse(**request.app.state.context.feature_utilization())
