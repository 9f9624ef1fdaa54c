from typing import List

from fastapi import APIRouter, Request

from ..schemas.provider import (
    AnalyzeRequest,
    ProviderResultResponse,
    ProviderSelection,
    ProviderStatusResponse,
)

router = APIRouter(prefix="/api/v1", tags=["providers"])


@router.get("/providers", response_model=List[ProviderStatusResponse])
async def list_providers(request: Request):
    statuses = request.app.state.context.available_providers()
    return [ProviderStatusResponse.model_validate(s) for s in statuses]


@router.put("/providers/current", response_model=List[ProviderStatusResponse])
async def select_provider(body: ProviderSelection, request: Request):
    context = request.app.state.context
    # UnknownProviderError maps to 404 in the app exception handler.
    context.set_current_provider(body.provider_id)
    return [ProviderStatusResponse.model_validate(s) for s in context.available_providers()]


@router.post("/providers/analyze", response_model=ProviderResultResponse)
async def analyze(body: AnalyzeRequest, request: Request):
    result = await request.app.state.context.analyze(body.case.to_case(), body.preferred_provider)
    return ProviderResultResponse.model_validate(result)
