from typing import List

from fastapi import APIRouter, HTTPException, Request, status

from ..schemas.case import CaseInput, CaseStatusResponse

router = APIRouter(prefix="/api/v1", tags=["cases"])


@router.post("/cases", response_model=CaseStatusResponse, status_code=status.HTTP_202_ACCEPTED)
async def submit_case(body: CaseInput, request: Request):
    context = request.app.state.context
    queued = context.submit_case(body.to_case())
    return CaseStatusResponse.model_validate(queued)


@router.get("/cases/active", response_model=List[CaseStatusResponse])
async def active_cases(request: Request):
    context = request.app.state.context
    return [CaseStatusResponse.model_validate(s) for s in context.get_active_statuses()]


@router.get("/cases/{case_id}", response_model=CaseStatusResponse)
async def case_status(case_id: str, request: Request):
    found = request.app.state.context.get_case_status(case_id)
    if found is None:
        raise HTTPException(status_code=404, detail=f"Unknown case: {case_id}")
    return CaseStatusResponse.model_validate(found)
