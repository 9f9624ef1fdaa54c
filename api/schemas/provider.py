from __future__ import annotations

from typing import List, Optional

from pydantic import BaseModel, ConfigDict

from mednexus_dashboard.analysis import PatternMatch

from .case import CaseInput


class ProviderStatusResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    provider_id: str
    display_name: str
    description: str
    configured: bool
    primary: bool
    current: bool


class ProviderSelection(BaseModel):
    provider_id: str


class AnalyzeRequest(BaseModel):
    case: CaseInput
    preferred_provider: Optional[str] = None


class ProviderResultResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    patterns: List[PatternMatch]
    used_provider: str
    success: bool
    error: Optional[str] = None
