from __future__ import annotations

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict

from mednexus_dashboard.models import InsightType, NotificationKind, Priority


class InsightResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    type: InsightType
    case_id: str
    title: str
    description: str
    confidence: float
    priority: Priority
    created_at: datetime
    action_required: bool
    recommendations: List[str]


class NotificationResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    kind: NotificationKind
    title: str
    message: str
    timestamp: datetime
    read: bool
    action_url: Optional[str] = None
