from __future__ import annotations

from datetime import date
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field


class EngineConfigModel(BaseModel):
    currency: str = "INR"
    timezone: str = "UTC"
    upcoming_window_months: int = 1
    recent_limit: int = 5
    revenue_months: int = 6
    dedup_key: str = "name_date"


class SnapshotModel(BaseModel):
    leads: Optional[List[Dict[str, Any]]] = None
    events: Optional[List[Dict[str, Any]]] = None
    payments: Optional[List[Dict[str, Any]]] = None
    photographers: List[Dict[str, Any]] = Field(default_factory=list)
    unavailable: List[str] = Field(default_factory=list)
    today: Optional[date] = None
    config: EngineConfigModel = Field(default_factory=EngineConfigModel)


class ErrorResponse(BaseModel):
    error: str
    type: str
