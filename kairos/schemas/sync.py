from pydantic import BaseModel
from typing import Optional, Dict, List
from datetime import datetime, date

class SyncStatusResponse(BaseModel):
    status: str = "none"
    in_progress: bool = False
    last_sync: Optional[datetime] = None
    changes: Optional[Dict[str, int]] = None
    count: Optional[int] = None
    error: Optional[str] = None

    class Config:
        from_attributes = True

class IntegrationStatusResponse(BaseModel):
    calendar: SyncStatusResponse
    health: SyncStatusResponse

class SyncResult(BaseModel):
    success: bool
    message: str
    changes: Optional[Dict[str, int]] = None
    count: Optional[int] = None

class CorrelationDay(BaseModel):
    date: date
    steps: int
    sleep_hours: float
    heart_rate: float
    total_tasks: int
    completed_tasks: int
    completion_rate: float

class Insight(BaseModel):
    type: str
    description: str
    impact: str
    confidence: str

class CorrelationResponse(BaseModel):
    correlations: List[CorrelationDay]
    insights: List[Insight]
