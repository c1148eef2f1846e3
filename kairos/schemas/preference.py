from pydantic import BaseModel, Field, field_validator
from typing import Optional, Dict
from datetime import datetime
from kairos.models.enums import Intensity
from kairos.schemas.task import _validate_hhmm

class PreferenceBase(BaseModel):
    enabled: bool = True
    categories: Dict[str, bool] = {}
    priorities: Dict[str, bool] = {}
    quiet_hours_start: Optional[str] = None
    quiet_hours_end: Optional[str] = None
    timezone: Optional[str] = None
    location_aware: bool = False
    context_aware: bool = False
    intensity: Intensity = Intensity.MEDIUM
    push_enabled: bool = False

class PreferenceUpdate(BaseModel):
    """Partial update: only the fields sent are applied; category/priority maps merge key-wise."""
    enabled: Optional[bool] = None
    categories: Optional[Dict[str, bool]] = None
    priorities: Optional[Dict[str, bool]] = None
    quiet_hours_start: Optional[str] = None
    quiet_hours_end: Optional[str] = None
    timezone: Optional[str] = None
    location_aware: Optional[bool] = None
    context_aware: Optional[bool] = None
    intensity: Optional[Intensity] = None
    push_enabled: Optional[bool] = None
    fcm_token: Optional[str] = None

    @field_validator('quiet_hours_start', 'quiet_hours_end')
    def check_time_format(cls, v):
        return _validate_hhmm(v)

class PreferenceResponse(PreferenceBase):
    id: int
    user_id: int
    focus_until: Optional[datetime] = None
    focus_active: bool = False

    class Config:
        from_attributes = True

class FocusModeRequest(BaseModel):
    minutes: int = Field(default=30, ge=1, le=24 * 60)
