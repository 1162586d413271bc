from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel

BRANDING_KEYS = ("school_name", "school_logo", "theme_color", "school_address")


class SettingValue(BaseModel):
    value: Optional[str] = None
    type: str = "text"
    description: Optional[str] = None
    updated_at: Optional[datetime] = None


class SettingResponse(BaseModel):
    key: str
    value: Optional[str] = None
    type: str = "text"
    description: Optional[str] = None
    updated_at: Optional[datetime] = None


class SettingUpdate(BaseModel):
    # Checked in the service so an explicit null reports the same message as a missing value
    value: Optional[Any] = None


class SettingsBulkUpdate(BaseModel):
    settings: Dict[str, Any]


class SettingBulkResult(BaseModel):
    key: str
    success: bool
    action: Optional[str] = None
    error: Optional[str] = None


class SettingsBulkSummary(BaseModel):
    total: int
    successful: int
    failed: int


class SettingsBulkResponse(BaseModel):
    success: bool = True
    message: str
    results: List[SettingBulkResult]
    summary: SettingsBulkSummary
