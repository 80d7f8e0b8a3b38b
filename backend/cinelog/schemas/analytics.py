from typing import Optional, List, Dict, Any
from pydantic import Field
from cinelog.schemas.common import CamelModel

class AnalyticsEvent(CamelModel):
    name: str = Field(..., min_length=1)
    properties: Optional[Dict[str, Any]] = None
    timestamp: str
    session_id: Optional[str] = None
    user_id: Optional[str] = None
    page: Optional[str] = None
    user_agent: Optional[str] = None
    environment: Optional[str] = None
    app_version: Optional[str] = None

class AnalyticsPayload(CamelModel):
    events: List[AnalyticsEvent]

class AnalyticsResponse(CamelModel):
    success: bool
    processed: int
    timestamp: str
