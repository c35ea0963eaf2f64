"""
Base schemas used across the application.
"""
from datetime import datetime, timezone
from typing import Optional, Any, Dict
from pydantic import BaseModel, Field, ConfigDict

class ResponseBase(BaseModel):
    """Base response format for API endpoints with an optional arbitrary data payload."""
    success: bool = True
    message: Optional[str] = None
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    data: Optional[Dict[str, Any]] = None

    model_config = ConfigDict(arbitrary_types_allowed=True)

class ErrorResponse(BaseModel):
    """Error body emitted by the global exception handlers."""
    success: bool = False
    error: Optional[str] = None
    message: str
    details: Optional[Dict[str, Any]] = None
    request_id: Optional[str] = None

class Pagination(BaseModel):
    total: int
    pages: int
    current_page: int
    limit: int
