"""
Base schemas used across the application.
"""
from typing import Optional
from pydantic import BaseModel, Field


class ErrorResponse(BaseModel):
    """Body returned for every domain error."""
    success: bool = False
    error: str = Field(description="Stable error code, e.g. 'daily_limit_exceeded'")
    message: str
    request_id: Optional[str] = None
