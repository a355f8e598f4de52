"""Error payload returned to API clients."""

from typing import Optional

from pydantic import BaseModel, Field


class ErrorPayload(BaseModel):
    """User-facing description of a failure."""

    code: str = Field(..., description="Error code, e.g. NO_ROUTE_FOUND")
    category: str = Field(..., description="user-action, temporary, blocked or unknown")
    title: str
    description: str
    can_retry: bool
    retry_after_seconds: Optional[int] = None
    trace_id: str = Field(..., description="Identifier to quote when reporting the problem")


class ErrorResponse(BaseModel):
    success: bool = False
    error: ErrorPayload
