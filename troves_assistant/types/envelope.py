from datetime import datetime, timezone
from typing import Any, Optional
from pydantic import BaseModel, Field


def utc_timestamp() -> str:
    return datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")


class ApiEnvelope(BaseModel):
    """Uniform JSON body returned by every /api/troves endpoint."""

    success: bool = Field(description="Whether the request succeeded")
    data: Optional[Any] = Field(default=None, description="Payload for successful requests")
    message: Optional[str] = Field(default=None, description="Human readable status or failure reason")
    error: Optional[str] = Field(default=None, description="Underlying error (omitted in production)")
    timestamp: str = Field(default_factory=utc_timestamp, description="ISO-8601 UTC time of the response")

    def to_content(self) -> dict:
        return self.model_dump(mode="json", exclude_none=True)


def success_envelope(data: Any) -> dict:
    return ApiEnvelope(success=True, data=data).to_content()


def error_envelope(message: str, error: Optional[str] = None) -> dict:
    return ApiEnvelope(success=False, message=message, error=error).to_content()
