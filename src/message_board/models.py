"""Pydantic models for messages and request/response bodies."""

from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field, StrictStr, field_validator

from .errors import ValidationError

MAX_TEXT_LENGTH = 500


def clean_text(text: Any) -> str:
    """Return ``text`` trimmed, or raise :class:`ValidationError`."""
    if text is None:
        raise ValidationError("Message text is required")
    if not isinstance(text, str):
        raise ValidationError("Message text must be a string")
    text = text.strip()
    if not text:
        raise ValidationError("Message text is required")
    if len(text) > MAX_TEXT_LENGTH:
        raise ValidationError(f"Message text must be at most {MAX_TEXT_LENGTH} characters")
    return text


class Message(BaseModel):
    id: str
    text: str
    timestamp: datetime

    def to_json(self) -> Dict[str, Any]:
        return self.model_dump(mode="json")


class CreateMessageRequest(BaseModel):
    text: StrictStr = Field(..., description="Message body, trimmed before storing.")

    @field_validator("text")
    @classmethod
    def _trim(cls, value: str) -> str:
        try:
            return clean_text(value)
        except ValidationError as e:
            raise ValueError(e.message) from None


class DeleteResult(BaseModel):
    success: bool = True
    message: str = "Message deleted successfully"
    id: str


class DatabaseStatus(BaseModel):
    connected: bool
    pingMs: Optional[float] = None
    messageCount: Optional[int] = None
    backend: Optional[str] = None
    error: Optional[str] = None


class HealthResponse(BaseModel):
    status: str
    database: DatabaseStatus
    timestamp: datetime


class ErrorEnvelope(BaseModel):
    error: str
    message: str
    reference: Optional[str] = None
    availableEndpoints: Optional[List[str]] = None
