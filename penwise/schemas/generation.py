"""AI generation schemas."""

from typing import Any, Dict, Optional

from pydantic import BaseModel, Field

from penwise.schemas.usage import UsageCheck


class GenerateRequest(BaseModel):
    """Content generation request."""

    prompt: str = Field(..., min_length=1, max_length=20000)
    template: Optional[str] = Field(default=None, max_length=100)
    options: Optional[Dict[str, Any]] = None


class GenerateResponse(BaseModel):
    """Generated content plus the caller's usage after this call."""

    content: str
    model: str
    tokens_used: int
    usage: UsageCheck
