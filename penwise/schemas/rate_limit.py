"""Rate limit schemas."""

from pydantic import BaseModel, Field


class RateLimitResult(BaseModel):
    """Outcome of one rate-limit hit."""

    allowed: bool = Field(..., description="Whether the request is allowed")
    retry_after: float = Field(..., description="Seconds until the current window resets")
    limit: int = Field(..., description="Maximum requests allowed in the window")
    remaining: int = Field(..., description="Requests remaining in the current window")
