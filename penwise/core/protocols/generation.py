"""Content generation protocol.

The AI call behind ``POST /ai/generate`` and ``POST /ai/stream``.
Implementations raise ``ExternalServiceError`` when the provider fails.
"""

from typing import Any, AsyncIterator, Dict, Optional, Protocol, runtime_checkable

from pydantic import BaseModel


class GenerationResult(BaseModel):
    """Text produced by a content generator plus accounting details."""

    content: str
    model: str
    tokens_used: int = 0
    cost: Optional[float] = None


class GenerationChunk(BaseModel):
    """One piece of a streamed generation.

    Accounting fields are usually only set on the final chunk.
    """

    text: str = ""
    model: Optional[str] = None
    tokens_used: Optional[int] = None
    cost: Optional[float] = None


@runtime_checkable
class ContentGenerator(Protocol):
    """Protocol for the AI content generation provider."""

    async def generate(
        self,
        prompt: str,
        *,
        template: Optional[str] = None,
        options: Optional[Dict[str, Any]] = None,
    ) -> GenerationResult:
        """Generate content for *prompt*."""
        ...

    def stream(
        self,
        prompt: str,
        *,
        template: Optional[str] = None,
        options: Optional[Dict[str, Any]] = None,
    ) -> AsyncIterator[GenerationChunk]:
        """Yield content for *prompt* as it is produced."""
        ...
