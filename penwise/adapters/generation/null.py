"""Null content generator.

The AI provider integration lives outside this service. Until one is wired
into the container, generation requests fail with a 503.
"""

from typing import Any, AsyncIterator, Dict, Optional

from penwise.core.exceptions import ExternalServiceError
from penwise.core.protocols.generation import (
    ContentGenerator,
    GenerationChunk,
    GenerationResult,
)


def _not_configured() -> ExternalServiceError:
    return ExternalServiceError(
        service_name="ContentGenerator",
        message="No content generation provider is configured",
    )


class NullContentGenerator(ContentGenerator):
    """Content generator used when no AI provider is configured."""

    async def generate(
        self,
        prompt: str,
        *,
        template: Optional[str] = None,
        options: Optional[Dict[str, Any]] = None,
    ) -> GenerationResult:
        """Raise, no provider configured."""
        raise _not_configured()

    def stream(
        self,
        prompt: str,
        *,
        template: Optional[str] = None,
        options: Optional[Dict[str, Any]] = None,
    ) -> AsyncIterator[GenerationChunk]:
        """Raise before any chunk is produced."""
        raise _not_configured()
