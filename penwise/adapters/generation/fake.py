"""Fake content generator for testing."""

from typing import Any, AsyncIterator, Dict, Optional

from penwise.core.exceptions import ExternalServiceError
from penwise.core.protocols.generation import (
    ContentGenerator,
    GenerationChunk,
    GenerationResult,
)


class FakeContentGenerator(ContentGenerator):
    """Test implementation of ContentGenerator.

    Echoes the prompt back and records every call. Streams the same text
    one word per chunk; ``fail_after_chunks`` makes the stream break after
    that many chunks.
    """

    def __init__(
        self,
        model: str = "fake-model",
        tokens_used: int = 42,
        should_raise: Optional[Exception] = None,
        fail_after_chunks: Optional[int] = None,
    ) -> None:
        """Initialize with canned accounting values and error injection."""
        self._model = model
        self._tokens_used = tokens_used
        self._should_raise = should_raise
        self._fail_after_chunks = fail_after_chunks
        self._calls: list[tuple[str, Optional[str], Optional[Dict[str, Any]]]] = []

    def call_count(self) -> int:
        """Number of generate and stream calls."""
        return len(self._calls)

    async def generate(
        self,
        prompt: str,
        *,
        template: Optional[str] = None,
        options: Optional[Dict[str, Any]] = None,
    ) -> GenerationResult:
        """Return the prompt as content."""
        self._calls.append((prompt, template, options))
        if self._should_raise:
            raise self._should_raise
        return GenerationResult(
            content=f"Generated: {prompt}",
            model=self._model,
            tokens_used=self._tokens_used,
            cost=0.001,
        )

    async def stream(
        self,
        prompt: str,
        *,
        template: Optional[str] = None,
        options: Optional[Dict[str, Any]] = None,
    ) -> AsyncIterator[GenerationChunk]:
        """Yield the prompt word by word, accounting on the final chunk."""
        self._calls.append((prompt, template, options))
        if self._should_raise:
            raise self._should_raise

        words = f"Generated: {prompt}".split(" ")
        for i, word in enumerate(words):
            if self._fail_after_chunks is not None and i >= self._fail_after_chunks:
                raise ExternalServiceError(
                    service_name="ContentGenerator", message="Stream interrupted"
                )
            text = word if i == len(words) - 1 else f"{word} "
            yield GenerationChunk(text=text)

        yield GenerationChunk(
            model=self._model, tokens_used=self._tokens_used, cost=0.001
        )
