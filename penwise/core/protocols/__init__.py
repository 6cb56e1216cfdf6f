"""Core protocols for dependency injection.

Domain-specific protocols (repositories, services) live in their respective
domains/ directories. This module keeps cross-cutting infrastructure
protocols only.
"""

from penwise.core.protocols.clock import Clock
from penwise.core.protocols.generation import (
    ContentGenerator,
    GenerationChunk,
    GenerationResult,
)
from penwise.core.protocols.payment import PaymentGatewayProtocol

__all__ = [
    "Clock",
    "ContentGenerator",
    "GenerationChunk",
    "GenerationResult",
    "PaymentGatewayProtocol",
]
