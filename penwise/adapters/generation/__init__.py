"""Content generation adapters."""

from penwise.adapters.generation.null import NullContentGenerator

__all__ = ["NullContentGenerator"]
