"""Configuration module for the Penwise backend.

Provides centralized configuration management with type-safe enums.

Usage:
    from penwise.core.config import settings, Environment

    # Access settings
    if settings.STRIPE_ENABLED:
        ...

    # Use enums for type safety
    if settings.ENVIRONMENT == Environment.PRD:
        ...
"""

from penwise.core.config.enums import BillingPeriod, Environment
from penwise.core.config.settings import Settings

__all__ = [
    "Settings",
    "BillingPeriod",
    "Environment",
    "settings",
]

# Singleton settings instance
settings = Settings()
