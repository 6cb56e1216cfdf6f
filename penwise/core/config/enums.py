"""Configuration enums for type-safe settings.

These enums provide type safety and IDE autocomplete for configuration values.
They inherit from str to maintain JSON serialization compatibility.
"""

from enum import Enum


class Environment(str, Enum):
    """Deployment environments.

    Controls environment-specific behavior like log formatting and
    whether rate limiting is enforced by default.
    """

    LOCAL = "local"
    TEST = "test"
    DEV = "dev"
    PRD = "prd"


class BillingPeriod(str, Enum):
    """Billing cadence a checkout can be started for."""

    MONTHLY = "monthly"
    YEARLY = "yearly"
