"""Usage domain types and pure business logic.

Constants, enums, and pure functions used by the meter and ledger.
No IO; everything here is deterministic.
"""

from datetime import datetime, timezone, tzinfo
from decimal import ROUND_HALF_UP, Decimal
from enum import Enum
from zoneinfo import ZoneInfo

from penwise.domains.plans.types import PlanLimits, is_unlimited
from penwise.schemas.usage import UsageCheck

UNLIMITED_LABEL = "unlimited"


class ResourceKind(str, Enum):
    """Metered resource recorded in the usage ledger."""

    GENERATION = "generation"
    DOCUMENT_CREATE = "document_create"


def monthly_limit(limits: PlanLimits, resource_kind: ResourceKind) -> int:
    """Return the per-calendar-month ceiling for *resource_kind*."""
    if resource_kind == ResourceKind.GENERATION:
        return limits.ai_generations_per_month
    return limits.documents_per_month


def resolve_timezone(name: str) -> tzinfo:
    """Return the tzinfo for an IANA name, using the builtin UTC for "UTC"."""
    if name.upper() == "UTC":
        return timezone.utc
    return ZoneInfo(name)


def start_of_month(now: datetime, tz: tzinfo) -> datetime:
    """Midnight on the first day of *now*'s month, as seen in *tz*."""
    local = now.astimezone(tz)
    return local.replace(day=1, hour=0, minute=0, second=0, microsecond=0)


def start_of_next_month(now: datetime, tz: tzinfo) -> datetime:
    """Midnight on the first day of the month after *now*'s, as seen in *tz*."""
    start = start_of_month(now, tz)
    if start.month == 12:
        return start.replace(year=start.year + 1, month=1)
    return start.replace(month=start.month + 1)


def round_half_up(value: Decimal) -> int:
    """Round to the nearest integer, halves away from zero."""
    return int(value.quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def usage_percentage(current: int, limit: int) -> int:
    """Share of *limit* consumed, as an integer percent in [0, 100]."""
    if limit <= 0:
        return 100
    percent = round_half_up(Decimal(current) * 100 / Decimal(limit))
    return max(0, min(100, percent))


def unlimited_check(current: int = 0) -> UsageCheck:
    """UsageCheck for a resource the plan does not cap."""
    return UsageCheck(
        allowed=True,
        current=current,
        limit=UNLIMITED_LABEL,
        remaining=UNLIMITED_LABEL,
        percentage=0,
    )


def build_usage_check(current: int, limit: int, requested: int = 0) -> UsageCheck:
    """Compare *current* consumption with *limit*.

    With ``requested == 0`` the next unit is allowed while ``current < limit``.
    A positive *requested* amount must also fit entirely under the limit.
    """
    if is_unlimited(limit):
        return unlimited_check()
    allowed = current < limit and current + requested <= limit
    return UsageCheck(
        allowed=allowed,
        current=current,
        limit=limit,
        remaining=max(0, limit - current),
        percentage=usage_percentage(current, limit),
    )
