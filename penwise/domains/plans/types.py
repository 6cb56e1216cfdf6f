"""Plan types and the static plan limits table.

Pure data and pure functions; no IO. Every other component reads plan
limits through ``get_plan_limits`` so there is exactly one table.
"""

from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict

UNLIMITED = -1
"""Sentinel for "no ceiling". Must be checked before any arithmetic."""

_GIB = 1024 * 1024 * 1024


class Plan(str, Enum):
    """Subscription tier."""

    FREE = "FREE"
    PRO = "PRO"
    AGENCY = "AGENCY"
    ENTERPRISE = "ENTERPRISE"


class ExportFormat(str, Enum):
    """Document export format."""

    PDF = "PDF"
    DOCX = "DOCX"
    HTML = "HTML"
    MD = "MD"
    TXT = "TXT"
    JSON = "JSON"


class PlanLimits(BaseModel):
    """Ceilings for one plan. ``UNLIMITED`` (-1) means no ceiling."""

    model_config = ConfigDict(frozen=True)

    ai_generations_per_month: int
    documents_per_month: int
    storage_bytes_limit: int
    allowed_export_formats: frozenset[ExportFormat]
    collaborator_limit: int
    brand_voice_limit: int


PLAN_LIMITS: dict[Plan, PlanLimits] = {
    Plan.FREE: PlanLimits(
        ai_generations_per_month=10,
        documents_per_month=5,
        storage_bytes_limit=int(0.1 * _GIB),
        allowed_export_formats=frozenset({ExportFormat.PDF}),
        collaborator_limit=0,
        brand_voice_limit=1,
    ),
    Plan.PRO: PlanLimits(
        ai_generations_per_month=100,
        documents_per_month=50,
        storage_bytes_limit=5 * _GIB,
        allowed_export_formats=frozenset({ExportFormat.PDF, ExportFormat.DOCX, ExportFormat.HTML}),
        collaborator_limit=0,
        brand_voice_limit=3,
    ),
    Plan.AGENCY: PlanLimits(
        ai_generations_per_month=500,
        documents_per_month=200,
        storage_bytes_limit=50 * _GIB,
        allowed_export_formats=frozenset(
            {
                ExportFormat.PDF,
                ExportFormat.DOCX,
                ExportFormat.HTML,
                ExportFormat.MD,
                ExportFormat.TXT,
            }
        ),
        collaborator_limit=5,
        brand_voice_limit=10,
    ),
    Plan.ENTERPRISE: PlanLimits(
        ai_generations_per_month=UNLIMITED,
        documents_per_month=UNLIMITED,
        storage_bytes_limit=500 * _GIB,
        allowed_export_formats=frozenset(ExportFormat),
        collaborator_limit=UNLIMITED,
        brand_voice_limit=UNLIMITED,
    ),
}

PAID_PLANS: frozenset[Plan] = frozenset({Plan.PRO, Plan.AGENCY, Plan.ENTERPRISE})

# Stable display order for export formats.
_FORMAT_ORDER = list(ExportFormat)


def get_plan_limits(plan: Plan) -> PlanLimits:
    """Return the limits row for *plan*."""
    return PLAN_LIMITS[plan]


def is_unlimited(limit: int) -> bool:
    """Return True when *limit* is the unlimited sentinel."""
    return limit == UNLIMITED


def is_paid_plan(plan: Plan) -> bool:
    """Return True for plans that are bought through checkout."""
    return plan in PAID_PLANS


def parse_plan(value: Optional[str]) -> Optional[Plan]:
    """Parse a plan name case-insensitively; None when it is not a known plan."""
    if not value:
        return None
    try:
        return Plan(value.strip().upper())
    except ValueError:
        return None


def sorted_formats(formats: frozenset[ExportFormat]) -> list[ExportFormat]:
    """Return *formats* in display order."""
    return [fmt for fmt in _FORMAT_ORDER if fmt in formats]
