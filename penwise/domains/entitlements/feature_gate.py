"""Feature gate: static plan-to-feature access rules.

Features absent from ``FEATURE_ACCESS`` are open to every plan.
"""

from typing import Optional

from penwise.domains.plans.types import ExportFormat, Plan, get_plan_limits, sorted_formats
from penwise.schemas.usage import ExportAccess, FeatureAccess

_PAID = (Plan.PRO, Plan.AGENCY, Plan.ENTERPRISE)
_TEAM = (Plan.AGENCY, Plan.ENTERPRISE)

FEATURE_ACCESS: dict[str, tuple[Plan, ...]] = {
    "collaboration": _TEAM,
    "advanced-analytics": _TEAM,
    "api-access": (Plan.ENTERPRISE,),
    "priority-support": _TEAM,
    "brand-voice": _PAID,
    "all-templates": _PAID,
    "document-versions": _PAID,
    "export-docx": _PAID,
    "export-html": _PAID,
    "export-md": _TEAM,
    "export-txt": _TEAM,
}

ALL_PLANS_LABEL = "All plans"


class FeatureGate:
    """Pure lookups over ``FEATURE_ACCESS`` and the plan limits table."""

    def __init__(self, feature_access: Optional[dict[str, tuple[Plan, ...]]] = None) -> None:
        """Initialize with the access map (defaults to ``FEATURE_ACCESS``)."""
        self._feature_access = feature_access if feature_access is not None else FEATURE_ACCESS

    @property
    def features(self) -> list[str]:
        """Names of every restricted feature."""
        return list(self._feature_access)

    def required_plans(self, feature: str) -> Optional[list[Plan]]:
        """Plans that unlock *feature*, or None when it is unrestricted."""
        plans = self._feature_access.get(feature)
        return list(plans) if plans is not None else None

    def has_access(self, plan: Plan, feature: str) -> bool:
        """Whether *plan* may use *feature*."""
        plans = self._feature_access.get(feature)
        if plans is None:
            return True
        return plan in plans

    def check_feature_access(self, plan: Plan, feature: str) -> FeatureAccess:
        """Full access answer for the usage-check endpoint."""
        plans = self.required_plans(feature)
        has_access = self.has_access(plan, feature)
        return FeatureAccess(
            feature=feature,
            has_access=has_access,
            user_plan=plan,
            required_plans=[p.value for p in plans] if plans is not None else [ALL_PLANS_LABEL],
            needs_upgrade=not has_access,
        )

    def feature_flags(self, plan: Plan) -> dict[str, bool]:
        """Access to every restricted feature for *plan*."""
        return {feature: self.has_access(plan, feature) for feature in self._feature_access}

    def is_export_allowed(self, plan: Plan, export_format: ExportFormat) -> bool:
        """Whether *plan* may export in *export_format*."""
        return export_format in get_plan_limits(plan).allowed_export_formats

    def check_export(self, plan: Plan, export_format: ExportFormat) -> ExportAccess:
        """Full export answer, including the plans that would allow the format."""
        allowed = self.is_export_allowed(plan, export_format)
        required = None
        if not allowed:
            required = [p for p in Plan if self.is_export_allowed(p, export_format)]
        return ExportAccess(
            format=export_format,
            allowed=allowed,
            user_plan=plan,
            allowed_formats=sorted_formats(get_plan_limits(plan).allowed_export_formats),
            required_plans=required,
        )
