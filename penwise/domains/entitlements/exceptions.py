"""Entitlements domain exceptions."""

from typing import Optional

from penwise.core.exceptions import PermissionException


class FeatureNotEntitledError(PermissionException):
    """Raised when the user's plan does not include a gated feature."""

    def __init__(
        self,
        feature: str,
        user_plan: str,
        required_plans: list[str],
        message: Optional[str] = None,
    ) -> None:
        """Initialize with the feature, the user's plan and the plans that unlock it."""
        if message is None:
            message = (
                f"The {feature.replace('-', ' ')} feature is not available "
                f"on your {user_plan} plan."
            )
        self.feature = feature
        self.user_plan = user_plan
        self.required_plans = required_plans
        super().__init__(message)
