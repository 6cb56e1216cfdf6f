"""Usage domain exceptions."""

from typing import Optional

from penwise.core.exceptions import InvalidStateError, NotFoundException


class UsageLimitExceededError(InvalidStateError):
    """Raised when an action would exceed the user's plan quota."""

    def __init__(
        self,
        resource_kind: str,
        limit: int,
        current_usage: int,
        message: Optional[str] = None,
    ) -> None:
        """Initialize with resource kind, limit, and current usage."""
        if message is None:
            message = f"Usage limit exceeded for {resource_kind}: {current_usage}/{limit}"
        self.resource_kind = resource_kind
        self.limit = limit
        self.current_usage = current_usage
        super().__init__(message)


class UserNotFoundError(NotFoundException):
    """Raised when the user whose plan is needed does not exist."""

    def __init__(self, message: str = "User not found"):
        """Initialize with default message."""
        super().__init__(message)
