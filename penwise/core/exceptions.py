"""Shared exceptions module."""

from typing import Optional

from pydantic import ValidationError


class PenwiseException(Exception):
    """Base exception for Penwise services."""

    pass


class UnauthenticatedException(PenwiseException):
    """Exception raised when a request carries no trusted identity."""

    def __init__(self, message: Optional[str] = "Authentication required"):
        """Create a new UnauthenticatedException instance.

        Args:
        ----
            message (str, optional): The error message. Has default message.

        """
        self.message = message
        super().__init__(self.message)


class PermissionException(PenwiseException):
    """Exception raised when a user does not have the necessary permissions to perform an action."""

    def __init__(
        self,
        message: Optional[str] = "User does not have the right to perform this action",
    ):
        """Create a new PermissionException instance.

        Args:
        ----
            message (str, optional): The error message. Has default message.

        """
        self.message = message
        super().__init__(self.message)


class NotFoundException(PenwiseException):
    """Exception raised when an object is not found."""

    def __init__(self, message: Optional[str] = "Object not found"):
        """Create a new NotFoundException instance.

        Args:
        ----
            message (str, optional): The error message. Has default message.

        """
        self.message = message
        super().__init__(self.message)


class ExternalServiceError(Exception):
    """Exception raised when an external service fails.

    ``status_code`` carries the provider's own retry/validation signal (429 or
    400) when it gave one; otherwise the API layer answers 503.
    """

    def __init__(
        self,
        service_name: str,
        message: Optional[str] = "External service failed",
        status_code: Optional[int] = None,
    ):
        """Create a new ExternalServiceError instance.

        Args:
        ----
            service_name (str): The name of the external service.
            message (str, optional): The error message. Has default message.
            status_code (int, optional): Provider status worth propagating.

        """
        self.service_name = service_name
        self.message = message
        self.status_code = status_code
        super().__init__(f"{service_name}: {message}")


class InvalidStateError(Exception):
    """Exception raised when an object is in an invalid state.

    Used when multiple services are involved and the state of one service is invalid,
    in relation to the other services.
    """

    def __init__(self, message: Optional[str] = "Object is in an invalid state"):
        """Create a new InvalidStateError instance.

        Args:
        ----
            message (str, optional): The error message. Has default message.

        """
        self.message = message
        super().__init__(self.message)


class RateLimitExceededException(PenwiseException):
    """Exception raised when a rate-limit policy rejects a request."""

    def __init__(
        self,
        retry_after: float,
        limit: int,
        remaining: int,
        policy: str,
        message: Optional[str] = None,
    ):
        """Create a new RateLimitExceededException instance.

        Args:
        ----
            retry_after (float): Seconds until the window resets.
            limit (int): Maximum requests allowed in the window.
            remaining (int): Requests remaining in current window.
            policy (str): Name of the policy that rejected the request.
            message (str, optional): Custom error message.

        """
        if message is None:
            message = (
                f"Too many requests. Please retry after {retry_after:.0f} seconds. "
                f"Limit: {limit} requests per window."
            )

        self.retry_after = retry_after
        self.limit = limit
        self.remaining = remaining
        self.policy = policy
        self.message = message
        super().__init__(self.message)


def unpack_validation_error(exc: ValidationError) -> dict:
    """Unpack a Pydantic validation error into a dictionary.

    Args:
    ----
        exc (ValidationError): The Pydantic validation error.

    Returns:
    -------
        dict: The dictionary representation of the validation error.

    """
    error_messages = []
    for error in exc.errors():
        field = ".".join(str(loc) for loc in error["loc"])
        message = error["msg"]
        error_messages.append({field: message})

    return {"errors": error_messages}
