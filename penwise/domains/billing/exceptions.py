"""Billing domain exceptions."""

import functools
from typing import Optional

from penwise.core.exceptions import ExternalServiceError, InvalidStateError, NotFoundException


class BillingNotFoundError(NotFoundException):
    """Raised when a subscription or customer record is not found."""

    def __init__(self, message: str = "Billing record not found"):
        """Initialize with default message."""
        super().__init__(message)


class BillingNotAvailableError(InvalidStateError):
    """Raised by NullPaymentGateway when billing is not enabled."""

    def __init__(self, message: str = "Billing is not enabled for this instance"):
        """Initialize with default message."""
        super().__init__(message)


class WebhookSignatureError(ValueError):
    """Raised when a webhook payload fails signature verification."""

    def __init__(self, message: str = "Invalid webhook signature"):
        """Initialize with default message."""
        super().__init__(message)


class PaymentGatewayError(ExternalServiceError):
    """Wraps ExternalServiceError from the payment adapter at the domain boundary."""

    def __init__(self, message: str = "Payment gateway error", status_code: Optional[int] = None):
        """Initialize with default message."""
        super().__init__(service_name="PaymentGateway", message=message, status_code=status_code)


def wrap_gateway_errors(fn):
    """Decorator: catch ExternalServiceError from payment gateway, wrap as PaymentGatewayError."""

    @functools.wraps(fn)
    async def wrapper(*args, **kwargs):
        try:
            return await fn(*args, **kwargs)
        except PaymentGatewayError:
            raise
        except ExternalServiceError as e:
            raise PaymentGatewayError(message=e.message, status_code=e.status_code) from e

    return wrapper
