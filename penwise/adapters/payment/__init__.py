"""Payment gateway adapters."""

from penwise.adapters.payment.null import NullPaymentGateway
from penwise.adapters.payment.stripe import StripePaymentGateway

__all__ = ["NullPaymentGateway", "StripePaymentGateway"]
