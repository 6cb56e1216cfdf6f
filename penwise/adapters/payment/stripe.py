"""Stripe implementation of PaymentGatewayProtocol.

The Stripe SDK is synchronous; every call runs in a worker thread. Connection
failures are retried, everything else Stripe raises is converted into
``ExternalServiceError`` so the domain never sees SDK exception types.
"""

import asyncio
import functools
from typing import Any, Callable, Dict, Optional

import stripe
from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_exponential

from penwise.core.config.enums import BillingPeriod
from penwise.core.exceptions import ExternalServiceError
from penwise.core.logging import logger
from penwise.core.protocols.payment import PaymentGatewayProtocol
from penwise.domains.billing.exceptions import WebhookSignatureError
from penwise.domains.plans.types import Plan, parse_plan

# Provider statuses worth passing through to the client; anything else is a 503.
_PROPAGATED_STATUSES = {400, 429}


def _stripe_call(fn: Callable) -> Callable:
    """Run a blocking SDK call off the event loop and translate Stripe errors."""

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=0.5, max=4),
        retry=retry_if_exception_type(stripe.APIConnectionError),
        reraise=True,
    )
    async def _with_retry(*args: Any, **kwargs: Any) -> Any:
        return await asyncio.to_thread(functools.partial(fn, *args, **kwargs))

    @functools.wraps(fn)
    async def wrapper(*args: Any, **kwargs: Any) -> Any:
        try:
            return await _with_retry(*args, **kwargs)
        except stripe.StripeError as e:
            status = getattr(e, "http_status", None)
            logger.error(f"Stripe call {fn.__name__} failed: {e}")
            raise ExternalServiceError(
                service_name="Stripe",
                message=getattr(e, "user_message", None) or str(e),
                status_code=status if status in _PROPAGATED_STATUSES else None,
            ) from e

    return wrapper


class StripePaymentGateway(PaymentGatewayProtocol):
    """Payment gateway backed by the Stripe API."""

    def __init__(
        self,
        api_key: str,
        webhook_secret: str,
        price_ids: dict[tuple[str, BillingPeriod], str],
    ) -> None:
        """Configure the SDK and the (plan, period) -> price table."""
        stripe.api_key = api_key
        self._webhook_secret = webhook_secret
        self._price_ids: dict[tuple[Plan, BillingPeriod], str] = {}
        for (plan_name, period), price_id in price_ids.items():
            plan = parse_plan(plan_name)
            if plan is not None:
                self._price_ids[(plan, period)] = price_id

    # -------------------------------------------------------------------------
    # Price / plan mapping
    # -------------------------------------------------------------------------

    def get_price_id_mapping(self) -> dict[str, Plan]:
        """Return reverse mapping from price IDs to plans."""
        return {price_id: plan for (plan, _), price_id in self._price_ids.items()}

    def get_price_for_plan(self, plan: Plan, period: BillingPeriod) -> Optional[str]:
        """Return the configured price ID, or None."""
        return self._price_ids.get((plan, period))

    # -------------------------------------------------------------------------
    # Customer / subscription operations
    # -------------------------------------------------------------------------

    async def create_customer(
        self,
        email: Optional[str] = None,
        metadata: Optional[Dict[str, str]] = None,
    ) -> Any:
        """Create a Stripe customer."""
        params: Dict[str, Any] = {"metadata": metadata or {}}
        if email:
            params["email"] = email
        return await _stripe_call(stripe.Customer.create)(**params)

    async def get_subscription(self, subscription_id: str) -> Any:
        """Retrieve a Stripe subscription."""
        return await _stripe_call(stripe.Subscription.retrieve)(subscription_id)

    async def update_subscription(
        self,
        subscription_id: str,
        cancel_at_period_end: Optional[bool] = None,
    ) -> Any:
        """Modify a Stripe subscription."""
        params: Dict[str, Any] = {}
        if cancel_at_period_end is not None:
            params["cancel_at_period_end"] = cancel_at_period_end
        return await _stripe_call(stripe.Subscription.modify)(subscription_id, **params)

    # -------------------------------------------------------------------------
    # Checkout / portal
    # -------------------------------------------------------------------------

    async def create_checkout_session(
        self,
        price_id: str,
        success_url: str,
        cancel_url: str,
        customer_id: Optional[str] = None,
        customer_email: Optional[str] = None,
        metadata: Optional[Dict[str, str]] = None,
    ) -> Any:
        """Create a subscription-mode Checkout session.

        The metadata is copied onto the subscription as well so later
        subscription events can be attributed without the session.
        """
        params: Dict[str, Any] = {
            "mode": "subscription",
            "payment_method_types": ["card"],
            "line_items": [{"price": price_id, "quantity": 1}],
            "success_url": success_url,
            "cancel_url": cancel_url,
            "metadata": metadata or {},
            "subscription_data": {"metadata": metadata or {}},
        }
        if customer_id:
            params["customer"] = customer_id
        elif customer_email:
            params["customer_email"] = customer_email
        return await _stripe_call(stripe.checkout.Session.create)(**params)

    async def create_portal_session(self, customer_id: str, return_url: str) -> Any:
        """Create a billing portal session."""
        return await _stripe_call(stripe.billing_portal.Session.create)(
            customer=customer_id, return_url=return_url
        )

    # -------------------------------------------------------------------------
    # Webhooks
    # -------------------------------------------------------------------------

    def verify_webhook_signature(self, payload: bytes, signature: str) -> Any:
        """Verify the Stripe-Signature header and construct the event."""
        if not self._webhook_secret:
            raise WebhookSignatureError("Webhook secret is not configured")
        try:
            return stripe.Webhook.construct_event(payload, signature, self._webhook_secret)
        except stripe.SignatureVerificationError as e:
            raise WebhookSignatureError(str(e)) from e
        except ValueError as e:
            raise WebhookSignatureError(f"Invalid webhook payload: {e}") from e
