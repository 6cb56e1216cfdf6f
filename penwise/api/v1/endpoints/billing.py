"""API endpoints for billing operations.

This module provides the HTTP interface for billing operations,
delegating all business logic to the billing service.
"""

from typing import Optional

from fastapi import APIRouter, Depends, Header, Request, Response
from sqlalchemy.ext.asyncio import AsyncSession

from penwise import schemas
from penwise.api import deps
from penwise.api.context import ApiContext
from penwise.api.deps import Inject
from penwise.core.logging import logger
from penwise.domains.billing.exceptions import WebhookSignatureError
from penwise.domains.billing.protocols import BillingServiceProtocol, BillingWebhookProtocol

router = APIRouter()


@router.post("/checkout-session", response_model=schemas.CheckoutSessionResponse)
async def create_checkout_session(
    request: schemas.CheckoutSessionRequest,
    db: AsyncSession = Depends(deps.get_db),
    ctx: ApiContext = Depends(deps.get_context),
    billing: BillingServiceProtocol = Inject(BillingServiceProtocol),
) -> schemas.CheckoutSessionResponse:
    """Create a Stripe checkout session for a paid plan.

    Args:
        request: Plan and billing period
        db: Database session
        ctx: Request context
        billing: Billing service

    Returns:
        Checkout session id and the URL to redirect the user to
    """
    ctx.logger.info(
        f"Starting checkout for {request.plan.value} ({request.billing_period.value})"
    )
    return await billing.create_checkout_session(
        db,
        user_id=ctx.user_id,
        plan=request.plan,
        billing_period=request.billing_period,
    )


@router.post("/portal-session", response_model=schemas.PortalSessionResponse)
async def create_portal_session(
    db: AsyncSession = Depends(deps.get_db),
    ctx: ApiContext = Depends(deps.get_context),
    billing: BillingServiceProtocol = Inject(BillingServiceProtocol),
) -> schemas.PortalSessionResponse:
    """Create a Stripe customer portal session.

    Returns 404 when the user has never started a checkout.
    """
    url = await billing.create_portal_session(db, user_id=ctx.user_id)
    return schemas.PortalSessionResponse(url=url)


@router.get("/subscription", response_model=schemas.SubscriptionResponse)
async def get_subscription(
    db: AsyncSession = Depends(deps.get_db),
    ctx: ApiContext = Depends(deps.get_context),
    billing: BillingServiceProtocol = Inject(BillingServiceProtocol),
) -> schemas.SubscriptionResponse:
    """Get the user's most recent subscription, or null."""
    subscription = await billing.get_subscription(db, user_id=ctx.user_id)
    return schemas.SubscriptionResponse(subscription=subscription)


@router.post("/cancel", response_model=schemas.CancelSubscriptionResponse)
async def cancel_subscription(
    db: AsyncSession = Depends(deps.get_db),
    ctx: ApiContext = Depends(deps.get_context),
    billing: BillingServiceProtocol = Inject(BillingServiceProtocol),
) -> schemas.CancelSubscriptionResponse:
    """Cancel the subscription at the end of the current billing period.

    Only the request goes to Stripe here. The local record changes when the
    resulting subscription webhook arrives.
    """
    message = await billing.cancel_subscription(db, user_id=ctx.user_id)
    return schemas.CancelSubscriptionResponse(message=message)


@router.post("/webhook", include_in_schema=False)
async def stripe_webhook(
    request: Request,
    stripe_signature: Optional[str] = Header(None),
    db: AsyncSession = Depends(deps.get_db),
    webhook: BillingWebhookProtocol = Inject(BillingWebhookProtocol),
) -> Response:
    """Handle Stripe webhook events.

    Security:
    - Verifies webhook signature (inside processor) before any state change
    - Idempotent processing, so Stripe redeliveries are safe

    Returns:
        200 OK on success, 400 on signature error, 500 on processing error
    """
    try:
        payload = await request.body()
    except Exception:
        return Response(status_code=400)

    if not stripe_signature:
        return Response(status_code=400)

    try:
        await webhook.process_webhook(db, payload, stripe_signature)
        return Response(status_code=200)
    except WebhookSignatureError as e:
        logger.warning(f"Rejected webhook: {e}")
        return Response(status_code=400)
    except Exception as e:
        logger.error(f"Webhook processing failed, asking Stripe to retry: {e}")
        return Response(status_code=500)
