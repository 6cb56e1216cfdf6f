"""Container Factory.

All construction logic lives here. The factory reads settings and builds
the container with environment-appropriate implementations.
"""

from penwise.adapters.clock import SystemClock
from penwise.adapters.generation import NullContentGenerator
from penwise.core.config import Settings
from penwise.core.container.container import Container
from penwise.core.logging import logger
from penwise.core.protocols import Clock
from penwise.core.protocols.payment import PaymentGatewayProtocol
from penwise.domains.billing.repository import SubscriptionRepository
from penwise.domains.entitlements.facade import EntitlementFacade
from penwise.domains.entitlements.feature_gate import FeatureGate
from penwise.domains.rate_limits.limiter import InMemoryRateLimiter
from penwise.domains.rate_limits.policies import build_policies
from penwise.domains.users.repository import UserRepository


def create_container(settings: Settings) -> Container:
    """Build container with environment-appropriate implementations.

    This is the single source of truth for dependency wiring.

    Args:
        settings: Application settings (from core/config)

    Returns:
        Fully constructed Container ready for use
    """
    clock = SystemClock()
    user_repo = UserRepository()
    subscription_repo = SubscriptionRepository()
    feature_gate = FeatureGate()

    # -----------------------------------------------------------------
    # Rate limiting (per process, in memory)
    # -----------------------------------------------------------------
    rate_limiter = InMemoryRateLimiter(
        build_policies(settings),
        clock=clock,
        enabled=settings.rate_limit_enabled,
    )
    if not settings.rate_limit_enabled:
        logger.warning("Rate limiting is disabled (DISABLE_RATE_LIMIT=true)")

    usage_services = _create_usage_services(settings, user_repo, clock, feature_gate)
    billing_services = _create_billing_services(settings, user_repo, subscription_repo, clock)

    entitlements = EntitlementFacade(
        meter=usage_services["usage_meter"],
        feature_gate=feature_gate,
        rate_limiter=rate_limiter,
    )

    return Container(
        clock=clock,
        payment_gateway=billing_services["payment_gateway"],
        billing_service=billing_services["billing_service"],
        billing_webhook=billing_services["billing_webhook"],
        user_repo=user_repo,
        subscription_repo=subscription_repo,
        usage_meter=usage_services["usage_meter"],
        usage_ledger=usage_services["usage_ledger"],
        rate_limiter=rate_limiter,
        feature_gate=feature_gate,
        entitlements=entitlements,
        content_generator=NullContentGenerator(),
    )


# ---------------------------------------------------------------------------
# Private factory functions for each dependency
# ---------------------------------------------------------------------------


def _create_usage_services(
    settings: Settings,
    user_repo: UserRepository,
    clock: Clock,
    feature_gate: FeatureGate,
) -> dict:
    """Create the usage meter and ledger over a shared ledger repository."""
    from penwise.domains.usage.ledger import UsageLedger
    from penwise.domains.usage.meter import UsageMeter
    from penwise.domains.usage.repository import UsageLedgerRepository
    from penwise.domains.usage.types import resolve_timezone

    ledger_repo = UsageLedgerRepository()
    return {
        "usage_meter": UsageMeter(
            user_repo=user_repo,
            ledger_repo=ledger_repo,
            clock=clock,
            tz=resolve_timezone(settings.USAGE_TIMEZONE),
            feature_gate=feature_gate,
        ),
        "usage_ledger": UsageLedger(ledger_repo=ledger_repo, clock=clock),
    }


def _create_payment_gateway(settings: Settings) -> PaymentGatewayProtocol:
    """Create payment gateway: Stripe if enabled, otherwise a null implementation."""
    if settings.STRIPE_ENABLED:
        from penwise.adapters.payment.stripe import StripePaymentGateway

        return StripePaymentGateway(
            api_key=settings.STRIPE_SECRET_KEY,
            webhook_secret=settings.STRIPE_WEBHOOK_SECRET,
            price_ids=settings.stripe_price_ids(),
        )

    from penwise.adapters.payment.null import NullPaymentGateway

    return NullPaymentGateway()


def _create_billing_services(
    settings: Settings,
    user_repo: UserRepository,
    subscription_repo: SubscriptionRepository,
    clock: Clock,
) -> dict:
    """Create billing service and webhook processor with shared dependencies."""
    from penwise.domains.billing.service import BillingService
    from penwise.domains.billing.webhook_processor import BillingWebhookProcessor

    payment_gateway = _create_payment_gateway(settings)

    billing_service = BillingService(
        payment_gateway=payment_gateway,
        subscription_repo=subscription_repo,
        user_repo=user_repo,
        frontend_url=settings.FRONTEND_URL,
    )
    billing_webhook = BillingWebhookProcessor(
        payment_gateway=payment_gateway,
        subscription_repo=subscription_repo,
        user_repo=user_repo,
        clock=clock,
    )

    return {
        "billing_service": billing_service,
        "billing_webhook": billing_webhook,
        "payment_gateway": payment_gateway,
    }
