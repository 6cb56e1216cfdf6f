"""Dependency Injection Container.

The container is a simple immutable dataclass that holds protocol implementations.
It has no construction logic; that belongs in the factory.

Design principles:
- Container serves, factory builds
- Fail fast: all construction at startup
- Type safety: fields are protocol types
- Testing: construct directly with fakes
"""

from dataclasses import dataclass

from penwise.core.protocols import Clock, ContentGenerator
from penwise.core.protocols.payment import PaymentGatewayProtocol
from penwise.domains.billing.protocols import BillingServiceProtocol, BillingWebhookProtocol
from penwise.domains.billing.repository import SubscriptionRepositoryProtocol
from penwise.domains.entitlements.feature_gate import FeatureGate
from penwise.domains.entitlements.protocols import EntitlementFacadeProtocol
from penwise.domains.rate_limits.protocols import RateLimiter
from penwise.domains.usage.protocols import UsageLedgerProtocol, UsageMeterProtocol
from penwise.domains.users.repository import UserRepositoryProtocol


@dataclass(frozen=True)
class Container:
    """Immutable container holding all protocol implementations.

    Usage:
        # Production: use the global container built by factory
        from penwise.core.container import container
        decision = await container.entitlements.evaluate(db, ...)

        # Testing: construct directly with fakes
        test_container = Container(payment_gateway=FakePaymentGateway(), ...)

        # FastAPI endpoints: use Inject() to pull individual protocols
        from penwise.api.deps import Inject
        async def my_endpoint(meter: UsageMeterProtocol = Inject(UsageMeterProtocol)):
            ...
    """

    # Time source shared by every time-dependent component
    clock: Clock

    # Billing: payment provider, checkout/portal service, webhook processing
    payment_gateway: PaymentGatewayProtocol
    billing_service: BillingServiceProtocol
    billing_webhook: BillingWebhookProtocol

    # Repository protocols
    user_repo: UserRepositoryProtocol
    subscription_repo: SubscriptionRepositoryProtocol

    # Metering and enforcement
    usage_meter: UsageMeterProtocol
    usage_ledger: UsageLedgerProtocol
    rate_limiter: RateLimiter
    feature_gate: FeatureGate
    entitlements: EntitlementFacadeProtocol

    # AI generation provider
    content_generator: ContentGenerator
