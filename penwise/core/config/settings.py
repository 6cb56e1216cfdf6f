"""Application settings.

All values are read from the environment (or a local ``.env`` file) once at
startup through pydantic-settings.
"""

from typing import Optional

from pydantic import Field, PostgresDsn, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from penwise.core.config.enums import BillingPeriod, Environment


class Settings(BaseSettings):
    """Penwise settings.

    Attributes:
    ----------
        PROJECT_NAME (str): Name shown in the OpenAPI docs.
        ENVIRONMENT (Environment): Deployment environment.
        LOG_LEVEL (str): Root log level.
        POSTGRES_* (str): Database connection parts.
        STRIPE_ENABLED (bool): Wire the real Stripe gateway instead of the null one.
        STRIPE_SECRET_KEY (str): Stripe API key.
        STRIPE_WEBHOOK_SECRET (str): Shared secret used to verify webhook signatures.
        STRIPE_PRICE_<PLAN>_<PERIOD> (str): Stripe price id per paid plan and cadence.
        FRONTEND_URL (str): Base URL used for checkout/portal redirects.
        RATE_LIMIT_WINDOW_SECONDS (int): Override for the generic traffic window.
        RATE_LIMIT_MAX_REQUESTS (int): Override for the generic traffic budget.
        DISABLE_RATE_LIMIT (bool): Bypass all rate-limit policies.
        USAGE_TIMEZONE (str): Timezone whose calendar month bounds usage windows.
        ADMIN_API_KEY (str): Key required by admin endpoints. Empty disables them.
    """

    model_config = SettingsConfigDict(env_file=".env", extra="ignore", case_sensitive=True)

    PROJECT_NAME: str = "Penwise"
    ENVIRONMENT: Environment = Environment.LOCAL
    LOG_LEVEL: str = "INFO"
    DEBUG: bool = False

    POSTGRES_HOST: str = "localhost"
    POSTGRES_PORT: int = 5432
    POSTGRES_USER: str = "penwise"
    POSTGRES_PASSWORD: str = "penwise"
    POSTGRES_DB: str = "penwise"
    SQLALCHEMY_ASYNC_DATABASE_URI: Optional[str] = Field(default=None, validate_default=True)
    db_pool_size: int = 20
    db_pool_max_overflow: int = 40

    STRIPE_ENABLED: bool = False
    STRIPE_SECRET_KEY: str = ""
    STRIPE_WEBHOOK_SECRET: str = ""
    STRIPE_PRICE_PRO_MONTHLY: str = ""
    STRIPE_PRICE_PRO_YEARLY: str = ""
    STRIPE_PRICE_AGENCY_MONTHLY: str = ""
    STRIPE_PRICE_AGENCY_YEARLY: str = ""
    STRIPE_PRICE_ENTERPRISE_MONTHLY: str = ""
    STRIPE_PRICE_ENTERPRISE_YEARLY: str = ""

    FRONTEND_URL: str = "http://localhost:5173"

    RATE_LIMIT_WINDOW_SECONDS: int = Field(default=15 * 60, gt=0)
    RATE_LIMIT_MAX_REQUESTS: int = Field(default=100, gt=0)
    DISABLE_RATE_LIMIT: bool = False

    USAGE_TIMEZONE: str = "UTC"

    ADMIN_API_KEY: str = ""

    @field_validator("SQLALCHEMY_ASYNC_DATABASE_URI", mode="before")
    @classmethod
    def assemble_db_connection(cls, v: Optional[str], info) -> str:
        """Build the asyncpg connection string from its parts unless given explicitly."""
        if isinstance(v, str) and v:
            return v
        data = info.data
        return str(
            PostgresDsn.build(
                scheme="postgresql+asyncpg",
                username=data.get("POSTGRES_USER"),
                password=data.get("POSTGRES_PASSWORD"),
                host=data.get("POSTGRES_HOST"),
                port=data.get("POSTGRES_PORT"),
                path=data.get("POSTGRES_DB") or "",
            )
        )

    def stripe_price_ids(self) -> dict[tuple[str, BillingPeriod], str]:
        """Return configured price ids keyed by (plan name, billing period).

        Unconfigured prices are omitted.
        """
        table = {
            ("PRO", BillingPeriod.MONTHLY): self.STRIPE_PRICE_PRO_MONTHLY,
            ("PRO", BillingPeriod.YEARLY): self.STRIPE_PRICE_PRO_YEARLY,
            ("AGENCY", BillingPeriod.MONTHLY): self.STRIPE_PRICE_AGENCY_MONTHLY,
            ("AGENCY", BillingPeriod.YEARLY): self.STRIPE_PRICE_AGENCY_YEARLY,
            ("ENTERPRISE", BillingPeriod.MONTHLY): self.STRIPE_PRICE_ENTERPRISE_MONTHLY,
            ("ENTERPRISE", BillingPeriod.YEARLY): self.STRIPE_PRICE_ENTERPRISE_YEARLY,
        }
        return {key: price for key, price in table.items() if price}

    @property
    def rate_limit_enabled(self) -> bool:
        """Whether rate-limit policies are enforced."""
        return not self.DISABLE_RATE_LIMIT
