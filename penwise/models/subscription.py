"""Subscription model."""

from datetime import datetime
from typing import TYPE_CHECKING, Optional
from uuid import UUID

from sqlalchemy import DateTime, ForeignKey, Index, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from penwise.models._base import ModelBase

if TYPE_CHECKING:
    from penwise.models.user import User


class Subscription(ModelBase):
    """Local mirror of a payment-provider subscription.

    One row per provider customer; rows are upserted on
    ``external_customer_id``.
    """

    __tablename__ = "subscription"

    user_id: Mapped[UUID] = mapped_column(
        ForeignKey("user.id", ondelete="CASCADE", name="fk_subscription_user_id"),
        nullable=False,
    )
    plan: Mapped[str] = mapped_column(String(20), nullable=False)
    status: Mapped[str] = mapped_column(String(20), nullable=False)
    external_customer_id: Mapped[str] = mapped_column(String(255), unique=True, nullable=False)
    external_subscription_id: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    current_period_end: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    canceled_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)

    user: Mapped["User"] = relationship("User", back_populates="subscriptions", lazy="noload")

    __table_args__ = (
        Index("idx_subscription_user_id", "user_id"),
        Index("idx_subscription_user_id_status", "user_id", "status"),
    )
