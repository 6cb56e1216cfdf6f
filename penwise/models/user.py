"""User model."""

from typing import TYPE_CHECKING

from sqlalchemy import String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from penwise.domains.plans.types import Plan
from penwise.models._base import ModelBase

if TYPE_CHECKING:
    from penwise.models.subscription import Subscription


class User(ModelBase):
    """User model.

    ``plan`` is a cache of the user's current subscription plan. It is written
    in the same transaction as the subscription change that moves it.
    """

    __tablename__ = "user"

    plan: Mapped[str] = mapped_column(String(20), default=Plan.FREE.value, nullable=False)

    subscriptions: Mapped[list["Subscription"]] = relationship(
        "Subscription",
        back_populates="user",
        lazy="noload",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )
