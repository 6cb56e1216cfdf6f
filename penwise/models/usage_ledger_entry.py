"""Usage ledger entry model."""

from typing import Optional
from uuid import UUID

from sqlalchemy import JSON, Float, ForeignKey, Index, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from penwise.models._base import ModelBase


class UsageLedgerEntry(ModelBase):
    """One metered action. Append-only."""

    __tablename__ = "usage_ledger_entry"

    user_id: Mapped[UUID] = mapped_column(
        ForeignKey("user.id", ondelete="CASCADE", name="fk_usage_ledger_entry_user_id"),
        nullable=False,
    )
    resource_kind: Mapped[str] = mapped_column(String(50), nullable=False)
    cost: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    size: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    details: Mapped[Optional[dict]] = mapped_column(JSON, nullable=True)

    __table_args__ = (
        Index(
            "idx_usage_ledger_entry_user_kind_created_at",
            "user_id",
            "resource_kind",
            "created_at",
        ),
    )
