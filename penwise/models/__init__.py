"""Models for the application."""

from ._base import Base
from .subscription import Subscription
from .usage_ledger_entry import UsageLedgerEntry
from .user import User

__all__ = ["Base", "Subscription", "UsageLedgerEntry", "User"]
