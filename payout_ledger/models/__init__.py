"""SQLAlchemy models for the payout ledger."""

from payout_ledger.models.profile import Profile
from payout_ledger.models.transaction import Transaction
from payout_ledger.models.withdrawal import Withdrawal
from payout_ledger.models.adjustment import BalanceAdjustment
from payout_ledger.models.custom_plan import CustomPlan, CustomPlanRate

__all__ = [
    "Profile",
    "Transaction",
    "Withdrawal",
    "BalanceAdjustment",
    "CustomPlan",
    "CustomPlanRate",
]
