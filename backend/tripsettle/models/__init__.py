"""Models package - Import all models for SQLAlchemy registration."""
from tripsettle.models.user import User
from tripsettle.models.travel import Travel, TravelMember, TravelStatus, MemberRole
from tripsettle.models.expense import Expense, ExpenseParticipant
from tripsettle.models.settlement import TravelSettlement, SettlementStatus

__all__ = [
    "User",
    "Travel",
    "TravelMember",
    "TravelStatus",
    "MemberRole",
    "Expense",
    "ExpenseParticipant",
    "TravelSettlement",
    "SettlementStatus",
]
