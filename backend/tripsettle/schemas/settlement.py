"""
Pydantic schemas for settlement summaries.
"""
from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel
from typing import List, Optional
from datetime import datetime
from decimal import Decimal
from tripsettle.models.settlement import SettlementStatus


class CamelModel(BaseModel):
    """Response model serialized with camelCase keys."""
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


class BalanceEntry(CamelModel):
    """One member's net position in the travel's base currency."""
    member_id: int
    name: Optional[str] = None
    balance: Decimal  # Positive = receives, negative = pays


class SettlementEntry(CamelModel):
    """Saved or recommended transfer, with member names resolved."""
    id: str
    from_member: str
    to_member: str
    amount: Decimal
    status: SettlementStatus
    updated_at: datetime


class SettlementSummary(CamelModel):
    """Schema for settlement summary."""
    balances: List[BalanceEntry]
    saved_settlements: List[SettlementEntry]
    recommended_settlements: List[SettlementEntry]


class MemberBalanceStatistics(CamelModel):
    member_id: int
    member_name: Optional[str] = None
    balance: Decimal
    balance_status: str  # receive | pay | settled


class SettlementStatistics(CamelModel):
    """Travel-wide totals plus the requester's own position."""
    total_expense_amount: Decimal
    my_paid_amount: Decimal
    my_shared_amount: Decimal
    my_balance: Decimal
    balance_status: str
    member_balances: List[MemberBalanceStatistics]
