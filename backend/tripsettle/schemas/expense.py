"""
Pydantic schemas for Expense entity.
"""
from pydantic import BaseModel, Field, field_validator
from typing import List, Optional
from datetime import date, datetime
from decimal import Decimal
from tripsettle.schemas.settlement import CamelModel


class ExpenseCreate(BaseModel):
    """Schema for expense creation."""
    title: str = Field(..., min_length=1, max_length=200)
    note: Optional[str] = None
    amount: Decimal = Field(..., gt=0)
    currency: Optional[str] = Field(None, min_length=3, max_length=3)  # Defaults to the travel base currency
    expense_date: date
    category: Optional[str] = None
    payer_id: Optional[int] = None  # Defaults to the author
    participant_ids: Optional[List[int]] = None  # Defaults to every travel member

    @field_validator("currency")
    @classmethod
    def upper_currency(cls, v):
        return v.upper() if v else v


class ExpenseUpdate(ExpenseCreate):
    """Schema for expense update (full replacement of the editable fields)."""
    pass


class ExpenseParticipantResponse(CamelModel):
    """Schema for expense participant response."""
    member_id: int
    name: Optional[str] = None
    split_amount: Decimal  # Member's share in travel's base currency


class ExpenseResponse(CamelModel):
    """Schema for expense response."""
    id: int
    travel_id: int
    title: str
    note: Optional[str] = None
    amount: Decimal
    currency: str
    converted_amount: Decimal  # Amount in travel's base currency
    base_currency: str
    expense_date: date
    category: Optional[str] = None
    payer_id: int
    payer_name: Optional[str] = None
    author_id: int
    participants: List[ExpenseParticipantResponse] = []
    created_at: datetime
    updated_at: datetime
