"""
Expense model for shared costs.
"""
from sqlalchemy import Column, String, Numeric, Date, ForeignKey, Integer, Text, UniqueConstraint
from sqlalchemy.orm import relationship
from tripsettle.db.base import BaseModel


class Expense(BaseModel):
    """Expense model representing a single shared cost."""
    __tablename__ = "travel_expenses"
    
    travel_id = Column(Integer, ForeignKey("travels.id"), nullable=False, index=True)
    payer_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    author_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    title = Column(String(200), nullable=False)
    note = Column(Text, nullable=True)
    amount = Column(Numeric(15, 2), nullable=False)  # Original currency
    currency = Column(String(3), nullable=False, default="KRW")
    converted_amount = Column(Numeric(15, 2), nullable=False)  # Normalized to travel's base currency
    expense_date = Column(Date, nullable=False, index=True)
    category = Column(String(50), nullable=True)
    
    # Relationships
    travel = relationship("Travel", back_populates="expenses")
    payer = relationship("User", foreign_keys=[payer_id])
    author = relationship("User", foreign_keys=[author_id])
    participants = relationship(
        "ExpenseParticipant",
        back_populates="expense",
        cascade="all, delete-orphan",
        order_by="ExpenseParticipant.member_id",
    )


class ExpenseParticipant(BaseModel):
    """Junction table for Expense and member many-to-many relationship."""
    __tablename__ = "travel_expense_participants"
    
    expense_id = Column(Integer, ForeignKey("travel_expenses.id"), nullable=False, index=True)
    member_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    split_amount = Column(Numeric(15, 2), nullable=False)  # Member's share in travel's base currency
    
    # Relationships
    expense = relationship("Expense", back_populates="participants")
    member = relationship("User")
    
    __table_args__ = (
        UniqueConstraint("expense_id", "member_id", name="uq_expense_participant"),
    )
