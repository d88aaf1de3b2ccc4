"""
Saved settlement model.

Recommended settlements are computed per request and never stored; only a
plan the members explicitly saved lands in this table.
"""
import enum
import uuid
from sqlalchemy import Column, DateTime, Enum as SQLEnum, ForeignKey, Integer, Numeric, String
from sqlalchemy.orm import relationship
from tripsettle.db.base import Base, TimestampMixin


class SettlementStatus(str, enum.Enum):
    """Lifecycle of a saved settlement: pending -> completed."""
    PENDING = "pending"
    COMPLETED = "completed"


def new_settlement_id() -> str:
    return str(uuid.uuid4())


class TravelSettlement(TimestampMixin, Base):
    """A persisted transfer from one member to another."""
    __tablename__ = "travel_settlements"
    
    id = Column(String(36), primary_key=True, default=new_settlement_id)
    travel_id = Column(Integer, ForeignKey("travels.id"), nullable=False, index=True)
    from_member = Column(Integer, ForeignKey("users.id"), nullable=False)
    to_member = Column(Integer, ForeignKey("users.id"), nullable=False)
    amount = Column(Numeric(15, 2), nullable=False)  # Base currency, always > 0
    status = Column(
        SQLEnum(SettlementStatus),
        default=SettlementStatus.PENDING,
        nullable=False,
    )
    sequence = Column(Integer, nullable=False, default=0)  # Position within one saved plan
    completed_at = Column(DateTime(timezone=True), nullable=True)
    
    # Relationships
    travel = relationship("Travel", back_populates="settlements")
    payer = relationship("User", foreign_keys=[from_member])
    payee = relationship("User", foreign_keys=[to_member])
