"""
Travel model for shared trips and their members.
"""
from sqlalchemy import Column, String, Enum as SQLEnum, ForeignKey, Integer, UniqueConstraint
from sqlalchemy.orm import relationship
from tripsettle.db.base import BaseModel
import enum


class TravelStatus(str, enum.Enum):
    """Travel status enumeration."""
    ACTIVE = "active"
    ARCHIVED = "archived"


class MemberRole(str, enum.Enum):
    """Role of a member within a travel."""
    OWNER = "owner"
    MEMBER = "member"


class Travel(BaseModel):
    """Travel model representing a shared trip."""
    __tablename__ = "travels"
    
    title = Column(String(200), nullable=False)
    base_currency = Column(String(3), nullable=False, default="KRW")  # All expenses are normalized into this
    status = Column(SQLEnum(TravelStatus), default=TravelStatus.ACTIVE, nullable=False)
    
    # Relationships
    members = relationship("TravelMember", back_populates="travel", cascade="all, delete-orphan")
    expenses = relationship("Expense", back_populates="travel", cascade="all, delete-orphan")
    settlements = relationship("TravelSettlement", back_populates="travel", cascade="all, delete-orphan")


class TravelMember(BaseModel):
    """Junction table for Travel and User many-to-many relationship."""
    __tablename__ = "travel_members"
    
    travel_id = Column(Integer, ForeignKey("travels.id"), nullable=False, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    role = Column(SQLEnum(MemberRole), default=MemberRole.MEMBER, nullable=False)
    
    # Relationships
    travel = relationship("Travel", back_populates="members")
    user = relationship("User", back_populates="memberships")
    
    __table_args__ = (
        UniqueConstraint("travel_id", "user_id", name="uq_travel_member"),
    )
