"""
User model holding the profile fields the engine reads.
"""
from sqlalchemy import Column, String, Boolean
from sqlalchemy.orm import relationship
from tripsettle.db.base import BaseModel


class User(BaseModel):
    """User with an immutable username and an optional display name."""
    __tablename__ = "users"
    
    username = Column(String(50), unique=True, nullable=False, index=True)
    name = Column(String(100), nullable=True)  # Display name; may be unset
    is_active = Column(Boolean, default=True, nullable=False)
    
    # Relationships
    memberships = relationship("TravelMember", back_populates="user", cascade="all, delete-orphan")
