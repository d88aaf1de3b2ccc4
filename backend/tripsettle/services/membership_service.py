"""
Membership reader: which users belong to a travel.
"""
from typing import List
from sqlalchemy.orm import Session
from tripsettle.core.exceptions import NotFoundError, PermissionDeniedError
from tripsettle.models.travel import Travel, TravelMember


class MembershipReader:
    """Reads travel membership from the relational store."""

    def __init__(self, db: Session):
        self.db = db

    def get_travel(self, travel_id: int) -> Travel:
        travel = self.db.query(Travel).filter(Travel.id == travel_id).first()
        if not travel:
            raise NotFoundError("Travel not found")
        return travel

    def is_member(self, travel_id: int, user_id: int) -> bool:
        return self.db.query(TravelMember.id).filter(
            TravelMember.travel_id == travel_id,
            TravelMember.user_id == user_id
        ).first() is not None

    def ensure_member(self, travel_id: int, user_id: int) -> Travel:
        """Return the travel if user_id belongs to it; raise otherwise."""
        travel = self.get_travel(travel_id)
        if not self.is_member(travel_id, user_id):
            raise PermissionDeniedError("Access denied to this travel")
        return travel

    def member_ids(self, travel_id: int) -> List[int]:
        rows = self.db.query(TravelMember.user_id).filter(
            TravelMember.travel_id == travel_id
        ).order_by(TravelMember.user_id).all()
        return [row.user_id for row in rows]

