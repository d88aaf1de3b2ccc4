"""
Settlement routes.
"""
from fastapi import APIRouter, Depends
from tripsettle.models.user import User
from tripsettle.schemas.settlement import SettlementStatistics, SettlementSummary
from tripsettle.api.dependencies import get_current_user, get_settlement_service
from tripsettle.services.settlement_service import SettlementService

router = APIRouter(prefix="/travels/{travel_id}/settlements", tags=["settlements"])


@router.get("", response_model=SettlementSummary)
async def get_settlement_summary(
    travel_id: int,
    current_user: User = Depends(get_current_user),
    service: SettlementService = Depends(get_settlement_service)
):
    """Balances, saved settlements and recommended settlements for a travel."""
    return service.get_summary(travel_id, current_user.id)


@router.post("", response_model=SettlementSummary)
async def save_settlements(
    travel_id: int,
    current_user: User = Depends(get_current_user),
    service: SettlementService = Depends(get_settlement_service)
):
    """Save the recommended settlements, replacing any previously saved plan."""
    return service.save(travel_id, current_user.id)


@router.patch("/{settlement_id}/complete", response_model=SettlementSummary)
async def complete_settlement(
    travel_id: int,
    settlement_id: str,
    current_user: User = Depends(get_current_user),
    service: SettlementService = Depends(get_settlement_service)
):
    """Mark a saved settlement as completed."""
    return service.complete(travel_id, current_user.id, settlement_id)


@router.get("/statistics", response_model=SettlementStatistics)
async def get_settlement_statistics(
    travel_id: int,
    current_user: User = Depends(get_current_user),
    service: SettlementService = Depends(get_settlement_service)
):
    """Total spending, the caller's own position and every member's balance."""
    return service.get_statistics(travel_id, current_user.id)
