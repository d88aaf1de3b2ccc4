"""
Expense management routes.
"""
from fastapi import APIRouter, Depends, Response, status
from sqlalchemy.orm import Session
from typing import List
from tripsettle.db.session import get_db
from tripsettle.models.user import User
from tripsettle.schemas.expense import ExpenseCreate, ExpenseResponse, ExpenseUpdate
from tripsettle.api.dependencies import get_current_user
from tripsettle.services import expense_service
from tripsettle.services.cache_service import SummaryCache, get_summary_cache
from tripsettle.services.fx_service import ExchangeRateProvider, get_exchange_rate_provider

router = APIRouter(prefix="/travels/{travel_id}/expenses", tags=["expenses"])


@router.get("", response_model=List[ExpenseResponse])
async def list_expenses(
    travel_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """List all expenses of a travel."""
    return expense_service.list_expenses(travel_id, current_user.id, db)


@router.post("", response_model=ExpenseResponse, status_code=status.HTTP_201_CREATED)
async def create_expense(
    travel_id: int,
    expense_data: ExpenseCreate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
    provider: ExchangeRateProvider = Depends(get_exchange_rate_provider),
    cache: SummaryCache = Depends(get_summary_cache)
):
    """Create a new expense, converting it into the travel's base currency."""
    return expense_service.create_expense(travel_id, current_user.id, expense_data, db, provider, cache)


@router.put("/{expense_id}", response_model=ExpenseResponse)
async def update_expense(
    travel_id: int,
    expense_id: int,
    expense_data: ExpenseUpdate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
    provider: ExchangeRateProvider = Depends(get_exchange_rate_provider),
    cache: SummaryCache = Depends(get_summary_cache)
):
    """Replace an expense's editable fields (author only)."""
    return expense_service.update_expense(
        travel_id, expense_id, current_user.id, expense_data, db, provider, cache
    )


@router.delete("/{expense_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_expense(
    travel_id: int,
    expense_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
    cache: SummaryCache = Depends(get_summary_cache)
):
    """Delete an expense (author only)."""
    expense_service.delete_expense(travel_id, expense_id, current_user.id, db, cache)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
