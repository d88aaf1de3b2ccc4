"""
Expense service for expense-related business logic.

Amounts are normalized into the travel's base currency when an expense is
written; the balance aggregator only ever reads converted amounts and split
amounts.
"""
import logging
from decimal import Decimal, ROUND_DOWN
from typing import Dict, List, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, joinedload

from tripsettle.core.exceptions import (
    InvalidOperationError,
    NotFoundError,
    PermissionDeniedError,
    TransactionError,
)
from tripsettle.core.utils import CENT, round_money
from tripsettle.models.expense import Expense, ExpenseParticipant
from tripsettle.models.travel import Travel
from tripsettle.schemas.expense import ExpenseCreate, ExpenseParticipantResponse, ExpenseResponse, ExpenseUpdate
from tripsettle.services.cache_service import SummaryCache
from tripsettle.services.fx_service import ExchangeRateProvider, convert_amount
from tripsettle.services.membership_service import MembershipReader

logger = logging.getLogger(__name__)


def split_shares(converted_amount: Decimal, member_ids: List[int]) -> Dict[int, Decimal]:
    """Split an amount into per-member shares that add up to it exactly.

    Everyone gets the amount divided evenly and truncated to cents; the
    leftover cents go one each to the lowest member ids.
    """
    if not member_ids:
        raise InvalidOperationError("At least one participant is required")
    base = (converted_amount / len(member_ids)).quantize(CENT, rounding=ROUND_DOWN)
    leftover = int((converted_amount - base * len(member_ids)) / CENT)
    extra = set(sorted(member_ids)[:leftover])
    return {
        member_id: base + CENT if member_id in extra else base
        for member_id in member_ids
    }


def normalize_participants(member_ids: List[int], provided: Optional[List[int]]) -> List[int]:
    """Default to every member; reject anyone outside the travel; drop duplicates."""
    if not provided:
        return list(member_ids)
    invalid = [uid for uid in provided if uid not in member_ids]
    if invalid:
        raise InvalidOperationError("Participants must be members of the travel")
    return list(dict.fromkeys(provided))


def _prepare(
    travel: Travel,
    default_payer_id: int,
    payload: ExpenseCreate,
    membership: MembershipReader,
    provider: ExchangeRateProvider,
):
    member_ids = membership.member_ids(travel.id)
    payer_id = payload.payer_id if payload.payer_id is not None else default_payer_id
    if payer_id not in member_ids:
        raise InvalidOperationError("Payer must be a member of the travel")

    participant_ids = normalize_participants(member_ids, payload.participant_ids)
    currency = payload.currency or travel.base_currency.upper()
    converted = round_money(convert_amount(payload.amount, currency, travel.base_currency, provider))
    return payer_id, currency, converted, split_shares(converted, participant_ids)


def _to_response(expense: Expense, base_currency: str) -> ExpenseResponse:
    return ExpenseResponse(
        id=expense.id,
        travel_id=expense.travel_id,
        title=expense.title,
        note=expense.note,
        amount=expense.amount,
        currency=expense.currency,
        converted_amount=expense.converted_amount,
        base_currency=base_currency,
        expense_date=expense.expense_date,
        category=expense.category,
        payer_id=expense.payer_id,
        payer_name=expense.payer.name if expense.payer else None,
        author_id=expense.author_id,
        participants=[
            ExpenseParticipantResponse(
                member_id=p.member_id,
                name=p.member.name if p.member else None,
                split_amount=p.split_amount,
            )
            for p in expense.participants
        ],
        created_at=expense.created_at,
        updated_at=expense.updated_at,
    )


def _commit(db: Session, action: str) -> None:
    try:
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        logger.error("expense %s failed: %s", action, e)
        raise TransactionError(f"Expense {action} failed; nothing was changed") from e


def _get_expense(db: Session, travel_id: int, expense_id: int) -> Expense:
    expense = db.query(Expense).options(
        joinedload(Expense.payer),
        joinedload(Expense.participants).joinedload(ExpenseParticipant.member)
    ).filter(
        Expense.id == expense_id,
        Expense.travel_id == travel_id
    ).first()
    if not expense:
        raise NotFoundError("Expense not found")
    return expense


def list_expenses(travel_id: int, requester_id: int, db: Session) -> List[ExpenseResponse]:
    """Expenses of a travel, newest date first."""
    travel = MembershipReader(db).ensure_member(travel_id, requester_id)
    expenses = db.query(Expense).options(
        joinedload(Expense.payer),
        joinedload(Expense.participants).joinedload(ExpenseParticipant.member)
    ).filter(
        Expense.travel_id == travel_id
    ).order_by(Expense.expense_date.desc(), Expense.id.desc()).all()
    return [_to_response(expense, travel.base_currency) for expense in expenses]


def create_expense(
    travel_id: int,
    author_id: int,
    payload: ExpenseCreate,
    db: Session,
    provider: ExchangeRateProvider,
    cache: Optional[SummaryCache] = None,
) -> ExpenseResponse:
    """Create an expense with participants and calculate shares."""
    membership = MembershipReader(db)
    travel = membership.ensure_member(travel_id, author_id)
    payer_id, currency, converted, shares = _prepare(
        travel, author_id, payload, membership, provider
    )

    expense = Expense(
        travel_id=travel_id,
        payer_id=payer_id,
        author_id=author_id,
        title=payload.title,
        note=payload.note,
        amount=round_money(payload.amount),
        currency=currency,
        converted_amount=converted,
        expense_date=payload.expense_date,
        category=payload.category,
    )
    expense.participants = [
        ExpenseParticipant(member_id=member_id, split_amount=split_amount)
        for member_id, split_amount in shares.items()
    ]
    db.add(expense)
    _commit(db, "creation")

    if cache is not None:
        cache.invalidate(travel_id)
    logger.info("expense %s created in travel %s by user %s", expense.id, travel_id, author_id)
    return _to_response(_get_expense(db, travel_id, expense.id), travel.base_currency)


def update_expense(
    travel_id: int,
    expense_id: int,
    requester_id: int,
    payload: ExpenseUpdate,
    db: Session,
    provider: ExchangeRateProvider,
    cache: Optional[SummaryCache] = None,
) -> ExpenseResponse:
    """Replace an expense's fields and participants, re-normalizing the amount.

    Only the author may edit an expense.
    """
    membership = MembershipReader(db)
    travel = membership.ensure_member(travel_id, requester_id)
    expense = _get_expense(db, travel_id, expense_id)
    if expense.author_id != requester_id:
        raise PermissionDeniedError("Only the author can update this expense")
    payer_id, currency, converted, shares = _prepare(
        travel, expense.payer_id, payload, membership, provider
    )

    expense.payer_id = payer_id
    expense.title = payload.title
    expense.note = payload.note
    expense.amount = round_money(payload.amount)
    expense.currency = currency
    expense.converted_amount = converted
    expense.expense_date = payload.expense_date
    expense.category = payload.category
    # Old participant rows must be gone before new ones hit the unique constraint
    expense.participants.clear()
    try:
        db.flush()
    except SQLAlchemyError as e:
        db.rollback()
        raise TransactionError("Expense update failed; nothing was changed") from e
    expense.participants.extend(
        ExpenseParticipant(member_id=member_id, split_amount=split_amount)
        for member_id, split_amount in shares.items()
    )
    _commit(db, "update")

    if cache is not None:
        cache.invalidate(travel_id)
    logger.info("expense %s updated in travel %s by user %s", expense_id, travel_id, requester_id)
    return _to_response(_get_expense(db, travel_id, expense_id), travel.base_currency)


def delete_expense(
    travel_id: int,
    expense_id: int,
    requester_id: int,
    db: Session,
    cache: Optional[SummaryCache] = None,
) -> None:
    """Delete an expense; only its author may do so."""
    MembershipReader(db).ensure_member(travel_id, requester_id)
    expense = _get_expense(db, travel_id, expense_id)
    if expense.author_id != requester_id:
        raise PermissionDeniedError("Only the author can delete this expense")

    db.delete(expense)
    _commit(db, "deletion")

    if cache is not None:
        cache.invalidate(travel_id)
    logger.info("expense %s deleted from travel %s by user %s", expense_id, travel_id, requester_id)
