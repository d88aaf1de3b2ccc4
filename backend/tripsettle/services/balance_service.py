"""
Balance aggregation over a travel's expense ledger.

balance = (converted amounts the member paid) - (split amounts the member owes)

Positive balances are owed money, negative balances owe money. Every member
of the travel gets an entry, including members with no activity.
"""
from dataclasses import dataclass
from decimal import Decimal
from typing import List, Optional

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from tripsettle.core.utils import EPSILON, round_money
from tripsettle.models.expense import Expense, ExpenseParticipant
from tripsettle.models.travel import TravelMember
from tripsettle.models.user import User


@dataclass(frozen=True)
class MemberBalance:
    member_id: int
    name: Optional[str]
    paid: Decimal
    shared: Decimal
    balance: Decimal


def compute_balances(travel_id: int, db: Session) -> List[MemberBalance]:
    """
    Compute every member's balance for a travel.

    Paid and shared totals come from one SELECT so both sides observe the same
    snapshot of the ledger, even while expenses are being written concurrently.
    """
    paid = (
        select(
            Expense.payer_id.label("member_id"),
            func.sum(Expense.converted_amount).label("total_paid"),
        )
        .where(Expense.travel_id == travel_id)
        .group_by(Expense.payer_id)
        .subquery()
    )
    shared = (
        select(
            ExpenseParticipant.member_id.label("member_id"),
            func.sum(ExpenseParticipant.split_amount).label("total_shared"),
        )
        .join(Expense, Expense.id == ExpenseParticipant.expense_id)
        .where(Expense.travel_id == travel_id)
        .group_by(ExpenseParticipant.member_id)
        .subquery()
    )
    stmt = (
        select(
            TravelMember.user_id,
            User.name,
            func.coalesce(paid.c.total_paid, 0).label("paid"),
            func.coalesce(shared.c.total_shared, 0).label("shared"),
        )
        .select_from(TravelMember)
        .outerjoin(User, User.id == TravelMember.user_id)
        .outerjoin(paid, paid.c.member_id == TravelMember.user_id)
        .outerjoin(shared, shared.c.member_id == TravelMember.user_id)
        .where(TravelMember.travel_id == travel_id)
        .order_by(TravelMember.user_id)
    )

    balances = []
    for row in db.execute(stmt):
        total_paid = round_money(row.paid)
        total_shared = round_money(row.shared)
        balances.append(MemberBalance(
            member_id=row.user_id,
            name=row.name,
            paid=total_paid,
            shared=total_shared,
            balance=round_money(total_paid - total_shared),
        ))
    return balances


def balance_status(balance: Decimal) -> str:
    """'receive' if owed money, 'pay' if owing, 'settled' within epsilon."""
    if balance > EPSILON:
        return "receive"
    if balance < -EPSILON:
        return "pay"
    return "settled"


def summarize_statistics(travel_id: int, requester_id: int, db: Session) -> dict:
    """Totals for the travel plus the requester's own position."""
    balances = compute_balances(travel_id, db)
    total = db.execute(
        select(func.coalesce(func.sum(Expense.converted_amount), 0))
        .where(Expense.travel_id == travel_id)
    ).scalar_one()

    mine = next((b for b in balances if b.member_id == requester_id), None)
    my_paid = mine.paid if mine else round_money(0)
    my_shared = mine.shared if mine else round_money(0)
    my_balance = mine.balance if mine else round_money(0)

    return {
        "total_expense_amount": round_money(total),
        "my_paid_amount": my_paid,
        "my_shared_amount": my_shared,
        "my_balance": my_balance,
        "balance_status": balance_status(my_balance),
        "member_balances": [
            {
                "member_id": b.member_id,
                "member_name": b.name,
                "balance": b.balance,
                "balance_status": balance_status(b.balance),
            }
            for b in balances
        ],
    }
