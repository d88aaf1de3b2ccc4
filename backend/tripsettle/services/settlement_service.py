"""
Settlement summary service.

Combines balance aggregation, the debt solver and the settlement store into
the three operations exposed to members of a travel: read the summary, save
the recommended plan, and complete one saved settlement.
"""
import logging
import uuid
from typing import Dict, Optional

from sqlalchemy.orm import Session

from tripsettle.core.exceptions import NothingToSettleError
from tripsettle.core.utils import utcnow
from tripsettle.models.settlement import SettlementStatus
from tripsettle.schemas.settlement import (
    BalanceEntry,
    SettlementEntry,
    SettlementStatistics,
    SettlementSummary,
)
from tripsettle.services.balance_service import compute_balances, summarize_statistics
from tripsettle.services.cache_service import SummaryCache
from tripsettle.services.membership_service import MembershipReader
from tripsettle.services.settlement_solver import minimize_transfers
from tripsettle.services.settlement_store import SettlementStore

logger = logging.getLogger(__name__)

UNKNOWN_MEMBER = "Unknown"


class SettlementService:
    """Assembles settlement summaries for a travel."""

    def __init__(
        self,
        db: Session,
        membership: Optional[MembershipReader] = None,
        store: Optional[SettlementStore] = None,
        cache: Optional[SummaryCache] = None,
    ):
        self.db = db
        self.membership = membership or MembershipReader(db)
        self.store = store or SettlementStore(db)
        self.cache = cache or SummaryCache(None, enabled=False)

    def _recommend(self, travel_id: int) -> tuple:
        balances = compute_balances(travel_id, self.db)
        return balances, minimize_transfers(balances)

    def get_summary(self, travel_id: int, requester_id: int) -> SettlementSummary:
        """Balances, saved settlements and freshly recommended settlements."""
        self.membership.ensure_member(travel_id, requester_id)

        cached = self.cache.get(travel_id)
        if cached is not None:
            return cached

        balances, transfers = self._recommend(travel_id)
        names: Dict[int, Optional[str]] = {b.member_id: b.name for b in balances}

        def display(member_id: int, user=None) -> str:
            if member_id in names:
                return names[member_id] or UNKNOWN_MEMBER
            # Former members keep their profile name on saved rows
            return (user.name if user is not None else None) or UNKNOWN_MEMBER

        saved = [
            SettlementEntry(
                id=row.id,
                from_member=display(row.from_member, row.payer),
                to_member=display(row.to_member, row.payee),
                amount=row.amount,
                status=row.status,
                updated_at=row.updated_at,
            )
            for row in self.store.list_saved(travel_id)
        ]

        now = utcnow()
        recommended = [
            SettlementEntry(
                id=str(uuid.uuid4()),
                from_member=display(t.from_member_id),
                to_member=display(t.to_member_id),
                amount=t.amount,
                status=SettlementStatus.PENDING,
                updated_at=now,
            )
            for t in transfers
        ]

        summary = SettlementSummary(
            balances=[
                BalanceEntry(member_id=b.member_id, name=b.name, balance=b.balance)
                for b in balances
            ],
            saved_settlements=saved,
            recommended_settlements=recommended,
        )
        self.cache.set(travel_id, summary)
        return summary

    def save(self, travel_id: int, requester_id: int) -> SettlementSummary:
        """Persist the current recommendation, replacing any saved plan."""
        self.membership.ensure_member(travel_id, requester_id)
        _, transfers = self._recommend(travel_id)
        if not transfers:
            raise NothingToSettleError("Nothing to settle")

        self.store.replace_all(travel_id, transfers)
        self.cache.invalidate(travel_id)
        logger.info("user %s saved %d settlements for travel %s", requester_id, len(transfers), travel_id)
        return self.get_summary(travel_id, requester_id)

    def complete(self, travel_id: int, requester_id: int, settlement_id: str) -> SettlementSummary:
        """Mark one saved settlement as completed."""
        self.membership.ensure_member(travel_id, requester_id)
        self.store.mark_completed(travel_id, settlement_id)
        self.cache.invalidate(travel_id)
        return self.get_summary(travel_id, requester_id)

    def get_statistics(self, travel_id: int, requester_id: int) -> SettlementStatistics:
        self.membership.ensure_member(travel_id, requester_id)
        return SettlementStatistics(**summarize_statistics(travel_id, requester_id, self.db))

