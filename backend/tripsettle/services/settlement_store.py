"""
Settlement store: persisted ("saved") settlements and their lifecycle.

replace_all and mark_completed each run in exactly one transaction; a failure
rolls back everything, so readers never see a half-replaced plan.
"""
import logging
from typing import List, Sequence

from sqlalchemy import update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from tripsettle.core.exceptions import (
    NotFoundError,
    NothingToSettleError,
    SettlementEngineError,
    TransactionError,
)
from tripsettle.core.utils import round_money, utcnow
from tripsettle.models.settlement import SettlementStatus, TravelSettlement, new_settlement_id
from tripsettle.models.travel import Travel
from tripsettle.services.settlement_solver import Transfer

logger = logging.getLogger(__name__)


class SettlementStore:
    """Reads and writes saved settlements for travels."""

    def __init__(self, db: Session):
        self.db = db

    def list_saved(self, travel_id: int) -> List[TravelSettlement]:
        """Saved settlements in creation order."""
        return self.db.query(TravelSettlement).filter(
            TravelSettlement.travel_id == travel_id
        ).order_by(
            TravelSettlement.created_at.asc(),
            TravelSettlement.sequence.asc()
        ).all()

    def replace_all(self, travel_id: int, transfers: Sequence[Transfer]) -> List[TravelSettlement]:
        """
        Atomically swap the travel's saved plan for a new one.

        All rows start as pending with fresh ids. The travel row is locked for
        the duration so concurrent saves for one travel serialise and the last
        commit wins.
        """
        if not transfers:
            raise NothingToSettleError("Nothing to settle")

        try:
            self.db.query(Travel.id).filter(Travel.id == travel_id).with_for_update().first()

            self.db.query(TravelSettlement).filter(
                TravelSettlement.travel_id == travel_id
            ).delete(synchronize_session=False)

            now = utcnow()
            rows = [
                TravelSettlement(
                    id=new_settlement_id(),
                    travel_id=travel_id,
                    from_member=transfer.from_member_id,
                    to_member=transfer.to_member_id,
                    amount=round_money(transfer.amount),
                    status=SettlementStatus.PENDING,
                    sequence=position,
                    created_at=now,
                    updated_at=now,
                )
                for position, transfer in enumerate(transfers)
            ]
            self.db.add_all(rows)
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error("replacing settlements for travel %s failed: %s", travel_id, e)
            raise TransactionError("Saving settlements failed; nothing was changed") from e
        except Exception:
            self.db.rollback()
            raise

        logger.info("saved %d settlements for travel %s", len(rows), travel_id)
        return rows

    def mark_completed(self, travel_id: int, settlement_id: str) -> None:
        """
        Mark one saved settlement as completed.

        Ids that were never saved (e.g. a recommended settlement's id) are not
        found. Completing an already completed row succeeds and re-stamps its
        timestamps.
        """
        now = utcnow()
        try:
            result = self.db.execute(
                update(TravelSettlement)
                .where(
                    TravelSettlement.id == settlement_id,
                    TravelSettlement.travel_id == travel_id,
                )
                .values(
                    status=SettlementStatus.COMPLETED,
                    completed_at=now,
                    updated_at=now,
                )
                .execution_options(synchronize_session=False)
            )
            if result.rowcount == 0:
                raise NotFoundError(
                    "Settlement not found. Save the computed settlements before completing one."
                )
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error("completing settlement %s failed: %s", settlement_id, e)
            raise TransactionError("Completing settlement failed; nothing was changed") from e
        except SettlementEngineError:
            self.db.rollback()
            raise

        logger.info("settlement %s of travel %s marked completed", settlement_id, travel_id)
