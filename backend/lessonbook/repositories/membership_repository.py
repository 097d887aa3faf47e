# backend/lessonbook/repositories/membership_repository.py
"""
Membership Repository

Membership lookups (with row locks for balance changes) and the append-only
ledger. Balances are only changed through the ledger service.
"""

import logging
from typing import List, Optional

from sqlalchemy import func, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Query, Session, joinedload

from ..core.exceptions import RepositoryException
from ..models.membership import Membership, MembershipLedgerEntry
from .base_repository import BaseRepository

logger = logging.getLogger(__name__)


class MembershipRepository(BaseRepository[Membership]):
    def __init__(self, db: Session):
        super().__init__(db, Membership)

    def _apply_eager_loading(self, query: Query) -> Query:
        return query.options(joinedload(Membership.coach))

    def get_for_user_and_coach(
        self, user_id: str, coach_id: str, *, lock: bool = False
    ) -> Optional[Membership]:
        """
        The (user, coach) membership.

        With ``lock=True`` the row stays locked until the transaction ends.
        """
        try:
            query = self.db.query(Membership).filter(
                Membership.user_id == user_id, Membership.coach_id == coach_id
            )
            if lock:
                query = query.with_for_update()
            return query.first()
        except SQLAlchemyError as exc:
            self.logger.error(
                "Failed to load membership for user %s coach %s: %s", user_id, coach_id, exc
            )
            raise RepositoryException("Failed to load membership") from exc

    def lock(self, membership_id: str) -> Optional[Membership]:
        try:
            return (
                self.db.query(Membership)
                .filter(Membership.id == membership_id)
                .with_for_update()
                .first()
            )
        except SQLAlchemyError as exc:
            self.logger.error("Failed to lock membership %s: %s", membership_id, exc)
            raise RepositoryException("Failed to lock membership") from exc

    def apply_balance_delta(self, membership: Membership, delta_minutes: int) -> bool:
        """
        Add ``delta_minutes`` to the stored balance in a single UPDATE.

        The row is only touched when the result stays non-negative. Either
        way ``membership.remaining_minutes`` is reloaded from the database.

        Returns:
            False if the balance was too low and nothing changed
        """
        try:
            result = self.db.execute(
                update(Membership)
                .where(
                    Membership.id == membership.id,
                    Membership.remaining_minutes + delta_minutes >= 0,
                )
                .values(remaining_minutes=Membership.remaining_minutes + delta_minutes)
                .execution_options(synchronize_session=False)
            )
            self.db.refresh(membership, attribute_names=["remaining_minutes"])
        except SQLAlchemyError as exc:
            self.logger.error("Failed to update balance of membership %s: %s", membership.id, exc)
            raise RepositoryException("Failed to update membership balance") from exc
        return result.rowcount == 1

    def list_for_user(self, user_id: str) -> List[Membership]:
        """Active memberships first, then soonest expiry."""
        return (
            self._apply_eager_loading(self.db.query(Membership))
            .filter(Membership.user_id == user_id)
            .order_by(Membership.is_active.desc(), Membership.expires_at.asc())
            .all()
        )

    # Ledger

    def add_ledger_entry(self, entry: MembershipLedgerEntry) -> MembershipLedgerEntry:
        self.db.add(entry)
        self.db.flush()
        return entry

    def list_ledger(self, membership_id: str) -> List[MembershipLedgerEntry]:
        """Ledger entries newest first."""
        return (
            self.db.query(MembershipLedgerEntry)
            .filter(MembershipLedgerEntry.membership_id == membership_id)
            .order_by(MembershipLedgerEntry.created_at.desc(), MembershipLedgerEntry.id.desc())
            .all()
        )

    def ledger_sum(self, membership_id: str) -> int:
        total = (
            self.db.query(func.coalesce(func.sum(MembershipLedgerEntry.delta_minutes), 0))
            .filter(MembershipLedgerEntry.membership_id == membership_id)
            .scalar()
        )
        return int(total or 0)
