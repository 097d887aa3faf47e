# backend/lessonbook/repositories/reservation_repository.py
"""
Reservation Repository

Queries for availability (reservations of a coach intersecting a window),
overlap pre-checks, member and admin listings, and dashboard counts.
"""

from datetime import datetime
import logging
from typing import Iterable, List, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Query, Session, joinedload

from ..core.enums import ACTIVE_RESERVATION_STATUSES, ReservationStatus
from ..core.exceptions import RepositoryException
from ..models.reservation import Reservation
from .base_repository import BaseRepository

logger = logging.getLogger(__name__)

_ACTIVE_VALUES = [status.value for status in ACTIVE_RESERVATION_STATUSES]


class ReservationRepository(BaseRepository[Reservation]):
    def __init__(self, db: Session):
        super().__init__(db, Reservation)

    def _apply_eager_loading(self, query: Query) -> Query:
        return query.options(
            joinedload(Reservation.lesson),
            joinedload(Reservation.coach),
            joinedload(Reservation.branch),
            joinedload(Reservation.user),
        )

    def insert(self, reservation: Reservation) -> Reservation:
        """
        Add and flush a reservation.

        IntegrityError from the overlap constraint propagates unchanged so the
        caller can report it as a time conflict.
        """
        self.db.add(reservation)
        self.db.flush()
        return reservation

    def lock(self, reservation_id: str) -> Optional[Reservation]:
        """Load a reservation with a row lock for a status change."""
        try:
            return (
                self.db.query(Reservation)
                .filter(Reservation.id == reservation_id)
                .with_for_update()
                .first()
            )
        except SQLAlchemyError as exc:
            self.logger.error("Failed to lock reservation %s: %s", reservation_id, exc)
            raise RepositoryException(f"Failed to lock reservation: {exc}") from exc

    def get_coach_reservations_between(
        self, coach_id: str, start: datetime, end: datetime
    ) -> List[Reservation]:
        """Reservations of any status for the coach intersecting ``[start, end)``."""
        return (
            self.db.query(Reservation)
            .filter(
                Reservation.coach_id == coach_id,
                Reservation.start_at < end,
                Reservation.end_at > start,
            )
            .order_by(Reservation.start_at.asc())
            .all()
        )

    def find_active_overlap(
        self,
        coach_id: str,
        start: datetime,
        end: datetime,
        exclude_id: Optional[str] = None,
    ) -> Optional[Reservation]:
        """First active reservation of the coach overlapping ``[start, end)``, if any."""
        query = self.db.query(Reservation).filter(
            Reservation.coach_id == coach_id,
            Reservation.status.in_(_ACTIVE_VALUES),
            Reservation.start_at < end,
            Reservation.end_at > start,
        )
        if exclude_id:
            query = query.filter(Reservation.id != exclude_id)
        return query.order_by(Reservation.start_at.asc()).first()

    def list_reservations(
        self,
        *,
        user_id: Optional[str] = None,
        status: Optional[ReservationStatus] = None,
        limit: int = 200,
    ) -> List[Reservation]:
        """Reservations newest first, optionally for one member and/or status."""
        try:
            query = self._apply_eager_loading(self.db.query(Reservation))
            if user_id:
                query = query.filter(Reservation.user_id == user_id)
            if status:
                query = query.filter(Reservation.status == ReservationStatus(status).value)
            return (
                query.order_by(Reservation.start_at.desc(), Reservation.id.desc())
                .limit(limit)
                .all()
            )
        except SQLAlchemyError as exc:
            self.logger.error("Failed to list reservations: %s", exc)
            raise RepositoryException("Failed to list reservations") from exc

    def count_starting_between(
        self, start: datetime, end: datetime, statuses: Iterable[ReservationStatus]
    ) -> int:
        return (
            self.db.query(Reservation)
            .filter(
                Reservation.start_at >= start,
                Reservation.start_at < end,
                Reservation.status.in_([ReservationStatus(s).value for s in statuses]),
            )
            .count()
        )
