# backend/lessonbook/repositories/factory.py
"""
Repository Factory

Provides centralized creation of repository instances,
ensuring consistent initialization and dependency injection.
"""

from sqlalchemy.orm import Session

from .catalog_repository import BranchRepository, CoachRepository, LessonRepository
from .membership_repository import MembershipRepository
from .reservation_repository import ReservationRepository
from .schedule_repository import CoachScheduleRepository
from .user_repository import UserRepository


class RepositoryFactory:
    """Factory class for creating repository instances."""

    @staticmethod
    def create_user_repository(db: Session) -> UserRepository:
        return UserRepository(db)

    @staticmethod
    def create_branch_repository(db: Session) -> BranchRepository:
        return BranchRepository(db)

    @staticmethod
    def create_coach_repository(db: Session) -> CoachRepository:
        return CoachRepository(db)

    @staticmethod
    def create_lesson_repository(db: Session) -> LessonRepository:
        return LessonRepository(db)

    @staticmethod
    def create_schedule_repository(db: Session) -> CoachScheduleRepository:
        """Create repository for weekly rules and time-off."""
        return CoachScheduleRepository(db)

    @staticmethod
    def create_reservation_repository(db: Session) -> ReservationRepository:
        return ReservationRepository(db)

    @staticmethod
    def create_membership_repository(db: Session) -> MembershipRepository:
        """Create repository for memberships and the membership ledger."""
        return MembershipRepository(db)
