"""
Repository layer: data access for services.

Repositories flush but never commit; services own the transaction boundary.
"""

from .base_repository import BaseRepository
from .catalog_repository import BranchRepository, CoachRepository, LessonRepository
from .factory import RepositoryFactory
from .membership_repository import MembershipRepository
from .reservation_repository import ReservationRepository
from .schedule_repository import CoachScheduleRepository
from .user_repository import UserRepository

__all__ = [
    "BaseRepository",
    "BranchRepository",
    "CoachRepository",
    "CoachScheduleRepository",
    "LessonRepository",
    "MembershipRepository",
    "RepositoryFactory",
    "ReservationRepository",
    "UserRepository",
]
