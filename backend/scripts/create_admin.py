# backend/scripts/create_admin.py
"""
Create (or promote) an administrator account.

Usage:
    python scripts/create_admin.py --email admin@example.com --password '...' --name Admin
"""
import argparse
import logging

from lessonbook.auth import get_password_hash
from lessonbook.core.enums import RoleName
from lessonbook.core.exceptions import DomainException
from lessonbook.database import SessionLocal
from lessonbook.repositories.factory import RepositoryFactory
from lessonbook.services.auth_service import AuthService

logger = logging.getLogger(__name__)


def create_admin(email: str, password: str, name: str) -> None:
    db = SessionLocal()
    try:
        existing = RepositoryFactory.create_user_repository(db).get_by_email(email)
        if existing:
            existing.role = RoleName.ADMIN.value
            existing.hashed_password = get_password_hash(password)
            db.commit()
            print(f"Promoted existing user {existing.email} to admin")
            return
        user = AuthService(db).register_user(email, password, name, role=RoleName.ADMIN)
        db.commit()
        print(f"Created admin {user.email} ({user.id})")
    except DomainException as e:
        db.rollback()
        print(f"Error: {e.message}")
        raise SystemExit(1)
    finally:
        db.close()


def main() -> None:
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("--email", required=True)
    parser.add_argument("--password", required=True)
    parser.add_argument("--name", default="Administrator")
    args = parser.parse_args()
    logging.basicConfig(level=logging.INFO)
    create_admin(args.email.strip().lower(), args.password, args.name)


if __name__ == "__main__":
    main()
