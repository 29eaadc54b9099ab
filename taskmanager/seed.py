"""Create the schema and the default accounts.

Run with ``taskmanager-seed`` (or ``python -m taskmanager.seed``). Existing
accounts are left untouched, so the command is safe to repeat.
"""
import logging
from typing import Iterable, List, Optional, Tuple

from sqlalchemy.orm import Session

from taskmanager.config import Settings, get_settings
from taskmanager.database import Database
from taskmanager.logging_setup import setup_logging
from taskmanager.models import User, UserRole
from taskmanager.security import get_password_hash

logger = logging.getLogger(__name__)

DEFAULT_ACCOUNTS: Tuple[Tuple[str, str, UserRole], ...] = (
    ("admin@example.com", "admin123", UserRole.ADMIN),
    ("user@example.com", "user123", UserRole.USER),
)


def seed_accounts(db: Session, accounts: Iterable[Tuple[str, str, UserRole]] = DEFAULT_ACCOUNTS) -> List[User]:
    """Insert each account whose email is not registered yet and return the new users."""
    created = []
    for email, password, role in accounts:
        if db.query(User.id).filter(User.email == email).first():
            logger.info("Account %s already exists", email)
            continue
        user = User(email=email, password_hash=get_password_hash(password), role=role)
        db.add(user)
        created.append(user)
        logger.info("Created %s account %s", role.value, email)
    db.commit()
    return created


def main(settings: Optional[Settings] = None) -> None:
    settings = settings or get_settings()
    setup_logging(settings.LOG_LEVEL)

    database = Database(settings.database_url)
    try:
        database.create_all()
        db = database.session()
        try:
            seed_accounts(db)
        finally:
            db.close()
    finally:
        database.dispose()


if __name__ == "__main__":
    main()
