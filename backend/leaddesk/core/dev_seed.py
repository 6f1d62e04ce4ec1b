import logging
import os

from sqlalchemy.orm import Session

from backend.leaddesk.core.security import get_password_hash
from backend.leaddesk.models.user import User, UserRole

logger = logging.getLogger(__name__)

DEFAULT_DEV_PASSWORD = "Secret123!"
DEFAULT_DEV_USERS = [
    ("manager@test.com", UserRole.MANAGER.value, "Default Manager"),
]


def ensure_default_dev_users(db: Session) -> None:
    """
    Create a default manager for local development if it does not exist.
    Skips execution when running under pytest to avoid altering test expectations.
    """
    if os.getenv("PYTEST_CURRENT_TEST"):
        return

    created = False
    for email, role, full_name in DEFAULT_DEV_USERS:
        existing = db.query(User).filter(User.email == email).first()
        if existing:
            continue

        db.add(
            User(
                email=email,
                full_name=full_name,
                hashed_password=get_password_hash(DEFAULT_DEV_PASSWORD),
                role=role,
                is_active=True,
            )
        )
        created = True

    if created:
        db.commit()
        logger.info("Seeded default development users")
