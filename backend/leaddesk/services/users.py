"""Staff account management."""

import logging
from typing import Optional

from fastapi import HTTPException, status
from sqlalchemy import func
from sqlalchemy.orm import Session

from backend.leaddesk.core.security import generate_password, get_password_hash
from backend.leaddesk.models.user import User, UserRole
from backend.leaddesk.schemas.user import UserCreate, UserUpdate

logger = logging.getLogger(__name__)


def get_user(db: Session, user_id: int) -> User:
    user = db.query(User).filter(User.id == user_id).first()
    if not user:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")
    return user


def get_user_by_email(db: Session, email: str) -> Optional[User]:
    return db.query(User).filter(func.lower(User.email) == email.strip().lower()).first()


def list_users(db: Session, *, roles: Optional[tuple[str, ...]] = None) -> list[User]:
    query = db.query(User)
    if roles is not None:
        query = query.filter(User.role.in_(roles))
    return query.order_by(User.id.asc()).all()


def _split_name(full_name: Optional[str]) -> tuple[Optional[str], Optional[str]]:
    if not full_name:
        return None, None
    first, _, rest = full_name.strip().partition(" ")
    return first or None, rest.strip() or None


def create_user(db: Session, user_in: UserCreate) -> tuple[User, Optional[str]]:
    """Create a staff account; returns the generated password when none was supplied."""
    if get_user_by_email(db, user_in.email):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f'Email "{user_in.email}" is already in use. Please use a different email address.',
        )
    if user_in.team_lead_id is not None:
        team_lead = get_user(db, user_in.team_lead_id)
        if team_lead.role != UserRole.TEAM_LEAD.value:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="team_lead_id must reference a team lead")

    generated = None if user_in.password else generate_password()
    first_name, last_name = _split_name(user_in.full_name)
    user = User(
        email=user_in.email,
        full_name=user_in.full_name,
        first_name=user_in.first_name or first_name,
        last_name=user_in.last_name or last_name,
        hashed_password=get_password_hash(user_in.password or generated),
        role=user_in.role,
        is_active=True,
        team_name=user_in.team_name if user_in.role == UserRole.TEAM_LEAD.value else None,
        team_lead_id=user_in.team_lead_id,
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    logger.info("Created %s user %s", user.role, user.email)
    return user, generated


def update_user(db: Session, user: User, user_in: UserUpdate) -> User:
    data = user_in.model_dump(exclude_unset=True)
    if "email" in data and data["email"] and data["email"].lower() != user.email.lower():
        if get_user_by_email(db, data["email"]):
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Email already exists")
    password = data.pop("password", None)
    if password:
        user.hashed_password = get_password_hash(password)
    for field, value in data.items():
        setattr(user, field, value)
    db.commit()
    db.refresh(user)
    return user


def deactivate_user(db: Session, user: User, *, actor: User) -> User:
    if user.id == actor.id:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="You cannot delete your own account")
    user.is_active = False
    db.commit()
    db.refresh(user)
    logger.info("Deactivated user %s", user.email)
    return user
