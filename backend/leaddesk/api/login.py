"""Login endpoints for LeadDesk staff."""

import logging

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from backend.leaddesk.core.security import create_access_token, verify_password
from backend.leaddesk.db.session import get_db
from backend.leaddesk.dependencies.auth import get_current_user
from backend.leaddesk.models.user import User
from backend.leaddesk.schemas.login import LoginRequest, TokenResponse
from backend.leaddesk.schemas.user import UserRead
from backend.leaddesk.services.users import get_user_by_email

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/auth", tags=["auth"])


@router.post("/login", response_model=TokenResponse)
def login(credentials: LoginRequest, db: Session = Depends(get_db)):
    user = get_user_by_email(db, credentials.email)
    if not user or not user.hashed_password or not verify_password(credentials.password, user.hashed_password):
        logger.info("Failed login for %s", credentials.email)
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid email or password")
    if not user.is_active:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Account is disabled")

    return TokenResponse(access_token=create_access_token(user_id=user.id))


@router.get("/user", response_model=UserRead)
def read_current_user(current_user: User = Depends(get_current_user)):
    return current_user
