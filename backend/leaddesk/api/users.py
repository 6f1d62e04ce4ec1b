"""Staff user management endpoints."""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from backend.leaddesk.db.session import get_db
from backend.leaddesk.dependencies.auth import get_current_user
from backend.leaddesk.dependencies.events import get_event_bus
from backend.leaddesk.models.user import SUPERVISOR_ROLES, User
from backend.leaddesk.schemas.user import UserCreate, UserCreated, UserRead, UserUpdate
from backend.leaddesk.services import access_policy, users
from backend.leaddesk.services.events import EventBus

router = APIRouter(prefix="/api/users", tags=["users"])


@router.get("", response_model=list[UserRead])
def list_users(db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    return users.list_users(db, roles=access_policy.visible_user_roles(current_user))


@router.post("", response_model=UserCreated, status_code=201)
def create_user(
    user_in: UserCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(access_policy.require_action("manage_users")),
    events: EventBus = Depends(get_event_bus),
):
    user, generated_password = users.create_user(db, user_in)
    events.publish(
        "user_created",
        {"id": user.id, "role": user.role, "created_by": current_user.id},
        roles=list(SUPERVISOR_ROLES),
    )
    return UserCreated.model_validate(user).model_copy(update={"generated_password": generated_password})


@router.get("/{user_id}", response_model=UserRead)
def get_user(
    user_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(access_policy.require_action("manage_users")),
):
    return users.get_user(db, user_id)


@router.put("/{user_id}", response_model=UserRead)
def update_user(
    user_id: int,
    user_in: UserUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(access_policy.require_action("manage_users")),
):
    return users.update_user(db, users.get_user(db, user_id), user_in)


@router.delete("/{user_id}", response_model=UserRead)
def delete_user(
    user_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(access_policy.require_action("manage_users")),
):
    return users.deactivate_user(db, users.get_user(db, user_id), actor=current_user)
