"""Central authorization rules for lead and class actions.

Each (action, role) pair maps to a tuple of ownership predicates; the actor is
allowed when any predicate holds for the target lead or class. Pairs absent from ``RULES`` are
denied.
"""

from typing import Any, Callable, Optional

from fastapi import Depends, HTTPException, status
from sqlalchemy.orm import Session

from backend.leaddesk.db.session import get_db
from backend.leaddesk.dependencies.auth import get_current_user
from backend.leaddesk.models.lead import Lead
from backend.leaddesk.models.training_class import TrainingClass
from backend.leaddesk.models.user import User, UserRole
from backend.leaddesk.services import lead_history
from backend.leaddesk.services.lead_store import LeadSearchFilters

Predicate = Callable[[Session, Any, User], bool]


def any_target(db: Session, target: Any, user: User) -> bool:
    return True


def owner(db: Session, lead: Optional[Lead], user: User) -> bool:
    return lead is not None and lead.current_owner_id == user.id


def historical(db: Session, lead: Optional[Lead], user: User) -> bool:
    return lead is not None and lead_history.was_involved(db, lead.id, user.id)


def unowned(db: Session, lead: Optional[Lead], user: User) -> bool:
    return lead is not None and lead.current_owner_id is None


def status_in(*statuses: str) -> Predicate:
    def predicate(db: Session, lead: Optional[Lead], user: User) -> bool:
        return lead is not None and lead.status in statuses

    return predicate


def instructor(db: Session, training_class: Optional[TrainingClass], user: User) -> bool:
    return training_class is not None and training_class.instructor_id == user.id


def mentor(db: Session, training_class: Optional[TrainingClass], user: User) -> bool:
    return (
        training_class is not None
        and bool(training_class.mentor_email)
        and training_class.mentor_email.strip().lower() == (user.email or "").lower()
    )


MANAGER = UserRole.MANAGER.value
ADMIN = UserRole.ADMIN.value
HR = UserRole.HR.value
ACCOUNTS = UserRole.ACCOUNTS.value
TEAM_LEAD = UserRole.TEAM_LEAD.value
TECH_SUPPORT = UserRole.TECH_SUPPORT.value
SESSION_COORDINATOR = UserRole.SESSION_COORDINATOR.value
SESSION_ORGANIZER = UserRole.SESSION_ORGANIZER.value

CLASS_STATUSES = ("ready_for_class", "scheduled")

RULES: dict[str, dict[str, tuple[Predicate, ...]]] = {
    "create": {
        HR: (any_target,),
    },
    "view": {
        MANAGER: (any_target,),
        ADMIN: (any_target,),
        TEAM_LEAD: (any_target,),
        HR: (owner, historical, unowned),
        ACCOUNTS: (owner, historical, status_in("accounts_pending", "pending")),
        TECH_SUPPORT: (unowned,),
        SESSION_COORDINATOR: (status_in("accounts_pending"),),
        SESSION_ORGANIZER: (status_in(*CLASS_STATUSES),),
    },
    "update": {
        MANAGER: (any_target,),
        ADMIN: (any_target,),
        HR: (owner, historical),
        ACCOUNTS: (owner,),
    },
    "delete": {
        MANAGER: (any_target,),
        ADMIN: (any_target,),
        HR: (owner,),
    },
    "assign": {
        MANAGER: (any_target,),
        ADMIN: (any_target,),
        HR: (unowned,),
    },
    "pass_to_accounts": {
        MANAGER: (any_target,),
        ADMIN: (any_target,),
        HR: (owner, historical),
    },
    "view_history": {
        MANAGER: (any_target,),
        ADMIN: (any_target,),
        HR: (owner,),
        ACCOUNTS: (owner, status_in("pending")),
    },
    "view_all_history": {
        role: (any_target,) for role in (MANAGER, ADMIN, HR, ACCOUNTS, TECH_SUPPORT)
    },
    "bulk_import": {MANAGER: (any_target,), ADMIN: (any_target,)},
    "bulk_update_total": {MANAGER: (any_target,), ADMIN: (any_target,)},
    "view_metrics": {MANAGER: (any_target,), ADMIN: (any_target,), TEAM_LEAD: (any_target,)},
    "manage_users": {MANAGER: (any_target,), ADMIN: (any_target,)},
    "remove_student": {MANAGER: (any_target,), ADMIN: (any_target,), SESSION_ORGANIZER: (any_target,)},
    # Class actions take the class as the target
    "create_class": {
        MANAGER: (any_target,),
        ADMIN: (any_target,),
        SESSION_COORDINATOR: (any_target,),
        SESSION_ORGANIZER: (any_target,),
    },
    "manage_class": {
        MANAGER: (any_target,),
        ADMIN: (any_target,),
        SESSION_COORDINATOR: (instructor,),
        SESSION_ORGANIZER: (instructor,),
    },
    "record_class_results": {
        MANAGER: (any_target,),
        ADMIN: (any_target,),
        SESSION_COORDINATOR: (instructor, mentor),
        SESSION_ORGANIZER: (instructor, mentor),
        TEAM_LEAD: (mentor,),
        TECH_SUPPORT: (mentor,),
    },
}

DENIAL_MESSAGES = {
    "create": "Only HR users can create leads",
    "update": "Access denied: You do not have permission to edit this lead",
    "delete": "Access denied: You do not have permission to delete this lead",
    "assign": "Access denied: You cannot assign this lead",
    "view_history": "Access denied: You do not have permission to view this lead's history",
    "create_class": "Only admins and session organizers can create classes",
    "manage_class": "You can only manage your own classes",
    "record_class_results": "You can only record attendance and marks for your own classes",
}


def is_allowed(db: Session, user: User, action: str, target: Any = None) -> bool:
    predicates = RULES.get(action, {}).get(user.role, ())
    return any(predicate(db, target, user) for predicate in predicates)


def role_may(user: User, action: str) -> bool:
    """Whether the role has any rule for ``action``, before looking at a specific lead."""
    return bool(RULES.get(action, {}).get(user.role))


def authorize(db: Session, user: User, action: str, target: Any = None) -> None:
    if not is_allowed(db, user, action, target):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail=DENIAL_MESSAGES.get(action, "Insufficient permissions"),
        )


def require_action(action: str):
    """Dependency factory for lead-independent actions."""

    def dependency(db: Session = Depends(get_db), current_user: User = Depends(get_current_user)) -> User:
        authorize(db, current_user, action)
        return current_user

    return dependency


def pool_filters(user: User, *, status_filter: Optional[str] = None, sub_role: Optional[str] = None) -> LeadSearchFilters:
    """Filters for the shared lead list as seen by ``user``."""
    role = user.role
    if role == SESSION_ORGANIZER or (role in (MANAGER, ADMIN) and sub_role == SESSION_ORGANIZER):
        return LeadSearchFilters(statuses=list(CLASS_STATUSES))
    if role in (MANAGER, ADMIN, TEAM_LEAD):
        return LeadSearchFilters(status=status_filter)
    if role in (HR, TECH_SUPPORT):
        return LeadSearchFilters(unassigned=True, status=status_filter)
    if role in (ACCOUNTS, SESSION_COORDINATOR):
        return LeadSearchFilters(status="accounts_pending")
    raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Insufficient permissions")


def my_leads_filters(user: User) -> LeadSearchFilters:
    role = user.role
    if role == ACCOUNTS:
        return LeadSearchFilters(statuses=["accounts_pending", "ready_for_class", "completed"])
    if role == SESSION_ORGANIZER:
        return LeadSearchFilters(statuses=list(CLASS_STATUSES))
    if role in (MANAGER, ADMIN):
        return LeadSearchFilters(exclude_completed=True)
    if role == HR:
        return LeadSearchFilters(owner_id=user.id, exclude_completed=True, exclude_accounts_pending=True)
    raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Insufficient permissions")


def my_completed_filters(user: User) -> LeadSearchFilters:
    role = user.role
    if role == HR:
        return LeadSearchFilters(previous_owner_id=user.id)
    if role == ACCOUNTS:
        return LeadSearchFilters(previous_owner_id=user.id, exclude_accounts_pending=True)
    if role in (MANAGER, ADMIN):
        return LeadSearchFilters(show_all_completed=True)
    raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Insufficient permissions")


def visible_user_roles(user: User) -> Optional[tuple[str, ...]]:
    """Roles whose accounts ``user`` may list; ``None`` means every role."""
    if user.role in (MANAGER, ADMIN, TEAM_LEAD):
        return None
    if user.role == HR:
        return (HR,)
    if user.role == ACCOUNTS:
        return (HR, ACCOUNTS)
    raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Insufficient permissions")
