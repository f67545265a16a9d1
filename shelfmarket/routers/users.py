import logging
from datetime import date
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from .. import access
from ..database import get_db
from ..models import Role, User
from ..repository import Repository
from ..schemas import (
    PermissionCheckOut,
    PermissionOut,
    RoleIn,
    RoleOut,
    RoleUpdate,
    UserCreate,
    UserNoteIn,
    UserOut,
    UserStatusIn,
    UserUpdate,
)
from .common import RequiredFieldError, error_response, not_found, update_values

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["users"])


def _roles(db: Session) -> Repository:
    if access.ensure_system_roles(db):
        db.commit()
    return Repository(db, Role)


def _get_role(db: Session, slug: str) -> Optional[Role]:
    return _roles(db).get_by(slug=slug)


def _get_user(db: Session, user_id: int) -> Optional[User]:
    return Repository(db, User).get(user_id)


def _email_taken(db: Session, email: str, user_id: Optional[int] = None) -> bool:
    other = Repository(db, User).get_by(email=email.strip().lower())
    return other is not None and other.id != user_id


# ---------------------------------------------------------------------
# Permissions and roles
# ---------------------------------------------------------------------
@router.get("/permissions", response_model=List[PermissionOut])
def list_permissions(module: Optional[str] = None):
    return [p._asdict() for p in access.PERMISSIONS if not module or p.module == module]


@router.get("/roles", response_model=List[RoleOut])
def list_roles(db: Session = Depends(get_db)):
    return _roles(db).list()


@router.post("/roles", response_model=RoleOut, status_code=status.HTTP_201_CREATED)
def create_role(payload: RoleIn, db: Session = Depends(get_db)):
    unknown = access.unknown_permissions(payload.permissions)
    if unknown:
        return error_response(f"Unknown permissions: {', '.join(unknown)}")
    slug = access.role_slug(payload.name)
    repo = _roles(db)
    if repo.get_by(slug=slug) or repo.get_by(name=payload.name):
        return error_response(f"Role {payload.name} already exists", status_code=status.HTTP_409_CONFLICT)
    role = repo.create(
        slug=slug,
        name=payload.name,
        description=payload.description,
        permissions=sorted(set(payload.permissions)),
        is_custom=True,
    )
    logger.info("Role %s created with %d permissions", role.slug, len(role.permissions))
    return role


@router.get("/roles/{slug}", response_model=RoleOut)
def get_role(slug: str, db: Session = Depends(get_db)):
    role = _get_role(db, slug)
    if not role:
        return not_found("Role")
    return role


@router.patch("/roles/{slug}", response_model=RoleOut)
def update_role(slug: str, payload: RoleUpdate, db: Session = Depends(get_db)):
    role = _get_role(db, slug)
    if not role:
        return not_found("Role")
    try:
        access.check_editable(role)
        values = update_values(Role, payload)
    except (access.AccessError, RequiredFieldError) as exc:
        return error_response(str(exc))
    if values.get("name") and values["name"] != role.name and Repository(db, Role).get_by(name=values["name"]):
        return error_response(f"Role {values['name']} already exists", status_code=status.HTTP_409_CONFLICT)
    if "permissions" in values:
        unknown = access.unknown_permissions(values["permissions"])
        if unknown:
            return error_response(f"Unknown permissions: {', '.join(unknown)}")
        values["permissions"] = sorted(set(values["permissions"]))
    return Repository(db, Role).update(role, values)


@router.delete("/roles/{slug}")
def delete_role(slug: str, db: Session = Depends(get_db)):
    role = _get_role(db, slug)
    if not role:
        return not_found("Role")
    try:
        access.check_editable(role)
    except access.AccessError as exc:
        return error_response(str(exc))
    if role.users:
        return error_response(
            f"Role {role.name} is assigned to {len(role.users)} users", status_code=status.HTTP_409_CONFLICT
        )
    Repository(db, Role).delete(role)
    return {"success": True}


@router.get("/roles/{slug}/permissions/{permission_id}", response_model=PermissionCheckOut)
def check_permission(slug: str, permission_id: str, db: Session = Depends(get_db)):
    role = _get_role(db, slug)
    if not role:
        return not_found("Role")
    return {"role": role.slug, "permission": permission_id, "allowed": access.has_permission(role, permission_id)}


# ---------------------------------------------------------------------
# Users
# ---------------------------------------------------------------------
@router.get("/users", response_model=List[UserOut])
def list_users(
    search: str = "",
    status_: Optional[str] = Query(None, alias="status"),
    registered_from: Optional[date] = None,
    registered_to: Optional[date] = None,
    db: Session = Depends(get_db),
):
    users = Repository(db, User).list(order_by=User.created_at.desc())
    return access.search_users(users, search, status_, registered_from, registered_to)


@router.post("/users", response_model=UserOut, status_code=status.HTTP_201_CREATED)
def create_user(payload: UserCreate, db: Session = Depends(get_db)):
    if _email_taken(db, payload.email):
        return error_response(f"User {payload.email} already exists", status_code=status.HTTP_409_CONFLICT)
    role = None
    if payload.role:
        role = _get_role(db, payload.role)
        if not role:
            return not_found("Role")
    user = Repository(db, User).create(
        email=payload.email.strip().lower(),
        name=payload.name,
        phone=payload.phone,
        company=payload.company,
        role=role,
        registration_date=payload.registration_date or date.today(),
        notes=payload.notes,
    )
    logger.info("User %s created", user.email)
    return user


@router.get("/users/{user_id}", response_model=UserOut)
def get_user(user_id: int, db: Session = Depends(get_db)):
    user = _get_user(db, user_id)
    if not user:
        return not_found("User")
    return user


@router.patch("/users/{user_id}", response_model=UserOut)
def update_user(user_id: int, payload: UserUpdate, db: Session = Depends(get_db)):
    user = _get_user(db, user_id)
    if not user:
        return not_found("User")
    try:
        values = update_values(User, payload)
    except RequiredFieldError as exc:
        return error_response(str(exc))
    if "email" in values:
        if _email_taken(db, values["email"], user.id):
            return error_response(f"User {values['email']} already exists", status_code=status.HTTP_409_CONFLICT)
        values["email"] = values["email"].strip().lower()
    if "role" in values:
        slug = values.pop("role")
        role = _get_role(db, slug) if slug else None
        if slug and not role:
            return not_found("Role")
        values["role"] = role
    return Repository(db, User).update(user, values)


@router.delete("/users/{user_id}")
def delete_user(user_id: int, db: Session = Depends(get_db)):
    user = _get_user(db, user_id)
    if not user:
        return not_found("User")
    Repository(db, User).delete(user)
    logger.info("User %s deleted", user_id)
    return {"success": True}


@router.patch("/users/{user_id}/status", response_model=UserOut)
def change_user_status(user_id: int, payload: UserStatusIn, db: Session = Depends(get_db)):
    user = _get_user(db, user_id)
    if not user:
        return not_found("User")
    try:
        access.set_account_status(user, payload.status)
    except access.AccessError as exc:
        return error_response(str(exc))
    db.commit()
    db.refresh(user)
    return user


@router.post("/users/{user_id}/notes", response_model=UserOut)
def add_user_note(user_id: int, payload: UserNoteIn, db: Session = Depends(get_db)):
    user = _get_user(db, user_id)
    if not user:
        return not_found("User")
    access.add_note(user, payload.note)
    db.commit()
    db.refresh(user)
    return user


@router.get("/users/{user_id}/permissions", response_model=List[PermissionOut])
def user_permissions(user_id: int, db: Session = Depends(get_db)):
    user = _get_user(db, user_id)
    if not user:
        return not_found("User")
    if user.role is None:
        return []
    return [p._asdict() for p in access.role_permissions(user.role)]
