"""Back-office user accounts and role-based permissions.

Permissions are a fixed catalogue keyed by ``<module>.<action>``.  Roles
hold a list of permission ids; the system roles below are inserted on
first use and cannot be edited or deleted, custom roles can.
"""

import logging
import re
from datetime import date, datetime
from typing import Iterable, List, NamedTuple, Optional

from sqlalchemy.orm import Session

from .models import Role, User

logger = logging.getLogger(__name__)

USER_STATUSES = ("active", "suspended", "inactive")


class Permission(NamedTuple):
    id: str
    name: str
    description: str
    module: str


PERMISSIONS = (
    Permission("users.view", "View Users", "View all users and their details", "users"),
    Permission("users.create", "Create Users", "Create new user accounts", "users"),
    Permission("users.edit", "Edit Users", "Edit user details and information", "users"),
    Permission("users.delete", "Delete Users", "Delete user accounts", "users"),
    Permission("users.suspend", "Suspend Users", "Suspend or reactivate users", "users"),
    Permission("orders.view", "View Orders", "View all orders", "orders"),
    Permission("orders.create", "Create Orders", "Create new orders", "orders"),
    Permission("orders.edit", "Edit Orders", "Edit order details", "orders"),
    Permission("orders.delete", "Delete Orders", "Delete orders", "orders"),
    Permission("orders.approve", "Approve Orders", "Approve pending orders", "orders"),
    Permission("companies.view", "View Companies", "View all companies", "companies"),
    Permission("companies.create", "Create Companies", "Add new companies", "companies"),
    Permission("companies.edit", "Edit Companies", "Edit company information", "companies"),
    Permission("companies.delete", "Delete Companies", "Delete companies", "companies"),
    Permission("reports.view", "View Reports", "Access analytics and reports", "reports"),
    Permission("reports.export", "Export Reports", "Export report data", "reports"),
    Permission("settings.view", "View Settings", "View system settings", "settings"),
    Permission("settings.manage", "Manage Settings", "Modify system settings", "settings"),
    Permission("invoices.view", "View Invoices", "View all invoices", "invoices"),
    Permission("invoices.create", "Create Invoices", "Create new invoices", "invoices"),
    Permission("invoices.edit", "Edit Invoices", "Edit invoice details", "invoices"),
    Permission("invoices.delete", "Delete Invoices", "Delete invoices", "invoices"),
    Permission("transfer-forms.view", "View Transfer Forms", "View all transfer forms", "transfer-forms"),
    Permission("transfer-forms.manage", "Manage Transfer Forms", "Manage transfer form status and details",
               "transfer-forms"),
)

PERMISSION_IDS = frozenset(p.id for p in PERMISSIONS)

SYSTEM_ROLES = (
    {
        "slug": "role-client",
        "name": "Client",
        "description": "Regular customer with basic access",
        "permissions": ["orders.view", "invoices.view", "transfer-forms.view"],
    },
    {
        "slug": "role-admin",
        "name": "Admin",
        "description": "Standard administrator with management capabilities",
        "permissions": [
            "users.view", "users.create", "users.edit", "users.suspend",
            "orders.view", "orders.create", "orders.edit", "orders.approve",
            "companies.view", "companies.create", "companies.edit",
            "invoices.view", "invoices.create", "invoices.edit",
            "transfer-forms.view", "transfer-forms.manage",
            "reports.view",
        ],
    },
    {
        "slug": "role-super-admin",
        "name": "Super Admin",
        "description": "Full system access with all permissions",
        "permissions": [p.id for p in PERMISSIONS],
    },
    {
        "slug": "role-administrations",
        "name": "Administrations",
        "description": "Administrative staff with user and settings management",
        "permissions": [
            "users.view", "users.create", "users.edit", "users.suspend", "users.delete",
            "settings.view", "settings.manage",
            "reports.view",
        ],
    },
    {
        "slug": "role-operations",
        "name": "Operations",
        "description": "Operations team managing orders and companies",
        "permissions": [
            "orders.view", "orders.create", "orders.edit", "orders.approve",
            "companies.view", "companies.create", "companies.edit",
            "reports.view", "transfer-forms.view", "transfer-forms.manage",
        ],
    },
    {
        "slug": "role-accounting",
        "name": "Accounting",
        "description": "Accounting department managing invoices and reports",
        "permissions": [
            "invoices.view", "invoices.create", "invoices.edit", "invoices.delete",
            "orders.view",
            "reports.view", "reports.export",
        ],
    },
)


class AccessError(ValueError):
    """A role or user change that the permission model does not allow."""


def unknown_permissions(permission_ids: Iterable[str]) -> List[str]:
    return sorted(set(permission_ids) - PERMISSION_IDS)


def role_slug(name: str) -> str:
    """``"Support Desk"`` -> ``"role-support-desk"``."""
    return "role-" + re.sub(r"[^a-z0-9]+", "-", name.lower()).strip("-")


def ensure_system_roles(db: Session) -> int:
    """Insert any system role missing from the table; returns how many were added."""
    existing = {slug for (slug,) in db.query(Role.slug)}
    missing = [values for values in SYSTEM_ROLES if values["slug"] not in existing]
    for values in missing:
        db.add(Role(**values, is_custom=False))
    if missing:
        db.flush()
        logger.info("Inserted %d system roles", len(missing))
    return len(missing)


def has_permission(role: Optional[Role], permission_id: str) -> bool:
    return role is not None and permission_id in (role.permissions or [])


def role_permissions(role: Role) -> List[Permission]:
    granted = set(role.permissions or [])
    return [p for p in PERMISSIONS if p.id in granted]


def check_editable(role: Role) -> None:
    if not role.is_custom:
        raise AccessError(f"System role {role.name} cannot be changed")


def set_account_status(user: User, new_status: str) -> None:
    if new_status not in USER_STATUSES:
        raise AccessError(f"Account status must be one of {', '.join(USER_STATUSES)}")
    if user.account_status != new_status:
        logger.info("User %s: %s -> %s", user.email, user.account_status, new_status)
    user.account_status = new_status
    user.updated_at = datetime.now()


def add_note(user: User, note: str, now: Optional[datetime] = None) -> None:
    """Append a timestamped line to the user's internal notes."""
    stamp = (now or datetime.now()).strftime("%Y-%m-%d %H:%M")
    line = f"[{stamp}] {note.strip()}"
    user.notes = f"{user.notes}\n{line}" if user.notes else line
    user.updated_at = datetime.now()


def search_users(
    users: Iterable[User],
    query: str = "",
    status: Optional[str] = None,
    registered_from: Optional[date] = None,
    registered_to: Optional[date] = None,
) -> List[User]:
    """Case-insensitive match on name, email or company, then the optional filters."""
    needle = query.strip().lower()
    found = []
    for user in users:
        haystack = (user.name or "", user.email or "", user.company or "")
        if needle and not any(needle in field.lower() for field in haystack):
            continue
        if status and user.account_status != status:
            continue
        if registered_from and user.registration_date < registered_from:
            continue
        if registered_to and user.registration_date > registered_to:
            continue
        found.append(user)
    return found
