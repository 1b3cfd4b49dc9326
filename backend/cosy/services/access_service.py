"""
Store access: who holds which role in which store.

The join table is the single authorization model. Routes consult it
through the require_store_access / require_store_admin decorators; the
client-side guard only hides controls.
"""

from __future__ import annotations

from flask import current_app
from sqlalchemy.exc import SQLAlchemyError

from ..extensions import db
from ..models import Store, StoreAccess, User, STORE_ROLES


class StoreAccessError(Exception):
    """Raised when a caller has no (sufficient) access to a store."""
    pass


class AccessManagementError(Exception):
    """Raised when a membership change is rejected."""
    pass


def get_access(store_id: str, user_id: str) -> StoreAccess | None:
    return db.session.query(StoreAccess).filter_by(store_id=store_id, user_id=user_id).first()


def get_store_role(store_id: str | None, user_id: str | None) -> str | None:
    """Role string for (store, user), or None when no row exists."""
    if not store_id or not user_id:
        return None
    access = get_access(store_id, user_id)
    return access.role if access else None


def is_store_admin(store_id: str | None, user_id: str | None) -> bool:
    """
    True only when the user holds an "admin" row for the store.

    Fail-closed: a lookup error resolves to False.
    """
    try:
        return get_store_role(store_id, user_id) == "admin"
    except SQLAlchemyError:
        db.session.rollback()
        current_app.logger.exception("Admin lookup failed for store %s", store_id)
        return False


def require_store_access(store_id: str, user_id: str, *, admin: bool = False) -> StoreAccess:
    """
    Return the caller's access row or raise StoreAccessError.

    The message does not distinguish "store does not exist" from "no
    access", so store ids cannot be discovered.
    """
    access = get_access(store_id, user_id)
    if access is None:
        raise StoreAccessError("Store not found")
    if admin and access.role != "admin":
        raise StoreAccessError("Admin access required")
    return access


def list_user_store_ids(user_id: str) -> list[str]:
    rows = db.session.query(StoreAccess.store_id).filter_by(user_id=user_id).all()
    return [row[0] for row in rows]


def list_store_members(store_id: str) -> list[dict]:
    rows = (
        db.session.query(StoreAccess, User)
        .join(User, User.id == StoreAccess.user_id)
        .filter(StoreAccess.store_id == store_id)
        .order_by(StoreAccess.granted_at.asc(), StoreAccess.id.asc())
        .all()
    )
    members = []
    for access, user in rows:
        item = access.to_dict()
        item["email"] = user.email
        item["username"] = user.profile.username if user.profile else None
        members.append(item)
    return members


def normalize_role(role: str | None) -> str:
    """Anything other than "admin" is an ordinary user."""
    return "admin" if (role or "").strip().lower() == "admin" else "user"


def grant_access(
    *,
    store_id: str,
    user_id: str,
    role: str,
    granted_by: str | None = None,
    commit: bool = True,
) -> StoreAccess:
    """
    Give user_id the role in store_id.

    Upsert: an existing row has its role replaced, so a (user, store) pair
    never carries two roles.
    """
    if role not in STORE_ROLES:
        raise AccessManagementError(f"Invalid role: {role}")

    if not db.session.get(Store, store_id):
        raise AccessManagementError("Store not found")
    if not db.session.get(User, user_id):
        raise AccessManagementError("User not found")

    access = get_access(store_id, user_id)
    if access:
        access.role = role
    else:
        access = StoreAccess(store_id=store_id, user_id=user_id, role=role, granted_by=granted_by)
        db.session.add(access)

    if commit:
        db.session.commit()
    else:
        db.session.flush()
    return access


def _admin_count(store_id: str) -> int:
    return db.session.query(StoreAccess).filter_by(store_id=store_id, role="admin").count()


def change_role(*, store_id: str, user_id: str, role: str) -> StoreAccess:
    role = normalize_role(role)
    access = get_access(store_id, user_id)
    if not access:
        raise AccessManagementError("Member not found")

    if access.role == "admin" and role != "admin" and _admin_count(store_id) <= 1:
        raise AccessManagementError("A store must keep at least one admin")

    access.role = role
    db.session.commit()
    return access


def revoke_access(*, store_id: str, user_id: str) -> bool:
    access = get_access(store_id, user_id)
    if not access:
        return False

    if access.role == "admin" and _admin_count(store_id) <= 1:
        raise AccessManagementError("A store must keep at least one admin")

    db.session.delete(access)
    db.session.commit()
    return True
