from __future__ import annotations

import uuid

from ..extensions import db
from ..time_utils import to_utc_z


STORE_ROLES = ("admin", "user")


def _new_uuid() -> str:
    return str(uuid.uuid4())


class Store(db.Model):
    """
    Tenant unit: a business owning its own transactions, suppliers,
    employees and fixed assets.

    Ids are UUID strings so they can travel in links and be validated
    without a database round-trip. Only the name is ever updated.
    """
    __tablename__ = "stores"

    id = db.Column(db.String(36), primary_key=True, default=_new_uuid)
    name = db.Column(db.String(120), nullable=False)
    owner_id = db.Column(db.String(36), db.ForeignKey("users.id"), nullable=True, index=True)

    created_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        server_default=db.func.now(),
    )

    owner = db.relationship("User", foreign_keys=[owner_id])

    def __repr__(self) -> str:
        return f"<Store id={self.id} name={self.name!r}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "owner_id": self.owner_id,
            "created_at": to_utc_z(self.created_at),
        }


class StoreAccess(db.Model):
    """
    Grant of a role within a store.

    The join table is the only authorization model: a user may belong to
    many stores, with at most one role per (user, store).
    """
    __tablename__ = "store_access"
    __table_args__ = (
        db.UniqueConstraint("user_id", "store_id", name="uq_store_access_user_store"),
        db.CheckConstraint("role IN ('admin', 'user')", name="ck_store_access_role"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.String(36), db.ForeignKey("users.id"), nullable=False, index=True)
    store_id = db.Column(db.String(36), db.ForeignKey("stores.id"), nullable=False, index=True)
    role = db.Column(db.String(16), nullable=False, default="user")
    granted_by = db.Column(db.String(36), db.ForeignKey("users.id"), nullable=True)
    granted_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    user = db.relationship("User", foreign_keys=[user_id], backref=db.backref("store_access", lazy=True))
    store = db.relationship("Store", backref=db.backref("access_rows", lazy=True, cascade="all, delete-orphan"))

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "user_id": self.user_id,
            "store_id": self.store_id,
            "role": self.role,
            "granted_by": self.granted_by,
            "granted_at": to_utc_z(self.granted_at),
        }


class StoreInvite(db.Model):
    """
    Single-use, expiring enrollment token for a store.

    Only the SHA-256 of the token is stored; the plaintext leaves the server
    once, inside the shareable link.
    """
    __tablename__ = "store_invites"
    __table_args__ = (
        db.CheckConstraint("role IN ('admin', 'user')", name="ck_store_invites_role"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    store_id = db.Column(db.String(36), db.ForeignKey("stores.id"), nullable=False, index=True)
    role = db.Column(db.String(16), nullable=False, default="user")
    email = db.Column(db.String(255), nullable=True)
    token_hash = db.Column(db.String(64), nullable=False, unique=True, index=True)

    created_by = db.Column(db.String(36), db.ForeignKey("users.id"), nullable=True)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    expires_at = db.Column(db.DateTime(timezone=True), nullable=False, index=True)

    used_at = db.Column(db.DateTime(timezone=True), nullable=True)
    used_by = db.Column(db.String(36), db.ForeignKey("users.id"), nullable=True)

    store = db.relationship("Store", backref=db.backref("invites", lazy=True, cascade="all, delete-orphan"))

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "store_id": self.store_id,
            "role": self.role,
            "email": self.email,
            "created_by": self.created_by,
            "created_at": to_utc_z(self.created_at),
            "expires_at": to_utc_z(self.expires_at),
            "used_at": to_utc_z(self.used_at),
            "used_by": self.used_by,
        }
