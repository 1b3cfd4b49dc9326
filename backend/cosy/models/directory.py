from __future__ import annotations

from ..extensions import db
from ..money import format_cents
from ..time_utils import to_utc_z


class Supplier(db.Model):
    """Supplier of goods; target of credit purchases and debt payments."""
    __tablename__ = "suppliers"
    __table_args__ = (
        db.Index("ix_suppliers_store_name", "store_id", "name"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    store_id = db.Column(db.String(36), db.ForeignKey("stores.id"), nullable=False, index=True)
    name = db.Column(db.String(120), nullable=False)
    phone = db.Column(db.String(32), nullable=True)
    vat_number = db.Column(db.String(32), nullable=True)
    bank_account = db.Column(db.String(64), nullable=True)
    notes = db.Column(db.Text, nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    store = db.relationship("Store", backref=db.backref("suppliers", lazy=True))

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "store_id": self.store_id,
            "name": self.name,
            "phone": self.phone,
            "vat_number": self.vat_number,
            "bank_account": self.bank_account,
            "notes": self.notes,
            "created_at": to_utc_z(self.created_at),
        }


class Employee(db.Model):
    __tablename__ = "employees"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    store_id = db.Column(db.String(36), db.ForeignKey("stores.id"), nullable=False, index=True)
    full_name = db.Column(db.String(120), nullable=False)
    position = db.Column(db.String(64), nullable=True)
    monthly_salary_cents = db.Column(db.BigInteger, nullable=True)
    is_active = db.Column(db.Boolean, nullable=False, default=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    store = db.relationship("Store", backref=db.backref("employees", lazy=True))

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "store_id": self.store_id,
            "full_name": self.full_name,
            "position": self.position,
            "monthly_salary": (
                format_cents(self.monthly_salary_cents) if self.monthly_salary_cents is not None else None
            ),
            "is_active": self.is_active,
            "created_at": to_utc_z(self.created_at),
        }


class FixedAsset(db.Model):
    """
    Recurring operating-cost line (rent, utilities, accountant...).

    sub_category groups assets for the balances view: utility, maintenance,
    other. Anything else (e.g. "rent") is tracked for history only.
    """
    __tablename__ = "fixed_assets"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    store_id = db.Column(db.String(36), db.ForeignKey("stores.id"), nullable=False, index=True)
    name = db.Column(db.String(120), nullable=False)
    sub_category = db.Column(db.String(32), nullable=True)
    notes = db.Column(db.Text, nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    store = db.relationship("Store", backref=db.backref("fixed_assets", lazy=True))

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "store_id": self.store_id,
            "name": self.name,
            "sub_category": self.sub_category,
            "notes": self.notes,
            "created_at": to_utc_z(self.created_at),
        }
