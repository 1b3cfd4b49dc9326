from __future__ import annotations

from ..extensions import db
from ..money import format_cents
from ..time_utils import to_utc_z


TRANSACTION_TYPES = ("income", "expense")


class Transaction(db.Model):
    """
    Financial event for a store.

    Insert and delete only: a wrong entry is removed and re-entered, never
    edited in place. Amounts are positive integer cents; the direction comes
    from `type`.

    is_credit        expense recorded as owed to a supplier/asset, not paid
    is_debt_payment  payment that reduces an outstanding credit balance
    """
    __tablename__ = "transactions"
    __table_args__ = (
        db.CheckConstraint("type IN ('income', 'expense')", name="ck_transactions_type"),
        db.CheckConstraint("amount_cents > 0", name="ck_transactions_amount_positive"),
        db.Index("ix_transactions_store_date", "store_id", "date"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    store_id = db.Column(db.String(36), db.ForeignKey("stores.id"), nullable=False, index=True)

    amount_cents = db.Column(db.BigInteger, nullable=False)
    type = db.Column(db.String(16), nullable=False)
    category = db.Column(db.String(64), nullable=True)
    method = db.Column(db.String(64), nullable=True)
    notes = db.Column(db.Text, nullable=True)

    # Business day the entry belongs to (see time_utils.business_date)
    date = db.Column(db.Date, nullable=False, index=True)

    is_credit = db.Column(db.Boolean, nullable=False, default=False)
    is_debt_payment = db.Column(db.Boolean, nullable=False, default=False)

    supplier_id = db.Column(db.Integer, db.ForeignKey("suppliers.id"), nullable=True, index=True)
    employee_id = db.Column(db.Integer, db.ForeignKey("employees.id"), nullable=True, index=True)
    fixed_asset_id = db.Column(db.Integer, db.ForeignKey("fixed_assets.id"), nullable=True, index=True)

    created_by = db.Column(db.String(36), db.ForeignKey("users.id"), nullable=True)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    store = db.relationship("Store", backref=db.backref("transactions", lazy=True))
    supplier = db.relationship("Supplier", backref=db.backref("transactions", lazy=True))
    employee = db.relationship("Employee", backref=db.backref("transactions", lazy=True))
    fixed_asset = db.relationship("FixedAsset", backref=db.backref("transactions", lazy=True))

    def __repr__(self) -> str:
        return f"<Transaction id={self.id} store_id={self.store_id} {self.type} {self.amount_cents}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "store_id": self.store_id,
            "amount": format_cents(self.amount_cents),
            "amount_cents": self.amount_cents,
            "type": self.type,
            "category": self.category,
            "method": self.method,
            "notes": self.notes,
            "date": self.date.isoformat() if self.date else None,
            "is_credit": self.is_credit,
            "is_debt_payment": self.is_debt_payment,
            "supplier_id": self.supplier_id,
            "employee_id": self.employee_id,
            "fixed_asset_id": self.fixed_asset_id,
            "created_by": self.created_by,
            "created_at": to_utc_z(self.created_at),
        }
