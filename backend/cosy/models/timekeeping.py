from __future__ import annotations

from ..extensions import db
from ..time_utils import minutes_to_hours, to_utc_z


class EmployeeOvertime(db.Model):
    """
    Extra hours logged for an employee, pending until a staff payment
    settles them.

    Durations are whole minutes. is_paid flips once, when a payment
    settles the employee's pending entries; paid_transaction_id points
    at that payment. Paid entries are never edited or deleted.
    """
    __tablename__ = "employee_overtimes"
    __table_args__ = (
        db.CheckConstraint("minutes > 0", name="ck_employee_overtimes_minutes_positive"),
        db.Index("ix_employee_overtimes_pending", "store_id", "employee_id", "is_paid"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    store_id = db.Column(db.String(36), db.ForeignKey("stores.id"), nullable=False, index=True)
    employee_id = db.Column(db.Integer, db.ForeignKey("employees.id"), nullable=False, index=True)

    date = db.Column(db.Date, nullable=False)
    minutes = db.Column(db.Integer, nullable=False)
    notes = db.Column(db.Text, nullable=True)

    is_paid = db.Column(db.Boolean, nullable=False, default=False)
    paid_at = db.Column(db.DateTime(timezone=True), nullable=True)
    paid_transaction_id = db.Column(db.Integer, db.ForeignKey("transactions.id"), nullable=True)

    created_by = db.Column(db.String(36), db.ForeignKey("users.id"), nullable=True)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    employee = db.relationship("Employee", backref=db.backref("overtimes", lazy=True))

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "store_id": self.store_id,
            "employee_id": self.employee_id,
            "date": self.date.isoformat() if self.date else None,
            "hours": minutes_to_hours(self.minutes),
            "minutes": self.minutes,
            "notes": self.notes,
            "is_paid": self.is_paid,
            "paid_at": to_utc_z(self.paid_at),
            "paid_transaction_id": self.paid_transaction_id,
            "created_at": to_utc_z(self.created_at),
        }
