# Overview: Pytest coverage for employee overtime and its settlement by staff payments.

from datetime import date

import pytest

from cosy.models import EmployeeOvertime
from cosy.services import directory_service, overtime_service, transaction_service
from cosy.services.directory_service import EntityInUseError, EntityNotFoundError
from cosy.services.overtime_service import OvertimeError, OvertimeNotFoundError
from cosy.validation import ValidationError


@pytest.fixture
def employee(db_session, owner_a):
    return directory_service.create_entry("employee", owner_a.store.id, {"full_name": "Maria K"})


class TestOvertimeService:

    @pytest.mark.parametrize("hours, minutes", [
        ("2.5", 150),
        (1, 60),
        ("0.25", 15),
        ("24", 1440),
    ])
    def test_parse_hours(self, hours, minutes):
        assert overtime_service.parse_hours(hours) == minutes

    @pytest.mark.parametrize("hours", [None, "", "abc", "0", "-1", "24.5", "0.001", "1e30"])
    def test_invalid_hours(self, hours):
        with pytest.raises(ValidationError):
            overtime_service.parse_hours(hours)

    def test_record_overtime(self, db_session, owner_a, employee):
        entry = overtime_service.record_overtime(
            owner_a.store.id, employee.id, hours="2.5", day="2026-03-10", notes=" late delivery ",
        )
        assert entry.minutes == 150
        assert entry.date.isoformat() == "2026-03-10"
        assert entry.notes == "late delivery"
        assert entry.is_paid is False
        assert entry.to_dict()["hours"] == "2.50"

    def test_record_rejects_bad_input(self, db_session, owner_a, owner_b, employee):
        with pytest.raises(EntityNotFoundError):
            overtime_service.record_overtime(owner_b.store.id, employee.id, hours="1")
        with pytest.raises(ValidationError):
            overtime_service.record_overtime(owner_a.store.id, employee.id, hours="1", day="2026-03-10garbage")
        with pytest.raises(ValidationError):
            overtime_service.record_overtime(owner_a.store.id, employee.id, hours="1", notes="x" * 501)
        assert overtime_service.list_overtime(owner_a.store.id) == []

    def test_default_day_is_business_day(self, db_session, owner_a, employee, monkeypatch):
        monkeypatch.setattr(overtime_service, "business_date", lambda now, cutoff: date(2026, 4, 1))
        entry = overtime_service.record_overtime(owner_a.store.id, employee.id, hours="1")
        assert entry.date.isoformat() == "2026-04-01"

    def test_list_status_filter(self, db_session, owner_a, employee):
        store_id = owner_a.store.id
        overtime_service.record_overtime(store_id, employee.id, hours="1", day="2026-03-01")
        transaction_service.pay_employee(store_id, employee.id, created_by=None, amount="20", day="2026-03-02")
        overtime_service.record_overtime(store_id, employee.id, hours="2", day="2026-03-03")

        assert [e.minutes for e in overtime_service.list_overtime(store_id)] == [120, 60]
        assert [e.minutes for e in overtime_service.list_overtime(store_id, status="pending")] == [120]
        assert [e.minutes for e in overtime_service.list_overtime(store_id, status="paid")] == [60]
        with pytest.raises(ValidationError):
            overtime_service.list_overtime(store_id, status="late")

    def test_pending_report(self, db_session, owner_a, employee):
        store_id = owner_a.store.id
        other = directory_service.create_entry("employee", store_id, {"full_name": "Giorgos P"})
        overtime_service.record_overtime(store_id, employee.id, hours="1", day="2026-03-01")
        overtime_service.record_overtime(store_id, other.id, hours="2", day="2026-03-01")
        overtime_service.record_overtime(store_id, other.id, hours="0.5", day="2026-03-02")

        report = overtime_service.pending_report(store_id)
        assert [(r["full_name"], r["pending_hours"], r["entries"]) for r in report] == [
            ("Giorgos P", "2.50", 2),
            ("Maria K", "1.00", 1),
        ]
        assert overtime_service.pending_minutes(store_id, other.id) == 150

    def test_payment_settles_pending(self, db_session, owner_a, employee):
        store_id = owner_a.store.id
        overtime_service.record_overtime(store_id, employee.id, hours="1", day="2026-03-01")
        overtime_service.record_overtime(store_id, employee.id, hours="3", day="2026-03-02")

        tx = transaction_service.pay_employee(store_id, employee.id, created_by=None, amount="60", day="2026-03-05")

        entries = overtime_service.list_overtime(store_id, employee_id=employee.id)
        assert all(e.is_paid for e in entries)
        assert {e.paid_transaction_id for e in entries} == {tx.id}
        assert overtime_service.pending_minutes(store_id, employee.id) == 0
        assert overtime_service.pending_report(store_id) == []

    def test_payment_can_leave_overtime_pending(self, db_session, owner_a, employee):
        store_id = owner_a.store.id
        overtime_service.record_overtime(store_id, employee.id, hours="1", day="2026-03-01")
        transaction_service.pay_employee(
            store_id, employee.id, created_by=None, amount="60", settle_overtime=False,
        )
        assert overtime_service.pending_minutes(store_id, employee.id) == 60

    def test_deleting_payment_reopens_overtime(self, db_session, owner_a, employee):
        store_id = owner_a.store.id
        entry = overtime_service.record_overtime(store_id, employee.id, hours="2", day="2026-03-01")
        tx = transaction_service.pay_employee(store_id, employee.id, created_by=None, amount="30")

        transaction_service.delete_transaction(store_id, tx.id)

        entry = db_session.get(EmployeeOvertime, entry.id)
        assert entry.is_paid is False
        assert entry.paid_at is None
        assert entry.paid_transaction_id is None
        assert overtime_service.pending_minutes(store_id, employee.id) == 120

    def test_delete_overtime(self, db_session, owner_a, owner_b, employee):
        store_id = owner_a.store.id
        pending = overtime_service.record_overtime(store_id, employee.id, hours="1", day="2026-03-01")

        with pytest.raises(OvertimeNotFoundError):
            overtime_service.delete_overtime(owner_b.store.id, pending.id)
        overtime_service.delete_overtime(store_id, pending.id)
        assert overtime_service.list_overtime(store_id) == []

        paid = overtime_service.record_overtime(store_id, employee.id, hours="1", day="2026-03-02")
        transaction_service.pay_employee(store_id, employee.id, created_by=None, amount="15")
        with pytest.raises(OvertimeError):
            overtime_service.delete_overtime(store_id, paid.id)

    def test_employee_with_overtime_cannot_be_deleted(self, db_session, owner_a, employee):
        overtime_service.record_overtime(owner_a.store.id, employee.id, hours="1", day="2026-03-01")
        with pytest.raises(EntityInUseError):
            directory_service.delete_entry("employee", owner_a.store.id, employee.id)


class TestOvertimeRoutes:

    def test_record_list_delete(self, client, db_session, owner_a, employee, headers_for):
        headers = headers_for("alice@example.com")
        store_id = owner_a.store.id

        created = client.post(
            f'/api/stores/{store_id}/employees/{employee.id}/overtime',
            json={'hours': '1.5', 'date': '2026-03-01', 'notes': 'inventory'},
            headers=headers,
        )
        assert created.status_code == 201
        assert created.json['minutes'] == 90
        overtime_id = created.json['id']

        bad = client.post(
            f'/api/stores/{store_id}/employees/{employee.id}/overtime', json={'hours': 'x'}, headers=headers,
        )
        assert bad.status_code == 400
        missing = client.post(f'/api/stores/{store_id}/employees/999/overtime', json={'hours': '1'}, headers=headers)
        assert missing.status_code == 404

        listing = client.get(f'/api/stores/{store_id}/overtime', query_string={'status': 'pending'}, headers=headers)
        assert listing.json['count'] == 1
        assert client.get(
            f'/api/stores/{store_id}/overtime', query_string={'status': 'late'}, headers=headers,
        ).status_code == 400

        pending = client.get(f'/api/stores/{store_id}/overtime/pending', headers=headers).json
        assert pending['items'][0]['pending_hours'] == '1.50'

        assert client.delete(f'/api/stores/{store_id}/overtime/{overtime_id}', headers=headers).status_code == 200
        assert client.delete(f'/api/stores/{store_id}/overtime/{overtime_id}', headers=headers).status_code == 404

    def test_paid_entry_conflicts(self, client, db_session, owner_a, employee, headers_for):
        headers = headers_for("alice@example.com")
        store_id = owner_a.store.id
        entry = overtime_service.record_overtime(store_id, employee.id, hours="2", day="2026-03-01")

        paid = client.post(
            f'/api/stores/{store_id}/employees/{employee.id}/payments', json={'amount': '40'}, headers=headers,
        )
        assert paid.status_code == 201

        response = client.delete(f'/api/stores/{store_id}/overtime/{entry.id}', headers=headers)
        assert response.status_code == 409

    def test_payment_route_can_skip_settlement(self, client, db_session, owner_a, employee, headers_for):
        store_id = owner_a.store.id
        overtime_service.record_overtime(store_id, employee.id, hours="2", day="2026-03-01")
        response = client.post(
            f'/api/stores/{store_id}/employees/{employee.id}/payments',
            json={'amount': '40', 'settle_overtime': False},
            headers=headers_for("alice@example.com"),
        )
        assert response.status_code == 201
        assert overtime_service.pending_minutes(store_id, employee.id) == 120

    def test_other_store_is_forbidden(self, client, db_session, owner_a, owner_b, employee, headers_for):
        response = client.get(f'/api/stores/{owner_a.store.id}/overtime', headers=headers_for("bob@example.com"))
        assert response.status_code == 403
