# Overview: Pytest coverage for transaction writes, daily close and reports.

from datetime import date

import pytest

from cosy.models import Transaction, Supplier, Employee, FixedAsset
from cosy.services import access_service, directory_service, profile_service, transaction_service
from cosy.services.directory_service import EntityNotFoundError
from cosy.validation import ValidationError


@pytest.fixture
def supplier_a(db_session, owner_a):
    return directory_service.create_entry("supplier", owner_a.store.id, {"name": "Fresh Farms"})


class TestTransactionService:

    def test_create_income(self, db_session, owner_a):
        tx = transaction_service.create_transaction(
            owner_a.store.id,
            {"amount": "120.40", "type": "income", "method": "Cash", "date": "2026-03-02"},
            created_by=owner_a.user.id,
        )
        assert tx.amount_cents == 12040
        assert tx.date == date(2026, 3, 2)
        assert tx.to_dict()["amount"] == "120.40"

    @pytest.mark.parametrize("payload", [
        {"amount": "0", "type": "income"},
        {"amount": "-5", "type": "income"},
        {"amount": "abc", "type": "income"},
        {"amount": "1.234", "type": "income"},
        {"amount": "5", "type": "transfer"},
        {"amount": "5", "type": "income", "date": "not-a-date"},
        {"amount": "5", "type": "income", "date": "2026-10-19garbage"},
        {"amount": "5", "type": "income", "date": 20261019},
        {"amount": "1e30", "type": "income"},
        {"amount": "5", "type": "income", "is_credit": True},
        {"amount": "5", "type": "expense", "is_credit": "maybe"},
    ])
    def test_invalid_payloads(self, db_session, owner_a, payload):
        with pytest.raises(ValidationError):
            transaction_service.create_transaction(owner_a.store.id, payload)

    def test_credit_needs_a_counterparty(self, db_session, owner_a):
        with pytest.raises(ValidationError):
            transaction_service.create_transaction(
                owner_a.store.id, {"amount": "5", "type": "expense", "is_credit": True}
            )

    def test_credit_and_payment_are_exclusive(self, db_session, owner_a, supplier_a):
        with pytest.raises(ValidationError):
            transaction_service.create_transaction(owner_a.store.id, {
                "amount": "5", "type": "expense", "supplier_id": supplier_a.id,
                "is_credit": True, "is_debt_payment": True,
            })

    def test_cannot_link_another_stores_supplier(self, db_session, owner_a, owner_b):
        foreign = directory_service.create_entry("supplier", owner_b.store.id, {"name": "Elsewhere"})
        with pytest.raises(ValidationError):
            transaction_service.create_transaction(owner_a.store.id, {
                "amount": "5", "type": "expense", "supplier_id": foreign.id, "is_credit": True,
            })

    def test_legacy_debt_payment_type(self, db_session, owner_a, supplier_a):
        tx = transaction_service.create_transaction(owner_a.store.id, {
            "amount": "5", "type": "debt_payment", "supplier_id": supplier_a.id,
        })
        assert tx.type == "expense"
        assert tx.is_debt_payment is True

    def test_default_date_is_business_day(self, app, db_session, owner_a, monkeypatch):
        monkeypatch.setattr(transaction_service, "current_business_date", lambda: date(2026, 1, 9))
        tx = transaction_service.create_transaction(owner_a.store.id, {"amount": "1", "type": "income"})
        assert tx.date == date(2026, 1, 9)

    def test_list_filters(self, db_session, owner_a, supplier_a):
        store_id = owner_a.store.id
        for day, amount in (("2026-03-01", "1"), ("2026-03-02", "2"), ("2026-03-03", "3")):
            transaction_service.create_transaction(store_id, {"amount": amount, "type": "income", "date": day})
        transaction_service.create_transaction(store_id, {
            "amount": "9", "type": "expense", "date": "2026-03-02",
            "supplier_id": supplier_a.id, "is_credit": True,
        })

        assert len(transaction_service.list_transactions(store_id)) == 4
        assert len(transaction_service.list_transactions(store_id, day=date(2026, 3, 2))) == 2
        ranged = transaction_service.list_transactions(store_id, start=date(2026, 3, 2), end=date(2026, 3, 3))
        assert [tx.date.day for tx in ranged] == [3, 2, 2]
        assert len(transaction_service.list_transactions(store_id, supplier_id=supplier_a.id)) == 1


class TestDailyClose:

    def test_books_income_lines_and_pocket(self, db_session, owner_a):
        created = transaction_service.record_daily_close(
            owner_a.store.id,
            created_by=owner_a.user.id,
            day="2026-03-04",
            cash="120.00",
            card="340.50",
            no_receipt="",
            withdrawal="50",
        )
        assert [(tx.type, tx.method, tx.amount_cents) for tx in created] == [
            ("income", "Cash (Z)", 12000),
            ("income", "Card", 34050),
            ("expense", "Cash", 5000),
        ]
        assert created[-1].category == transaction_service.CATEGORY_POCKET
        assert {tx.date for tx in created} == {date(2026, 3, 4)}

    def test_needs_some_takings(self, db_session, owner_a):
        with pytest.raises(ValidationError):
            transaction_service.record_daily_close(
                owner_a.store.id, created_by=owner_a.user.id, cash="0", card=None, withdrawal="20"
            )
        assert db_session.query(Transaction).count() == 0

    def test_all_or_nothing(self, db_session, owner_a):
        with pytest.raises(ValidationError):
            transaction_service.record_daily_close(
                owner_a.store.id, created_by=owner_a.user.id, cash="10", card="oops"
            )
        assert db_session.query(Transaction).count() == 0


class TestEmployeePayment:

    def test_pay_employee(self, db_session, owner_a):
        employee = directory_service.create_entry(
            "employee", owner_a.store.id, {"full_name": "Maria K", "monthly_salary": "950.00"}
        )
        assert employee.monthly_salary_cents == 95000

        tx = transaction_service.pay_employee(
            owner_a.store.id, employee.id, created_by=owner_a.user.id, amount="300", day="2026-03-10"
        )
        assert tx.category == transaction_service.CATEGORY_STAFF
        assert tx.employee_id == employee.id
        assert tx.type == "expense"

    def test_unknown_employee(self, db_session, owner_a):
        with pytest.raises(EntityNotFoundError):
            transaction_service.pay_employee(owner_a.store.id, 999, created_by=None, amount="1")


class TestTransactionRoutes:

    def test_create_list_delete(self, client, db_session, owner_a, headers_for):
        headers = headers_for("alice@example.com")
        base = f'/api/stores/{owner_a.store.id}/transactions'

        created = client.post(base, json={'amount': '12.50', 'type': 'income', 'date': '2026-03-01'}, headers=headers)
        assert created.status_code == 201
        tx_id = created.json['id']

        bad = client.post(base, json={'amount': 'x', 'type': 'income'}, headers=headers)
        assert bad.status_code == 400

        listing = client.get(base, query_string={'date': '2026-03-01'}, headers=headers).json
        assert listing['count'] == 1

        assert client.delete(f'{base}/{tx_id}', headers=headers).status_code == 200
        assert client.delete(f'{base}/{tx_id}', headers=headers).status_code == 404

    def test_member_delete_needs_capability(self, client, db_session, owner_a, owner_b, headers_for):
        access_service.grant_access(store_id=owner_a.store.id, user_id=owner_b.user.id, role="user")
        profile_service.set_capabilities(owner_b.user.id, can_edit_transactions=False)
        tx = transaction_service.create_transaction(owner_a.store.id, {"amount": "3", "type": "income"})
        url = f'/api/stores/{owner_a.store.id}/transactions/{tx.id}'

        headers = headers_for("bob@example.com")
        assert client.delete(url, headers=headers).status_code == 403

        profile_service.set_capabilities(owner_b.user.id, can_edit_transactions=True)
        assert client.delete(url, headers=headers).status_code == 200

    def test_daily_close_route(self, client, db_session, owner_a, headers_for):
        response = client.post(
            f'/api/stores/{owner_a.store.id}/daily-close',
            json={'date': '2026-03-04', 'cash': '100', 'card': '50'},
            headers=headers_for("alice@example.com"),
        )
        assert response.status_code == 201
        assert response.json['count'] == 2


class TestReportRoutes:

    def test_balance_scenario(self, client, db_session, owner_a, supplier_a, headers_for):
        store_id = owner_a.store.id
        for payload in (
            {"amount": "100", "is_credit": True},
            {"amount": "100", "is_credit": True},
            {"amount": "60", "is_debt_payment": True},
        ):
            payload.update(type="expense", supplier_id=supplier_a.id, date="2026-03-01")
            transaction_service.create_transaction(store_id, payload)

        headers = headers_for("alice@example.com")
        url = f'/api/stores/{store_id}/reports/balances'
        report = client.get(url, headers=headers).json
        assert [(r['name'], r['balance']) for r in report['rows']] == [('Fresh Farms', '140.00')]
        assert report['total_outstanding'] == '140.00'

        transaction_service.create_transaction(store_id, {
            "amount": "140", "type": "expense", "is_debt_payment": True,
            "supplier_id": supplier_a.id, "date": "2026-03-02",
        })
        report = client.get(url, headers=headers).json
        assert report['rows'] == []
        assert report['total_outstanding_cents'] == 0

    def test_daily_report(self, client, db_session, owner_a, headers_for):
        store_id = owner_a.store.id
        transaction_service.create_transaction(store_id, {"amount": "10", "type": "income", "date": "2026-03-01"})
        transaction_service.create_transaction(store_id, {"amount": "4", "type": "expense", "date": "2026-03-01"})
        transaction_service.create_transaction(store_id, {"amount": "7", "type": "income", "date": "2026-03-05"})

        headers = headers_for("alice@example.com")
        items = client.get(
            f'/api/stores/{store_id}/reports/daily',
            query_string={'from': '2026-03-01', 'to': '2026-03-03'},
            headers=headers,
        ).json['items']
        assert items == [{
            'date': '2026-03-01',
            'income': '10.00', 'expenses': '4.00', 'profit': '6.00',
            'income_cents': 1000, 'expense_cents': 400, 'profit_cents': 600,
        }]

        bad = client.get(f'/api/stores/{store_id}/reports/daily', query_string={'from': 'x'}, headers=headers)
        assert bad.status_code == 400

    def test_category_report(self, client, db_session, owner_a, supplier_a, headers_for):
        store_id = owner_a.store.id
        water = directory_service.create_entry("fixed_asset", store_id, {"name": "WATER", "sub_category": "utility"})
        for payload in (
            {"amount": "30", "supplier_id": supplier_a.id},
            {"amount": "50", "supplier_id": supplier_a.id, "is_credit": True},
            {"amount": "10", "fixed_asset_id": water.id},
            {"amount": "10", "fixed_asset_id": water.id, "date": "2026-04-01"},
        ):
            payload.setdefault("date", "2026-03-01")
            transaction_service.create_transaction(store_id, dict(payload, type="expense"))

        headers = headers_for("alice@example.com")
        url = f'/api/stores/{store_id}/reports/categories'
        report = client.get(url, query_string={'from': '2026-03-01', 'to': '2026-03-31'}, headers=headers).json
        assert report['total'] == '40.00'
        assert [(g['key'], g['share']) for g in report['groups'][:2]] == [('goods', '75.0'), ('utilities', '25.0')]

        assert client.get(url, query_string={'to': '2026-03-31x'}, headers=headers).status_code == 400
