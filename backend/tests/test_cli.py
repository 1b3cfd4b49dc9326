# Overview: Pytest coverage for the Flask CLI command groups.

from datetime import timedelta

from cosy.models import Store, StoreAccess, StoreInvite
from cosy.services import invite_service
from cosy.time_utils import utcnow


def test_users_create_provisions_store(app, db_session):
    runner = app.test_cli_runner()
    result = runner.invoke(args=[
        'users', 'create',
        '--email', 'dana@example.com',
        '--password', 'secret123',
        '--store-name', 'Deli Delta',
    ])

    assert 'PASS Created user: dana@example.com' in result.output
    store = db_session.query(Store).one()
    assert store.name == 'DELI DELTA'
    assert db_session.query(StoreAccess).filter_by(store_id=store.id, role='admin').count() == 1


def test_users_create_rejects_short_password(app, db_session):
    result = app.test_cli_runner().invoke(args=[
        'users', 'create', '--email', 'dana@example.com', '--password', 'abc',
    ])
    assert 'FAIL Password validation failed' in result.output
    assert db_session.query(Store).count() == 0


def test_stores_list_for_user(app, owner_a, owner_b):
    result = app.test_cli_runner().invoke(args=['stores', 'list', '--email', 'alice@example.com'])
    assert owner_a.store.id in result.output
    assert owner_b.store.id not in result.output


def test_invites_create_prints_link(app, owner_a):
    result = app.test_cli_runner().invoke(args=[
        'invites', 'create', '--store-id', owner_a.store.id, '--email', 'alice@example.com',
    ])
    assert 'PASS Invite' in result.output
    assert 'https://books.example.com/accept-invite?token=' in result.output


def test_invites_create_requires_admin(app, owner_a, owner_b):
    result = app.test_cli_runner().invoke(args=[
        'invites', 'create', '--store-id', owner_a.store.id, '--email', 'bob@example.com',
    ])
    assert result.output.startswith('FAIL')


def test_purge_invites(app, db_session, owner_a):
    invite_service.create_invite(
        store_id=owner_a.store.id, created_by=owner_a.user.id, now=utcnow() - timedelta(days=5)
    )
    invite_service.create_invite(store_id=owner_a.store.id, created_by=owner_a.user.id)

    result = app.test_cli_runner().invoke(args=['maintenance', 'purge-invites'])

    assert 'Deleted 1 expired invites.' in result.output
    assert db_session.query(StoreInvite).count() == 1
