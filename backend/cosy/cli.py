# Overview: Flask CLI command groups for bootstrap, inspection, and maintenance.

# backend/cosy/cli.py
# Commands Legend (run from the backend directory):
# Prereqs:
# - Activate your virtualenv.
# - Set FLASK_APP to wsgi.py (PowerShell: $env:FLASK_APP="wsgi.py").
# - Use: python -m flask <group> <command> [options]
#
# System bootstrap/repair:
# - python -m flask system init
#   Create all tables (idempotent).
# - python -m flask system reset-db --yes
#   DEV/TEST only: drop and recreate all tables (deletes all data).
#
# Users:
# - python -m flask users create --email owner@example.com --password "secret1" --store-name "Corner Cafe"
#   Register a user together with a new store they administer.
# - python -m flask users set-capabilities owner@example.com --analysis --history --edit
#   Toggle profile capability flags.
#
# Stores:
# - python -m flask stores list [--email owner@example.com]
#   List stores (optionally only those a user can access).
# - python -m flask stores create --email owner@example.com --name "Second Shop"
#   Open another store for an existing user.
#
# Invites:
# - python -m flask invites create --store-id <uuid> --email owner@example.com --role user --days 2
#   Print a one-time invite link.
#
# Maintenance:
# - python -m flask maintenance purge-invites
#   Delete pending invites past their expiry.

import click
from flask import current_app
from flask.cli import with_appcontext

from .extensions import db
from .models import Store, User, STORE_ROLES
from .services import auth_service, invite_service, profile_service, store_service
from .services.auth_service import PasswordValidationError, RegistrationError
from .services.access_service import StoreAccessError
from .services.store_service import StoreError


def _user_by_email(email: str) -> User | None:
    return db.session.query(User).filter_by(email=auth_service.normalize_email(email)).first()


@click.group('system')
def system_group():
    """System bootstrap and repair commands."""


@system_group.command('init')
@with_appcontext
def init_system():
    """Create all tables that do not exist yet."""
    db.create_all()
    click.echo("PASS Database schema ready.")


@system_group.command('reset-db')
@click.option('--yes', is_flag=True, help='Skip confirmation')
@with_appcontext
def reset_db(yes):
    """
    DANGER: Drop all tables and recreate schema.

    This will DELETE ALL DATA!
    """
    if not yes:
        click.confirm("WARN This will DELETE ALL DATA. Are you sure?", abort=True)

    click.echo("DELETE  Dropping all tables...")
    db.drop_all()

    click.echo("BUILD  Creating all tables...")
    db.create_all()

    click.echo("PASS Database reset complete.")


@click.group('users')
def users_group():
    """User inspection and bootstrap commands."""


@users_group.command('create')
@click.option('--email', prompt=True, help='Email address')
@click.option('--password', prompt=True, hide_input=True, confirmation_prompt=True, help='Password')
@click.option('--username', default=None, help='Display name (defaults to the email local part)')
@click.option('--store-name', default=None, help='Name of the store the user will administer')
@with_appcontext
def create_user_cli(email, password, username, store_name):
    """Register a user with a brand new store, exactly like sign-up does."""
    try:
        result = auth_service.register_user(email, password, username=username, store_name=store_name)
    except PasswordValidationError as e:
        click.echo(f"FAIL Password validation failed: {str(e)}")
        return
    except (RegistrationError, StoreError) as e:
        click.echo(f"FAIL Failed to create user: {str(e)}")
        return

    click.echo(f"PASS Created user: {result.user.email} (ID: {result.user.id})")
    click.echo(f"     Store: {result.store.name} (ID: {result.store.id}), role '{result.role}'")


@users_group.command('set-capabilities')
@click.argument('email')
@click.option('--analysis/--no-analysis', default=None, help='can_view_analysis')
@click.option('--history/--no-history', default=None, help='can_view_history')
@click.option('--edit/--no-edit', default=None, help='can_edit_transactions')
@with_appcontext
def set_capabilities_cli(email, analysis, history, edit):
    user = _user_by_email(email)
    if not user:
        click.echo(f"FAIL User {email} not found")
        return

    flags = {
        "can_view_analysis": analysis,
        "can_view_history": history,
        "can_edit_transactions": edit,
    }
    profile = profile_service.set_capabilities(
        user.id, **{k: v for k, v in flags.items() if v is not None}
    )
    click.echo(
        f"PASS {email}: analysis={profile.can_view_analysis} "
        f"history={profile.can_view_history} edit={profile.can_edit_transactions}"
    )


@click.group('stores')
def stores_group():
    """Store inspection and bootstrap commands."""


@stores_group.command('list')
@click.option('--email', default=None, help='Only stores this user can access')
@with_appcontext
def list_stores_cli(email):
    if email:
        user = _user_by_email(email)
        if not user:
            click.echo(f"FAIL User {email} not found")
            return
        rows = store_service.list_user_stores(user.id)
    else:
        rows = [(store, None) for store in db.session.query(Store).order_by(Store.name.asc()).all()]

    if not rows:
        click.echo("No stores found.")
        return

    click.echo(f"\n{'ID':<38} {'Name':<30} {'Role':<6}")
    click.echo("-" * 76)
    for store, role in rows:
        click.echo(f"{store.id:<38} {store.name:<30} {role or '-':<6}")


@stores_group.command('create')
@click.option('--email', prompt=True, help='Owner email (becomes admin)')
@click.option('--name', prompt=True, help='Store name')
@with_appcontext
def create_store_cli(email, name):
    user = _user_by_email(email)
    if not user:
        click.echo(f"FAIL User {email} not found")
        return
    try:
        store = store_service.provision_store(name, owner_id=user.id)
    except StoreError as e:
        click.echo(f"FAIL {str(e)}")
        return
    click.echo(f"PASS Created store: {store.name} (ID: {store.id}) for {user.email}")


@click.group('invites')
def invites_group():
    """Store invitation commands."""


@invites_group.command('create')
@click.option('--store-id', required=True, help='Store UUID')
@click.option('--email', 'admin_email', required=True, help='Email of a store admin issuing the invite')
@click.option('--role', type=click.Choice(list(STORE_ROLES)), default='user', show_default=True)
@click.option('--days', type=int, default=2, show_default=True, help='Validity in days (1-30)')
@with_appcontext
def create_invite_cli(store_id, admin_email, role, days):
    admin = _user_by_email(admin_email)
    if not admin:
        click.echo(f"FAIL User {admin_email} not found")
        return
    try:
        invite, token = invite_service.create_invite(
            store_id=store_id, created_by=admin.id, role=role, days=days
        )
    except StoreAccessError as e:
        click.echo(f"FAIL {str(e)}")
        return

    click.echo(f"PASS Invite {invite.id} ({invite.role}) expires {invite.expires_at:%Y-%m-%d %H:%M} UTC")
    click.echo(invite_service.build_invite_link(current_app.config["APP_URL"], token))


@click.group('maintenance')
def maintenance_group():
    """Maintenance commands."""


@maintenance_group.command('purge-invites')
@with_appcontext
def purge_invites_cli():
    """Delete pending invites past their expiry."""
    deleted = invite_service.purge_expired()
    click.echo(f"Deleted {deleted} expired invites.")


def register_commands(app):
    """Register all CLI commands with Flask app."""
    app.cli.add_command(system_group)
    app.cli.add_command(users_group)
    app.cli.add_command(stores_group)
    app.cli.add_command(invites_group)
    app.cli.add_command(maintenance_group)
