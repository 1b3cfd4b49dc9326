# Overview: Service-layer operations for auth; encapsulates business logic and database work.

"""
Authentication Service

Email + password identities with bcrypt hashing. Sign-up is the entry
point for new tenants as well: a user registering without an invitation
becomes admin of a freshly provisioned store, a user registering with one
joins the inviting store. Either way the whole sequence (user, profile,
store or access grant) commits as a single database transaction.

SECURITY NOTES:
- Passwords hashed with bcrypt (cost factor 12)
- Minimum 6 characters, not blank
- Session tokens managed separately (see session_service.py)
"""

from __future__ import annotations

import bcrypt
import re
from dataclasses import dataclass

from ..extensions import db
from ..models import User, Profile, Store
from ..time_utils import utcnow
from . import invite_service, store_service
from .concurrency import atomic


MIN_PASSWORD_LENGTH = 6

_EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")


class PasswordValidationError(Exception):
    """Raised when password doesn't meet strength requirements."""
    pass


class RegistrationError(Exception):
    """Raised when sign-up input is rejected."""
    pass


@dataclass
class RegistrationResult:
    user: User
    store: Store
    role: str


def validate_password_strength(password: str) -> None:
    if not password or not password.strip():
        raise PasswordValidationError("Password is required")
    if len(password) < MIN_PASSWORD_LENGTH:
        raise PasswordValidationError(
            f"Password must be at least {MIN_PASSWORD_LENGTH} characters long"
        )


def hash_password(password: str) -> str:
    """
    Hash password using bcrypt with cost factor 12.

    Password is validated for strength before hashing.
    """
    validate_password_strength(password)
    salt = bcrypt.gensalt(rounds=12)
    hashed = bcrypt.hashpw(password.encode('utf-8'), salt)
    return hashed.decode('utf-8')


def verify_password(password: str, password_hash: str) -> bool:
    """Timing-safe bcrypt comparison. Malformed hashes never match."""
    try:
        return bcrypt.checkpw(password.encode('utf-8'), password_hash.encode('utf-8'))
    except ValueError:
        return False


def normalize_email(email: str | None) -> str:
    return (email or "").strip().lower()


def _create_identity(email: str, password: str, username: str | None, *, full_access: bool) -> User:
    email = normalize_email(email)
    if not _EMAIL_RE.match(email):
        raise RegistrationError("A valid email is required")

    if db.session.query(User).filter_by(email=email).first():
        raise RegistrationError("Email already registered")

    user = User(email=email, password_hash=hash_password(password))
    db.session.add(user)
    db.session.flush()

    profile = Profile(
        id=user.id,
        email=email,
        username=(username or "").strip() or email.split("@")[0],
        subscription_status="active",
        can_view_analysis=full_access,
        can_view_history=full_access,
        can_edit_transactions=full_access,
    )
    db.session.add(profile)
    db.session.flush()
    return user


def register_user(
    email: str,
    password: str,
    *,
    username: str | None = None,
    store_name: str | None = None,
    invite_token_hash: str | None = None,
) -> RegistrationResult:
    """
    Sign up a new user.

    Without invite_token_hash: user + profile + store + admin access +
    default fixed assets. With it: user + profile, then the invite is
    redeemed (raising the InviteError subclass that matches its state).
    Nothing is left behind when any step fails.
    """
    with atomic():
        if invite_token_hash:
            invite = invite_service.check_redeemable(invite_token_hash)
            user = _create_identity(email, password, username, full_access=invite.role == "admin")
            access = invite_service.redeem_invite(invite_token_hash, user.id, commit=False)
            store = access.store
            role = access.role
        else:
            user = _create_identity(email, password, username, full_access=True)
            name = store_name or (username or "").strip() or user.email.split("@")[0]
            store = store_service.provision_store(name, owner_id=user.id, commit=False)
            role = "admin"

    return RegistrationResult(user=user, store=store, role=role)


def authenticate(email: str, password: str) -> User | None:
    """
    Authenticate user with email and password.

    Returns User if credentials valid, None otherwise.
    Updates last_login_at timestamp on successful authentication.
    """
    user = db.session.query(User).filter(
        User.email == normalize_email(email),
        User.is_active.is_(True),
    ).first()

    if not user:
        return None

    if verify_password(password, user.password_hash):
        user.last_login_at = utcnow()
        db.session.commit()
        return user

    return None
