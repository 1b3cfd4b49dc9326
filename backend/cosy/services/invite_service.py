"""
Store invitations.

An admin creates an invite for a role; the plaintext token goes into a
shareable link and only its SHA-256 is stored. The client hashes the token
again before redeeming, so the plaintext never needs to travel back.
Redemption is single-use and expiring, and grants the access row in the
same database transaction that marks the invite as used.
"""

from __future__ import annotations

from datetime import datetime, timedelta

from ..extensions import db
from ..models import StoreAccess, StoreInvite
from ..time_utils import utcnow
from ..tokens import generate_token, hash_token, is_token_hash
from ..validation import ValidationError, is_valid_uuid
from . import access_service, store_service


INVITE_MIN_DAYS = 1
INVITE_MAX_DAYS = 30
INVITE_DEFAULT_DAYS = 2


class InviteError(Exception):
    """Base class for redemption failures; `code` is what clients branch on."""
    code = "invalid"


class InviteInvalidError(InviteError):
    code = "invalid"


class InviteExpiredError(InviteError):
    code = "expired"


class InviteAlreadyUsedError(InviteError):
    code = "already_used"


def clamp_days(days) -> int:
    try:
        days = int(days)
    except (TypeError, ValueError):
        return INVITE_DEFAULT_DAYS
    return min(INVITE_MAX_DAYS, max(INVITE_MIN_DAYS, days))


def build_invite_link(base_url: str, token: str) -> str:
    return f"{base_url.rstrip('/')}/accept-invite?token={token}"


def create_invite(
    *,
    store_id: str,
    created_by: str,
    role: str | None = None,
    email: str | None = None,
    days=None,
    now: datetime | None = None,
) -> tuple[StoreInvite, str]:
    """
    Create an invite; returns (invite, plaintext_token).

    The plaintext token is not recoverable afterwards.
    """
    access_service.require_store_access(store_id, created_by, admin=True)

    now = now or utcnow()
    token = generate_token()
    invite = StoreInvite(
        store_id=store_id,
        role=access_service.normalize_role(role),
        email=(email or "").strip() or None,
        token_hash=hash_token(token),
        created_by=created_by,
        created_at=now,
        expires_at=now + timedelta(days=clamp_days(days if days is not None else INVITE_DEFAULT_DAYS)),
    )
    db.session.add(invite)
    db.session.commit()
    return invite, token


def _load(token_hash: str, *, lock: bool = False) -> StoreInvite | None:
    if not is_token_hash(token_hash):
        return None
    query = db.session.query(StoreInvite).filter_by(token_hash=token_hash)
    if lock:
        query = query.with_for_update()
    return query.first()


def _check(invite: StoreInvite | None, now: datetime) -> StoreInvite:
    if invite is None:
        raise InviteInvalidError("Invite link is invalid")
    if invite.used_at is not None:
        raise InviteAlreadyUsedError("Invite has already been used")
    if invite.expires_at < now:
        raise InviteExpiredError("Invite has expired")
    return invite


def check_redeemable(token_hash: str, now: datetime | None = None) -> StoreInvite:
    """Raise the matching InviteError unless the invite can be redeemed now."""
    return _check(_load(token_hash), now or utcnow())


def redeem_invite(
    token_hash: str,
    user_id: str,
    *,
    now: datetime | None = None,
    commit: bool = True,
) -> StoreAccess:
    """
    Consume the invite and grant its role to user_id.

    A user who is already admin of the store keeps admin; otherwise the
    invite's role is applied.
    """
    now = now or utcnow()
    invite = _check(_load(token_hash, lock=True), now)

    role = invite.role
    if access_service.get_store_role(invite.store_id, user_id) == "admin":
        role = "admin"

    invite.used_at = now
    invite.used_by = user_id
    access = access_service.grant_access(
        store_id=invite.store_id,
        user_id=user_id,
        role=role,
        granted_by=invite.created_by,
        commit=False,
    )

    if commit:
        db.session.commit()
    return access


def list_invites(store_id: str, *, include_used: bool = False) -> list[StoreInvite]:
    query = db.session.query(StoreInvite).filter_by(store_id=store_id)
    if not include_used:
        query = query.filter(StoreInvite.used_at.is_(None))
    return query.order_by(StoreInvite.created_at.desc()).all()


def revoke_invite(store_id: str, invite_id: int) -> bool:
    """Delete a pending invite. Used invites stay as the audit trail."""
    invite = db.session.query(StoreInvite).filter_by(id=invite_id, store_id=store_id).first()
    if not invite or invite.used_at is not None:
        return False
    db.session.delete(invite)
    db.session.commit()
    return True


def purge_expired(now: datetime | None = None) -> int:
    """Delete pending invites past their expiry. Returns the count deleted."""
    now = now or utcnow()
    deleted = db.session.query(StoreInvite).filter(
        StoreInvite.used_at.is_(None),
        StoreInvite.expires_at < now,
    ).delete(synchronize_session=False)
    db.session.commit()
    return deleted


def validate_store_identifier(identifier) -> str:
    """
    Check a raw identifier from an enrollment link.

    Raises ValidationError when it is missing or not a UUID; returns it
    normalized to lower case.
    """
    identifier = identifier.strip() if isinstance(identifier, str) else ""
    if not identifier:
        raise ValidationError("Missing invite id.")
    if not is_valid_uuid(identifier):
        raise ValidationError("Invalid invite format.")
    return identifier.lower()


def lookup_store_id(identifier) -> str | None:
    """Store id behind a validated enrollment identifier, None when unknown."""
    store = store_service.get_store(validate_store_identifier(identifier))
    return store.id if store else None
