"""Client side of invite redemption."""

from __future__ import annotations

import logging
from typing import Dict
from urllib.parse import parse_qs, urlparse

from ..tokens import hash_token
from .api import CosyClient
from .errors import CosyApiError

logger = logging.getLogger(__name__)


class InviteRedeemError(Exception):
    code = "invalid"


class InviteInvalid(InviteRedeemError):
    code = "invalid"


class InviteExpired(InviteRedeemError):
    code = "expired"


class InviteAlreadyUsed(InviteRedeemError):
    code = "already_used"


_BY_CODE = {cls.code: cls for cls in (InviteInvalid, InviteExpired, InviteAlreadyUsed)}


def hash_invite_token(token: str) -> str:
    """SHA-256 hex of the raw token; only this ever leaves the device."""
    return hash_token(token.strip())


def token_from_link(link: str) -> str | None:
    values = parse_qs(urlparse(link).query).get("token")
    return values[0] if values else None


def classify_invite_error(error: CosyApiError) -> InviteRedeemError:
    cls = _BY_CODE.get(error.code or "", InviteInvalid)
    return cls(error.message)


def redeem_invite(client: CosyClient, token: str) -> Dict:
    """
    Redeem a raw invite token for the signed-in user.

    Returns {"store_id", "role", "store_name"}. Raises InviteInvalid,
    InviteExpired or InviteAlreadyUsed for rejected invites; other request
    failures propagate as CosyApiError.
    """
    if not token or not token.strip():
        raise InviteInvalid("Invite link is invalid")
    try:
        return client.accept_store_invite(hash_invite_token(token))
    except CosyApiError as e:
        if e.code in _BY_CODE:
            logger.info("Invite rejected: %s", e.code)
            raise classify_invite_error(e) from e
        raise
