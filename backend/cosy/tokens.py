"""Token generation and hashing shared by the server and the client SDK."""

from __future__ import annotations

import hashlib
import re
import secrets

_SHA256_HEX_RE = re.compile(r"^[0-9a-f]{64}$")


def generate_token() -> str:
    """64-character hex string (32 bytes of entropy)."""
    return secrets.token_hex(32)


def hash_token(token: str) -> str:
    """
    SHA-256 hex digest.

    Tokens are already high-entropy, so a fast hash is sufficient.
    """
    return hashlib.sha256(token.encode('utf-8')).hexdigest()


def is_token_hash(value) -> bool:
    return isinstance(value, str) and bool(_SHA256_HEX_RE.match(value))
