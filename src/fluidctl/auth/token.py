"""Unverified JWT claim decoding and expiry checks.

The client never holds the issuer's signing key. Signatures are checked
server-side on every API call; here only ``exp`` matters, to decide
whether a cached token is worth sending at all.
"""

from __future__ import annotations

import time
from typing import Any

import jwt

from ..errors import MalformedToken


def decode_claims(token: str) -> dict[str, Any]:
    """Decode JWT claims without verification. Raises ``MalformedToken``."""
    try:
        return jwt.decode(
            token,
            options={"verify_signature": False, "verify_exp": False},
            algorithms=["RS256"],
        )
    except jwt.PyJWTError as exc:
        raise MalformedToken(f"failed to parse token: {exc}") from exc


def token_expiry(token: str) -> int:
    """Return the ``exp`` claim as a unix timestamp."""
    exp = decode_claims(token).get("exp")
    # bool is an int subclass; a boolean exp is not a timestamp
    if isinstance(exp, bool) or not isinstance(exp, (int, float)):
        raise MalformedToken("token does not contain an expiration claim")
    return int(exp)


def is_expired(token: str, now: float | None = None) -> bool:
    """True once ``now`` is strictly past the expiry second."""
    if now is None:
        now = time.time()
    return now > token_expiry(token)
