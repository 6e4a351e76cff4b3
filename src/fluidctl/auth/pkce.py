"""PKCE verifier/challenge and anti-CSRF state generation."""

from __future__ import annotations

import base64
import hashlib
import secrets
from typing import NamedTuple

from ..errors import EntropyUnavailable

VERIFIER_BYTES = 32
STATE_BYTES = 24


class PKCEExchange(NamedTuple):
    """Single-use values for one login attempt. Never persisted."""

    verifier: str
    challenge: str
    state: str


def random_hex(count: int) -> str:
    """Return ``count`` bytes from the OS CSPRNG, hex-encoded."""
    try:
        return secrets.token_bytes(count).hex()
    except (OSError, NotImplementedError) as exc:
        raise EntropyUnavailable(f"Could not generate {count} random bytes: {exc}") from exc


def code_challenge(verifier: str) -> str:
    """S256 challenge: base64url(SHA-256(verifier)) without padding."""
    digest = hashlib.sha256(verifier.encode("ascii")).digest()
    return base64.urlsafe_b64encode(digest).rstrip(b"=").decode("ascii")


def generate_exchange() -> PKCEExchange:
    verifier = random_hex(VERIFIER_BYTES)
    state = random_hex(STATE_BYTES)
    return PKCEExchange(verifier=verifier, challenge=code_challenge(verifier), state=state)
