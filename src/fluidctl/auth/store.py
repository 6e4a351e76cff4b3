"""Read/write ~/.fluidstack/token (dir 0700, file 0600)."""

from __future__ import annotations

import os
from pathlib import Path

from .. import constants
from ..errors import PersistFailed, StoreUnreadable


def token_path() -> Path:
    return constants.TOKEN_PATH


def read_token(path: Path | None = None) -> str | None:
    """Return the stored token, or None if the file does not exist.

    Any other failure (permissions, a directory in the way, undecodable
    bytes) raises ``StoreUnreadable``: a corrupt store is surfaced, not
    silently replaced by a new login.
    """
    path = path or token_path()
    try:
        raw = path.read_text(encoding="utf-8")
    except FileNotFoundError:
        return None
    except (OSError, UnicodeDecodeError) as exc:
        raise StoreUnreadable(f"failed to read token file {path}: {exc}") from exc
    return raw.strip()


def write_token(token: str, path: Path | None = None) -> Path:
    """Persist the raw token string with owner-only permissions.

    The file is created with mode 0600 before any bytes are written, and
    an existing file is tightened to 0600 as well. No locking and no
    atomic rename: concurrent writers race and the last one wins.
    """
    path = path or token_path()
    try:
        path.parent.mkdir(mode=0o700, parents=True, exist_ok=True)
        fd = os.open(path, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, 0o600)
        try:
            os.fchmod(fd, 0o600)
            os.write(fd, token.encode("utf-8"))
        finally:
            os.close(fd)
    except OSError as exc:
        raise PersistFailed(f"failed to save token to {path}: {exc}") from exc
    return path


def delete_token(path: Path | None = None) -> bool:
    """Remove the token file. Returns True if deleted."""
    path = path or token_path()
    if path.is_file():
        path.unlink()
        return True
    return False
