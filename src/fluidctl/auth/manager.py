"""Credential resolution: --token override > cached token > browser login."""

from __future__ import annotations

import click

from .browser import browser_login
from .store import read_token
from .token import is_expired


def _trace(verbose: bool, message: str) -> None:
    if verbose:
        click.echo(f"  auth: {message}", err=True)


def obtain_credential(explicit_token: str | None = None, verbose: bool = False) -> str:
    """Return a usable bearer token, logging in interactively if needed.

    An explicit token is trusted as-is: no store access, no expiry check,
    no network. A cached token that cannot be decoded is an error rather
    than a reason to log in again, so a corrupted store is never masked.
    """
    if explicit_token:
        _trace(verbose, "using token from --token")
        return explicit_token

    cached = read_token()
    if cached is not None:
        if not is_expired(cached):
            _trace(verbose, "using cached token")
            return cached
        _trace(verbose, "cached token expired")
    else:
        _trace(verbose, "no cached token")

    return browser_login()
