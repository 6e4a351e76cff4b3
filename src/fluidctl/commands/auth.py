"""Auth commands: login, status, logout, token."""

import sys
import time

import click

from ..auth import obtain_credential
from ..auth.browser import browser_login
from ..auth.store import delete_token, read_token, token_path
from ..auth.token import decode_claims, token_expiry
from ..constants import EXIT_AUTH_FAILURE
from ..errors import StoreUnreadable


@click.group("auth")
def auth_group():
    """Manage authentication."""
    pass


@auth_group.command("login")
def auth_login():
    """Authenticate via browser OAuth flow, replacing any cached token."""
    token = browser_login()

    claims = decode_claims(token)
    user = claims.get("email") or claims.get("sub", "unknown")
    click.echo(f"Authenticated as {user}")
    if _stored_token() == token:
        click.echo(f"Token saved to {token_path()}")
    else:
        click.echo("Token was not saved; the next command will ask you to log in again.", err=True)


def _stored_token() -> str | None:
    try:
        return read_token()
    except StoreUnreadable:
        return None


@auth_group.command("status")
def auth_status():
    """Show the cached token's identity and expiry."""
    token = read_token()
    if token is None:
        click.echo("Not authenticated. Run `fluidctl auth login`.", err=True)
        sys.exit(EXIT_AUTH_FAILURE)

    claims = decode_claims(token)
    remaining = token_expiry(token) - int(time.time())
    if remaining > 0:
        token_status = f"valid (expires in {remaining // 60}m)"
    else:
        token_status = "expired"

    click.echo(f"User:        {claims.get('sub', 'unknown')}")
    if claims.get("email"):
        click.echo(f"Email:       {claims['email']}")
    click.echo(f"Token:       {token_status}")
    click.echo(f"File:        {token_path()}")


@auth_group.command("logout")
def auth_logout():
    """Remove the cached token."""
    if delete_token():
        click.echo("Token removed.")
    else:
        click.echo("No token found.")


@auth_group.command("token")
@click.pass_context
def auth_token(ctx):
    """Print a usable access token to stdout (pipe-friendly)."""
    token = obtain_credential(ctx.obj["token"], verbose=ctx.obj["verbose"])
    click.echo(token)
