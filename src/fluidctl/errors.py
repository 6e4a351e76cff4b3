"""Auth error taxonomy and API error → exit code mapping."""

from __future__ import annotations

import sys

import click
import httpx

from .constants import (
    EXIT_AUTH_FAILURE,
    EXIT_CONFLICT,
    EXIT_GENERAL_ERROR,
    EXIT_NETWORK_ERROR,
    EXIT_NOT_FOUND,
    EXIT_PERMISSION_DENIED,
)


# ── Authentication errors ───────────────────────────────────────────────────


class AuthError(click.ClickException):
    """Base class for failures while obtaining a bearer token.

    Every subclass is terminal for the current invocation: click prints
    ``Error: <message>`` and exits with ``EXIT_AUTH_FAILURE``.
    """

    exit_code = EXIT_AUTH_FAILURE


class EntropyUnavailable(AuthError):
    """The OS random source could not supply bytes for PKCE/state."""


class CallbackPortUnavailable(AuthError):
    """The local callback listener could not bind its port."""


class AuthorizationDenied(AuthError):
    """The callback carried no authorization code (or never arrived)."""


class TokenExchangeFailed(AuthError):
    """The issuer rejected the code exchange, or the request never completed."""


class MalformedToken(AuthError):
    """The cached token could not be decoded or has no ``exp`` claim."""


class StoreUnreadable(AuthError):
    """The token store exists but could not be read."""


class PersistFailed(AuthError):
    """A freshly obtained token could not be written to the token store."""


# ── API errors ──────────────────────────────────────────────────────────────

# (exit_code, default_message, hint_template)
_STATUS_MAP: dict[int, tuple[int, str, str | None]] = {
    401: (EXIT_AUTH_FAILURE, "Authentication failed", "Run `fluidctl auth login` to re-authenticate."),
    403: (EXIT_PERMISSION_DENIED, "Permission denied", None),
    404: (EXIT_NOT_FOUND, "Resource not found", None),
    409: (EXIT_CONFLICT, "Conflict", None),
}


def _extract_detail(response: httpx.Response) -> str | None:
    """Try to extract a message from a JSON error response."""
    try:
        body = response.json()
    except ValueError:
        return None
    if not isinstance(body, dict):
        return None
    for key in ("detail", "message", "error"):
        value = body.get(key)
        if isinstance(value, str):
            return value
        if isinstance(value, dict):
            return value.get("message", str(value))
    return None


def handle_api_error(response: httpx.Response, action: str | None = None) -> None:
    """Map an HTTP error response to a CLI error message and exit."""
    status = response.status_code
    detail = _extract_detail(response)

    if status in _STATUS_MAP:
        exit_code, default_msg, hint = _STATUS_MAP[status]
        message = detail or f"{default_msg} ({status})"
    elif 400 <= status < 500:
        exit_code = EXIT_GENERAL_ERROR
        message = detail or f"Client error ({status})"
        hint = None
    else:
        exit_code = EXIT_GENERAL_ERROR
        message = detail or f"Server error ({status})"
        hint = "The API returned an unexpected error. Try again later."

    if action:
        message = f"failed to {action}: {message}"

    click.echo(f"Error: {message}", err=True)
    if hint:
        click.echo(f"Hint: {hint}", err=True)
    sys.exit(exit_code)


def handle_network_error(exc: httpx.RequestError) -> None:
    """Handle connection/DNS/timeout errors."""
    click.echo(f"Error: Network error — {exc}", err=True)
    click.echo("Hint: Check your network connection and --url.", err=True)
    sys.exit(EXIT_NETWORK_ERROR)
