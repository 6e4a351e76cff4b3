"""OAuth Authorization Code + PKCE flow for CLI authentication.

1. Generate verifier, challenge and state
2. Bind the local callback listener, then open the browser
3. Wait for the redirect to deliver an authorization code
4. Exchange the code (plus verifier) for an access token
5. Persist the token to ~/.fluidstack/token

No step is retried: every failure ends the current invocation.
"""

from __future__ import annotations

import webbrowser
from typing import Callable
from urllib.parse import urlencode

import click
import httpx

from ..constants import (
    OAUTH_AUDIENCE,
    OAUTH_AUTHORIZE_URL,
    OAUTH_CALLBACK_HOST,
    OAUTH_CALLBACK_PATH,
    OAUTH_CALLBACK_PORT,
    OAUTH_CALLBACK_TIMEOUT,
    OAUTH_CLIENT_ID,
    OAUTH_SCOPES,
    OAUTH_TOKEN_URL,
)
from ..errors import AuthorizationDenied, PersistFailed, TokenExchangeFailed
from .callback import CallbackListener
from .pkce import PKCEExchange, generate_exchange
from .store import write_token


def redirect_uri_for(port: int) -> str:
    return f"http://{OAUTH_CALLBACK_HOST}:{port}"


def build_authorize_url(exchange: PKCEExchange, redirect_uri: str) -> str:
    """Authorization endpoint URL carrying the PKCE challenge and state."""
    params = {
        "client_id": OAUTH_CLIENT_ID,
        "redirect_uri": redirect_uri,
        "response_type": "code",
        "scope": " ".join(OAUTH_SCOPES),
        "state": exchange.state,
        "code_challenge_method": "S256",
        "code_challenge": exchange.challenge,
        "audience": OAUTH_AUDIENCE,
    }
    return f"{OAUTH_AUTHORIZE_URL}?{urlencode(params)}"


def exchange_code(
    code: str,
    verifier: str,
    redirect_uri: str,
    client: httpx.Client | None = None,
) -> str:
    """Trade an authorization code for an access token.

    Raises ``TokenExchangeFailed`` on transport errors, non-2xx responses
    or a body without ``access_token``.
    """
    owns_client = client is None
    if client is None:
        client = httpx.Client(timeout=30.0)

    try:
        resp = client.post(
            OAUTH_TOKEN_URL,
            data={
                "grant_type": "authorization_code",
                "code": code,
                "redirect_uri": redirect_uri,
                "client_id": OAUTH_CLIENT_ID,
                "code_verifier": verifier,
            },
            headers={"Accept": "application/json"},
        )
    except httpx.RequestError as exc:
        raise TokenExchangeFailed(
            f"failed to exchange authorization code: network error: {exc}"
        ) from exc
    finally:
        if owns_client:
            client.close()

    if not resp.is_success:
        try:
            err = resp.json()
        except ValueError:
            err = None
        if isinstance(err, dict):
            msg = err.get("error_description", err.get("error", resp.text))
        else:
            msg = resp.text
        raise TokenExchangeFailed(
            f"failed to exchange authorization code: {msg} ({resp.status_code})"
        )

    try:
        body = resp.json()
    except ValueError as exc:
        raise TokenExchangeFailed(
            "failed to exchange authorization code: invalid JSON response"
        ) from exc

    access_token = body.get("access_token") if isinstance(body, dict) else None
    if not isinstance(access_token, str) or not access_token:
        raise TokenExchangeFailed(
            "failed to exchange authorization code: response missing access_token"
        )
    return access_token


def _open_browser(url: str, opener: Callable[[str], bool]) -> None:
    click.echo("Opening browser to log in...", err=True)
    click.echo(f"If the browser doesn't open, visit:\n  {url}\n", err=True)
    try:
        opened = opener(url)
    except webbrowser.Error as exc:
        click.echo(f"Warning: could not launch a browser: {exc}", err=True)
        return
    if opened is False:
        click.echo("Warning: could not launch a browser; open the URL above manually.", err=True)


def browser_login(
    *,
    port: int = OAUTH_CALLBACK_PORT,
    timeout: float | None = OAUTH_CALLBACK_TIMEOUT,
    open_browser: Callable[[str], bool] = webbrowser.open,
    http_client: httpx.Client | None = None,
) -> str:
    """Run the interactive PKCE login and return the new access token.

    The token is returned even when writing it to the store fails; the
    failure is reported on stderr and the next invocation logs in again.
    """
    exchange = generate_exchange()

    listener = CallbackListener(
        port=port, path=OAUTH_CALLBACK_PATH, expected_state=exchange.state,
    )
    with listener:
        redirect_uri = redirect_uri_for(listener.port)
        url = build_authorize_url(exchange, redirect_uri)
        _open_browser(url, open_browser)
        click.echo("Waiting for authorization...", err=True)
        result = listener.wait(timeout=timeout)

    if not result.code:
        raise AuthorizationDenied(f"Authorization failed: {result.error}")

    access_token = exchange_code(result.code, exchange.verifier, redirect_uri, http_client)

    try:
        write_token(access_token)
    except PersistFailed as exc:
        click.echo(f"Warning: {exc.message}. You will need to log in again next time.", err=True)

    return access_token
