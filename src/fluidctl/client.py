"""AtlasClient: authenticated httpx wrapper for the Atlas control-plane API."""

from __future__ import annotations

import random
import time
from typing import Any
from uuid import UUID

import click
import httpx

from .auth import obtain_credential
from .constants import API_PREFIX
from .errors import handle_api_error, handle_network_error

_TRANSIENT_STATUSES = {429, 502, 503, 504}
_MAX_TRANSIENT_RETRIES = 3
# POST is not idempotent; a 503 may still have created the resource.
_RETRYABLE_METHODS = {"GET", "DELETE"}


def _transient_delay(attempt: int) -> float:
    """Exponential backoff with jitter for transient failures."""
    base_delays = [1, 2, 4]
    base = base_delays[attempt] if attempt < len(base_delays) else base_delays[-1]
    return min(base + random.random(), 30.0)


class AtlasClient:
    """Sync HTTP client that attaches a bearer token to every request.

    The token is resolved lazily, once, on the first request, so commands
    that fail flag validation never trigger a browser login.
    """

    def __init__(
        self,
        url: str,
        token: str | None = None,
        verbose: bool = False,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self.base_url = url.rstrip("/") + API_PREFIX
        self.verbose = verbose
        self._explicit_token = token
        self._token: str | None = None
        self._client = httpx.Client(base_url=self.base_url, timeout=60.0, transport=transport)

    def _headers(self, project_id: UUID | None) -> dict[str, str]:
        if self._token is None:
            self._token = obtain_credential(self._explicit_token, verbose=self.verbose)
        headers = {"Authorization": f"Bearer {self._token}"}
        if project_id is not None:
            headers["X-PROJECT-ID"] = str(project_id)
        return headers

    def _log_request(self, method: str, url: str) -> None:
        if self.verbose:
            click.echo(f"  {method} {url}", err=True)

    def request(
        self,
        method: str,
        path: str,
        *,
        expected: int,
        action: str,
        project_id: UUID | None = None,
        json: Any = None,
    ) -> httpx.Response:
        """Make an authenticated API request, exiting on any unexpected status."""
        headers = self._headers(project_id)
        self._log_request(method, f"{self.base_url}{path}")

        retryable = method.upper() in _RETRYABLE_METHODS
        resp = None
        for attempt in range(_MAX_TRANSIENT_RETRIES):
            try:
                resp = self._client.request(method, path, headers=headers, json=json)
            except httpx.RequestError as exc:
                if not retryable or attempt == _MAX_TRANSIENT_RETRIES - 1:
                    handle_network_error(exc)
                if self.verbose:
                    click.echo(
                        f"  Retry {attempt + 1}/{_MAX_TRANSIENT_RETRIES} ({type(exc).__name__})",
                        err=True,
                    )
                time.sleep(_transient_delay(attempt))
                continue

            if (
                retryable
                and resp.status_code in _TRANSIENT_STATUSES
                and attempt < _MAX_TRANSIENT_RETRIES - 1
            ):
                if self.verbose:
                    click.echo(
                        f"  Retry {attempt + 1}/{_MAX_TRANSIENT_RETRIES} (HTTP {resp.status_code})",
                        err=True,
                    )
                time.sleep(_transient_delay(attempt))
                continue

            break

        if resp.status_code >= 400:
            handle_api_error(resp, action)
        if resp.status_code != expected:
            raise click.ClickException(
                f"failed to {action}: {resp.status_code} {resp.reason_phrase}"
            )
        return resp

    def get(self, path: str, *, action: str, project_id: UUID | None = None) -> Any:
        resp = self.request("GET", path, expected=200, action=action, project_id=project_id)
        return resp.json()

    def create(self, path: str, body: dict, *, action: str, project_id: UUID | None = None) -> None:
        self.request("POST", path, expected=201, action=action, project_id=project_id, json=body)

    def delete(self, path: str, *, action: str, project_id: UUID | None = None) -> None:
        self.request("DELETE", path, expected=204, action=action, project_id=project_id)

    def close(self) -> None:
        self._client.close()
