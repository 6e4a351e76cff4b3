"""Single-request local HTTP listener for the OAuth redirect.

Each login attempt owns its own ``CallbackListener``: the server, its
handler state and the hand-off queue live on the instance, never on a
class or module, so nothing leaks between attempts.
"""

from __future__ import annotations

import http.server
import queue
import threading
import urllib.parse
from dataclasses import dataclass

from ..constants import OAUTH_CALLBACK_HOST, OAUTH_CALLBACK_PATH, OAUTH_CALLBACK_PORT
from ..errors import AuthorizationDenied, CallbackPortUnavailable

SUCCESS_PAGE = """<!DOCTYPE html>
<html>
<head>
    <title>Authorization Successful</title>
</head>
<body>
    <p>Authorization successful. You can close this window.</p>
    <script>
        window.close();
    </script>
</body>
</html>
"""


@dataclass
class CallbackResult:
    """Outcome of the redirect: exactly one of ``code`` / ``error`` is set."""

    code: str | None = None
    error: str | None = None


class _CallbackServer(http.server.ThreadingHTTPServer):
    # Browsers preconnect to localhost; an idle socket must not block the
    # real redirect or shutdown().
    allow_reuse_address = True
    daemon_threads = True
    block_on_close = False

    def __init__(self, address, callback_path: str, expected_state: str | None) -> None:
        super().__init__(address, _CallbackHandler)
        self.callback_path = callback_path
        self.expected_state = expected_state
        self.results: queue.Queue[CallbackResult] = queue.Queue(maxsize=1)
        self._delivered = False
        self._lock = threading.Lock()

    def claim(self) -> bool:
        """Reserve the single outcome slot. False if already taken."""
        with self._lock:
            if self._delivered:
                return False
            self._delivered = True
            return True


class _CallbackHandler(http.server.BaseHTTPRequestHandler):
    server: _CallbackServer
    timeout = 5

    def do_GET(self) -> None:  # noqa: N802
        parsed = urllib.parse.urlparse(self.path)
        if parsed.path != self.server.callback_path:
            self._send_text(404, "Not found")
            return

        if not self.server.claim():
            self._send_text(400, "Authorization already handled")
            return

        params = urllib.parse.parse_qs(parsed.query)
        code = params.get("code", [""])[0]
        state = params.get("state", [None])[0]

        if not code:
            self._send_text(400, "Authorization code not found")
            self.server.results.put_nowait(CallbackResult(error=_describe_error(params)))
            return

        expected = self.server.expected_state
        if expected is not None and state is not None and state != expected:
            self._send_text(400, "Invalid state parameter")
            self.server.results.put_nowait(
                CallbackResult(error="state parameter does not match this login attempt")
            )
            return

        body = SUCCESS_PAGE.encode("utf-8")
        self.send_response(200)
        self.send_header("Content-Type", "text/html; charset=utf-8")
        self.send_header("Content-Length", str(len(body)))
        self.end_headers()
        self.wfile.write(body)
        self.server.results.put_nowait(CallbackResult(code=code))

    def _send_text(self, status: int, message: str) -> None:
        body = f"{message}\n".encode("utf-8")
        self.send_response(status)
        self.send_header("Content-Type", "text/plain; charset=utf-8")
        self.send_header("Content-Length", str(len(body)))
        self.end_headers()
        self.wfile.write(body)

    def log_message(self, format, *args):
        """Suppress default logging."""
        pass


def _describe_error(params: dict[str, list[str]]) -> str:
    error = params.get("error", [""])[0]
    description = params.get("error_description", [""])[0]
    if error and description:
        return f"{error}: {description}"
    if error:
        return error
    return "authorization code not found in callback"


class CallbackListener:
    """Ephemeral listener that accepts one redirect and hands it to the flow.

    Usage::

        with CallbackListener(expected_state=state) as listener:
            webbrowser.open(url)
            result = listener.wait(timeout=300)
    """

    def __init__(
        self,
        host: str = OAUTH_CALLBACK_HOST,
        port: int = OAUTH_CALLBACK_PORT,
        path: str = OAUTH_CALLBACK_PATH,
        expected_state: str | None = None,
    ) -> None:
        self.host = host
        self.requested_port = port
        self.path = path
        self.expected_state = expected_state
        self._server: _CallbackServer | None = None
        self._thread: threading.Thread | None = None

    @property
    def port(self) -> int:
        """Bound port (differs from the requested one only when that was 0)."""
        if self._server is None:
            return self.requested_port
        return self._server.server_address[1]

    @property
    def running(self) -> bool:
        return self._server is not None

    def start(self) -> None:
        try:
            self._server = _CallbackServer(
                (self.host, self.requested_port), self.path, self.expected_state,
            )
        except OSError as exc:
            raise CallbackPortUnavailable(
                f"Could not listen on {self.host}:{self.requested_port} for the login "
                f"callback ({exc.strerror or exc}). Close whatever is using the port and retry."
            ) from exc

        self._thread = threading.Thread(
            target=self._server.serve_forever,
            kwargs={"poll_interval": 0.1},
            name="fluidctl-oauth-callback",
            daemon=True,
        )
        self._thread.start()

    def wait(self, timeout: float | None = None) -> CallbackResult:
        """Block until the redirect arrives. Raises ``AuthorizationDenied`` on timeout."""
        if self._server is None:
            raise RuntimeError("listener is not running")
        try:
            return self._server.results.get(timeout=timeout)
        except queue.Empty:
            raise AuthorizationDenied(
                f"Timed out after {timeout:.0f}s waiting for the browser login to complete."
            ) from None

    def close(self) -> None:
        """Stop accepting connections and release the port. Idempotent."""
        server, self._server = self._server, None
        if server is None:
            return
        server.shutdown()
        server.server_close()
        if self._thread is not None:
            self._thread.join(timeout=5)
            self._thread = None

    def __enter__(self) -> CallbackListener:
        self.start()
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()
