"""Tests for the interactive PKCE login flow."""

import stat
import urllib.parse
import webbrowser
from functools import partial
from unittest.mock import patch

import httpx
import pytest

from fluidctl.auth import browser as browser_mod
from fluidctl.auth import obtain_credential
from fluidctl.auth.browser import browser_login, build_authorize_url, exchange_code
from fluidctl.auth.pkce import PKCEExchange, code_challenge
from fluidctl.constants import OAUTH_CLIENT_ID, OAUTH_TOKEN_URL
from fluidctl.errors import AuthorizationDenied, PersistFailed, TokenExchangeFailed


class FakeBrowser:
    """Stands in for webbrowser.open: follows the redirect the issuer would send."""

    def __init__(self, query: str | None = "code=abc123", send_state: bool = True):
        self.query = query
        self.send_state = send_state
        self.opened_url = None
        self.callback_response = None

    def __call__(self, url: str) -> bool:
        self.opened_url = url
        if self.query is None:
            return True
        params = urllib.parse.parse_qs(urllib.parse.urlparse(url).query)
        port = urllib.parse.urlparse(params["redirect_uri"][0]).port
        query = self.query
        if self.send_state:
            query += "&state=" + params["state"][0]
        with httpx.Client(trust_env=False, timeout=5.0) as client:
            self.callback_response = client.get(f"http://127.0.0.1:{port}/?{query}")
        return True

    @property
    def params(self) -> dict:
        return urllib.parse.parse_qs(urllib.parse.urlparse(self.opened_url).query)


class TokenEndpoint:
    def __init__(self, status: int = 200, body=None):
        self.status = status
        self.body = {"access_token": "xyz789", "token_type": "Bearer"} if body is None else body
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if isinstance(self.body, str):
            return httpx.Response(self.status, text=self.body)
        return httpx.Response(self.status, json=self.body)

    def client(self) -> httpx.Client:
        return httpx.Client(transport=httpx.MockTransport(self))

    @property
    def form(self) -> dict:
        return dict(urllib.parse.parse_qsl(self.requests[-1].content.decode()))


class TestAuthorizeUrl:
    def test_carries_all_parameters(self):
        exchange = PKCEExchange(verifier="v" * 64, challenge=code_challenge("v" * 64), state="st")
        url = build_authorize_url(exchange, "http://localhost:5173")
        parsed = urllib.parse.urlparse(url)
        params = dict(urllib.parse.parse_qsl(parsed.query))

        assert f"{parsed.scheme}://{parsed.netloc}{parsed.path}" == (
            "https://fluidstack.us.auth0.com/authorize"
        )
        assert params == {
            "client_id": OAUTH_CLIENT_ID,
            "redirect_uri": "http://localhost:5173",
            "response_type": "code",
            "scope": "openid profile email offline_access",
            "state": "st",
            "code_challenge_method": "S256",
            "code_challenge": exchange.challenge,
            "audience": "https://api.fluidstack.io",
        }
        assert "code_verifier" not in params


class TestExchangeCode:
    def test_posts_pkce_proof(self):
        endpoint = TokenEndpoint()
        token = exchange_code("abc123", "verifier", "http://localhost:5173", endpoint.client())

        assert token == "xyz789"
        request = endpoint.requests[0]
        assert str(request.url) == OAUTH_TOKEN_URL
        assert endpoint.form == {
            "grant_type": "authorization_code",
            "code": "abc123",
            "redirect_uri": "http://localhost:5173",
            "client_id": OAUTH_CLIENT_ID,
            "code_verifier": "verifier",
        }

    def test_rejection_raises(self):
        endpoint = TokenEndpoint(403, {"error": "invalid_grant", "error_description": "bad code"})
        with pytest.raises(TokenExchangeFailed, match="bad code"):
            exchange_code("abc", "v", "http://localhost:5173", endpoint.client())

    def test_rejection_with_non_object_json_body(self):
        endpoint = TokenEndpoint(400, ["invalid_grant"])
        with pytest.raises(TokenExchangeFailed, match=r"invalid_grant.*\(400\)"):
            exchange_code("abc", "v", "http://localhost:5173", endpoint.client())

    def test_network_error_chained(self):
        def boom(request):
            raise httpx.ConnectError("refused", request=request)

        client = httpx.Client(transport=httpx.MockTransport(boom))
        with pytest.raises(TokenExchangeFailed) as info:
            exchange_code("abc", "v", "http://localhost:5173", client)
        assert isinstance(info.value.__cause__, httpx.ConnectError)

    def test_missing_access_token_raises(self):
        endpoint = TokenEndpoint(body={"token_type": "Bearer"})
        with pytest.raises(TokenExchangeFailed, match="access_token"):
            exchange_code("abc", "v", "http://localhost:5173", endpoint.client())

    @pytest.mark.parametrize("value", [123, {"raw": "xyz"}, ["xyz"], None])
    def test_non_string_access_token_raises(self, value):
        endpoint = TokenEndpoint(body={"access_token": value, "token_type": "Bearer"})
        with pytest.raises(TokenExchangeFailed, match="access_token"):
            exchange_code("abc", "v", "http://localhost:5173", endpoint.client())

    def test_non_json_body_raises(self):
        endpoint = TokenEndpoint(body="<html>oops</html>")
        with pytest.raises(TokenExchangeFailed, match="invalid JSON"):
            exchange_code("abc", "v", "http://localhost:5173", endpoint.client())


class TestBrowserLogin:
    def test_full_round_trip_persists_token(self, token_file):
        fake = FakeBrowser()
        endpoint = TokenEndpoint()

        token = browser_login(port=0, open_browser=fake, http_client=endpoint.client())

        assert token == "xyz789"
        assert fake.callback_response.status_code == 200
        assert token_file.read_bytes() == b"xyz789"
        assert stat.S_IMODE(token_file.stat().st_mode) == 0o600

        # The verifier revealed at exchange matches the challenge sent earlier
        verifier = endpoint.form["code_verifier"]
        assert code_challenge(verifier) == fake.params["code_challenge"][0]
        assert endpoint.form["redirect_uri"] == fake.params["redirect_uri"][0]
        assert endpoint.form["code"] == "abc123"

    def test_missing_code_denied_and_port_released(self, token_file):
        fake = FakeBrowser(query="error=access_denied")
        endpoint = TokenEndpoint()

        with pytest.raises(AuthorizationDenied, match="access_denied"):
            browser_login(port=0, open_browser=fake, http_client=endpoint.client())

        assert fake.callback_response.status_code == 400
        assert endpoint.requests == []
        assert not token_file.exists()

        # The same port binds again straight away
        port = urllib.parse.urlparse(fake.params["redirect_uri"][0]).port
        again = FakeBrowser()
        assert browser_login(
            port=port, open_browser=again, http_client=TokenEndpoint().client()
        ) == "xyz789"

    def test_state_mismatch_denied(self, token_file):
        fake = FakeBrowser(query="code=abc123&state=forged", send_state=False)
        endpoint = TokenEndpoint()

        with pytest.raises(AuthorizationDenied, match="state"):
            browser_login(port=0, open_browser=fake, http_client=endpoint.client())
        assert endpoint.requests == []

    def test_timeout_when_callback_never_arrives(self, token_file):
        fake = FakeBrowser(query=None)
        with pytest.raises(AuthorizationDenied, match="Timed out"):
            browser_login(port=0, timeout=0.2, open_browser=fake)

    def test_browser_launch_failure_not_fatal(self, token_file, capsys):
        fake = FakeBrowser()

        def broken_then_user_navigates(url):
            fake(url)
            raise webbrowser.Error("no runnable browser")

        token = browser_login(
            port=0, open_browser=broken_then_user_navigates, http_client=TokenEndpoint().client()
        )

        assert token == "xyz789"
        err = capsys.readouterr().err
        assert "could not launch a browser" in err
        assert "https://fluidstack.us.auth0.com/authorize?" in err

    def test_persist_failure_still_returns_token(self, token_file, capsys):
        with patch.object(browser_mod, "write_token", side_effect=PersistFailed("disk full")):
            token = browser_login(
                port=0, open_browser=FakeBrowser(), http_client=TokenEndpoint().client()
            )

        assert token == "xyz789"
        assert "disk full" in capsys.readouterr().err

    def test_exchange_failure_leaves_store_untouched(self, token_file):
        endpoint = TokenEndpoint(500, {"error": "server_error"})
        with pytest.raises(TokenExchangeFailed):
            browser_login(port=0, open_browser=FakeBrowser(), http_client=endpoint.client())
        assert not token_file.exists()


class TestFirstRunScenario:
    def test_no_store_to_persisted_token(self, token_file):
        endpoint = TokenEndpoint()
        login = partial(browser_login, port=0, open_browser=FakeBrowser(), http_client=endpoint.client())

        with patch("fluidctl.auth.manager.browser_login", login):
            assert obtain_credential() == "xyz789"

        assert token_file.read_text() == "xyz789"
        assert stat.S_IMODE(token_file.stat().st_mode) == 0o600
