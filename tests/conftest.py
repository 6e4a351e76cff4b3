import time

import jwt
import pytest

from fluidctl import config, constants


def make_token(exp_offset: float | None = 3600, **claims) -> str:
    """Signed JWT with ``exp`` at now + ``exp_offset`` (omitted when None)."""
    payload = {"sub": "auth0|user-1", **claims}
    if exp_offset is not None:
        payload["exp"] = int(time.time() + exp_offset)
    return jwt.encode(payload, "not-the-issuer-signing-key-0123456789", algorithm="HS256")


@pytest.fixture
def token_file(tmp_path, monkeypatch):
    """Point the token store at a path under tmp_path."""
    path = tmp_path / "home" / ".fluidstack" / "token"
    monkeypatch.setattr(constants, "TOKEN_PATH", path)
    return path


@pytest.fixture(autouse=True)
def isolated_config(tmp_path, monkeypatch):
    """Keep the user's config files and FLUIDCTL_* env out of every test."""
    monkeypatch.setattr(config, "GLOBAL_CONFIG_PATH", tmp_path / "no-config.toml")
    for name in ("FLUIDCTL_URL", "FLUIDCTL_FORMAT", "FLUIDCTL_TOKEN", "FLUIDCTL_PROJECT"):
        monkeypatch.delenv(name, raising=False)


@pytest.fixture(name="make_token")
def make_token_fixture():
    return make_token
