"""Constants for the fluidctl CLI."""

import os
from pathlib import Path

# ── Exit codes ──────────────────────────────────────────────────────────────
EXIT_SUCCESS = 0
EXIT_GENERAL_ERROR = 1
EXIT_AUTH_FAILURE = 2
EXIT_PERMISSION_DENIED = 3
EXIT_NOT_FOUND = 4
EXIT_CONFLICT = 5
EXIT_NETWORK_ERROR = 10

# ── API defaults ────────────────────────────────────────────────────────────
DEFAULT_API_URL = "https://atlas.fluidstack.io"
API_PREFIX = "/api/v1alpha1"
DEFAULT_OUTPUT = "yaml"
OUTPUT_FORMATS = ("json", "yaml", "table")

# ── OAuth / Auth0 (public PKCE values, not secrets) ─────────────────────────
OAUTH_AUTHORIZE_URL = "https://fluidstack.us.auth0.com/authorize"
OAUTH_TOKEN_URL = "https://fluidstack.us.auth0.com/oauth/token"
OAUTH_CLIENT_ID = "diPhN35HH6jVXs615vsafkdIQM4Y5rF8"
OAUTH_AUDIENCE = "https://api.fluidstack.io"
OAUTH_SCOPES = ("openid", "profile", "email", "offline_access")

# ── OAuth callback ──────────────────────────────────────────────────────────
# Must match the redirect URI registered with the issuer exactly.
OAUTH_CALLBACK_HOST = "localhost"
OAUTH_CALLBACK_PORT = 5173
OAUTH_CALLBACK_PATH = "/"
OAUTH_CALLBACK_TIMEOUT = 300  # seconds

# ── File paths ──────────────────────────────────────────────────────────────
TOKEN_PATH = Path.home() / ".fluidstack" / "token"
CONFIG_DIR = Path(os.getenv("XDG_CONFIG_HOME", Path.home() / ".config")) / "fluidstack"
GLOBAL_CONFIG_PATH = CONFIG_DIR / "config.toml"
LOCAL_CONFIG_FILE = ".fluidctl.toml"
