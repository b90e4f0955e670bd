"""Constants, API endpoints, and default configuration."""

import os
import platform
from dataclasses import dataclass

from oauthlib.oauth1 import SIGNATURE_HMAC

# ── API hosts ─────────────────────────────────────────────────────
API_VERSION = 1
API_HOST = "https://api.dropbox.com"
CONTENT_HOST = "https://api-content.dropbox.com"
WEB_HOST = "https://www.dropbox.com"

# ── OAuth endpoints ───────────────────────────────────────────────
REQUEST_TOKEN_URL = f"{API_HOST}/{API_VERSION}/oauth/request_token"
ACCESS_TOKEN_URL = f"{API_HOST}/{API_VERSION}/oauth/access_token"
AUTHORIZE_URL = f"{WEB_HOST}/{API_VERSION}/oauth/authorize"

# ── REST endpoints ────────────────────────────────────────────────
ACCOUNT_INFO_URL = f"{API_HOST}/{API_VERSION}/account/info"
METADATA_URL = f"{API_HOST}/{API_VERSION}/metadata"
CREATE_FOLDER_URL = f"{API_HOST}/{API_VERSION}/fileops/create_folder"
DELETE_URL = f"{API_HOST}/{API_VERSION}/fileops/delete"
COPY_URL = f"{API_HOST}/{API_VERSION}/fileops/copy"
MOVE_URL = f"{API_HOST}/{API_VERSION}/fileops/move"
FILES_URL = f"{CONTENT_HOST}/{API_VERSION}/files"
FILES_PUT_URL = f"{CONTENT_HOST}/{API_VERSION}/files_put"

# Response header carrying the JSON metadata of a downloaded file
METADATA_HEADER = "x-dropbox-metadata"

# ── Request defaults ──────────────────────────────────────────────
DEFAULT_ROOT = "dropbox"     # "sandbox" for app-folder access
DEFAULT_LOCALE = "en"
REQUEST_TIMEOUT = 60         # seconds
MAX_LISTING_ENTRIES = 10000  # service refuses larger folder listings

# ── Retry defaults ────────────────────────────────────────────────
MAX_RETRIES = 1      # a single attempt; callers opt in to retries
RETRY_BACKOFF = 2    # seconds, multiplied by attempt number

# ── Environment variables (read by the CLI only) ─────────────────
ENV_API_KEY = "DROPBOX_API_KEY"
ENV_API_SECRET = "DROPBOX_API_SECRET"
ENV_AUTH_TOKEN = "DROPBOX_AUTH_TOKEN"
ENV_AUTH_TOKEN_SECRET = "DROPBOX_AUTH_TOKEN_SECRET"
ENV_ROOT = "DROPBOX_ROOT"

# ── Paths ─────────────────────────────────────────────────────────
if platform.system() == "Darwin":
    _config_home = os.path.join(os.path.expanduser("~"), "Library", "Application Support")
else:
    _config_home = os.environ.get("XDG_CONFIG_HOME", os.path.join(os.path.expanduser("~"), ".config"))

CONFIG_DIR = os.path.join(_config_home, "dropboxapi")
TOKEN_FILE = os.path.join(CONFIG_DIR, "token.json")

# ── User-Agent ────────────────────────────────────────────────────
USER_AGENT = "dropboxapi-python"


@dataclass
class ClientConfig:
    """Per-client settings, passed explicitly at construction."""

    root: str = DEFAULT_ROOT
    locale: str = DEFAULT_LOCALE
    timeout: float = REQUEST_TIMEOUT
    max_retries: int = MAX_RETRIES
    retry_backoff: float = RETRY_BACKOFF
    signature_method: str = SIGNATURE_HMAC
    replace_on_move: bool = False
    user_agent: str = USER_AGENT


@dataclass(frozen=True)
class Credentials:
    """OAuth1 consumer pair plus an optional pre-obtained access pair."""

    consumer_key: str
    consumer_secret: str
    access_token: str | None = None
    access_token_secret: str | None = None

    @property
    def has_access_token(self) -> bool:
        return bool(self.access_token and self.access_token_secret)


def credentials_from_env(environ=None) -> Credentials:
    """Build Credentials from DROPBOX_* environment variables."""
    from .errors import ConfigError

    env = os.environ if environ is None else environ
    key = env.get(ENV_API_KEY)
    secret = env.get(ENV_API_SECRET)
    if not key or not secret:
        raise ConfigError(
            f"{ENV_API_KEY} and {ENV_API_SECRET} must be set."
        )
    return Credentials(
        consumer_key=key,
        consumer_secret=secret,
        access_token=env.get(ENV_AUTH_TOKEN) or None,
        access_token_secret=env.get(ENV_AUTH_TOKEN_SECRET) or None,
    )


def config_from_env(environ=None) -> ClientConfig:
    env = os.environ if environ is None else environ
    return ClientConfig(root=env.get(ENV_ROOT) or DEFAULT_ROOT)
