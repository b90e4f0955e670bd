"""OAuth1 authentication: request token, user authorization, access token."""

import json
import logging
import os
from urllib.parse import parse_qsl, urlencode

import requests
from requests_oauthlib import OAuth1

from . import config
from .errors import AuthError, SessionError, TransportError

log = logging.getLogger(__name__)


class TokenStore:
    """Persist and load the access token pair from disk."""

    def __init__(self, path: str = None):
        self.path = path or config.TOKEN_FILE

    def load(self) -> dict | None:
        if not os.path.exists(self.path):
            return None
        try:
            with open(self.path, "r") as f:
                data = json.load(f)
        except (json.JSONDecodeError, OSError) as exc:
            log.warning("Failed to load token: %s", exc)
            return None
        if not data.get("access_token") or not data.get("access_token_secret"):
            log.warning("Ignoring incomplete token file %s", self.path)
            return None
        return data

    def save(self, token_data: dict):
        os.makedirs(os.path.dirname(self.path), exist_ok=True)
        with open(self.path, "w") as f:
            json.dump(token_data, f, indent=2)
        os.chmod(self.path, 0o600)
        log.debug("Token saved to %s", self.path)

    def clear(self):
        if os.path.exists(self.path):
            os.remove(self.path)


class Authenticator:
    """Hold the OAuth1 credentials and run the three-legged handshake.

    The access pair is write-once: it is set either by authenticate() or
    by set_access_token(), and only read afterwards.
    """

    def __init__(self, consumer_key: str, consumer_secret: str,
                 session: requests.Session = None,
                 client_config: config.ClientConfig = None):
        if not consumer_key or not consumer_secret:
            raise AuthError("Consumer key and secret are required.")
        self.consumer_key = consumer_key
        self.consumer_secret = consumer_secret
        self.session = session or requests.Session()
        self.config = client_config or config.ClientConfig()
        self._token = ""
        self._token_secret = ""
        self.uid = None

    # ── Session state ─────────────────────────────────────────────

    @property
    def is_authenticated(self) -> bool:
        return bool(self._token and self._token_secret)

    @property
    def access_token(self) -> str:
        return self._token

    @property
    def access_token_secret(self) -> str:
        return self._token_secret

    def set_access_token(self, token: str, secret: str):
        """Install a previously obtained access pair. No network call.

        The pair is write-once: a second call, or a call after
        authenticate(), raises SessionError.
        """
        if not token or not secret:
            raise ValueError("Both access token and secret are required.")
        if self.is_authenticated:
            raise SessionError("Access token is already set for this session.")
        self._token = token
        self._token_secret = secret

    def signer(self) -> OAuth1:
        """OAuth1 auth object that signs requests with the access pair."""
        if not self.is_authenticated:
            raise AuthError("Not authenticated. Call authenticate() or set_access_token() first.")
        return self._oauth(self._token, self._token_secret)

    # ── Handshake ─────────────────────────────────────────────────

    def request_token(self) -> tuple[str, str]:
        """Obtain a temporary request token pair."""
        data = self._token_call(config.REQUEST_TOKEN_URL, self._oauth())
        log.debug("Obtained request token")
        return data["oauth_token"], data["oauth_token_secret"]

    def authorize_url(self, request_token: str, callback_url: str = None) -> str:
        params = {"oauth_token": request_token}
        if callback_url:
            params["oauth_callback"] = callback_url
        if self.config.locale:
            params["locale"] = self.config.locale
        return f"{config.AUTHORIZE_URL}?{urlencode(params)}"

    def exchange_request_token(self, request_token: str, request_secret: str) -> tuple[str, str]:
        """Trade an authorized request token for the permanent access pair."""
        data = self._token_call(
            config.ACCESS_TOKEN_URL, self._oauth(request_token, request_secret),
        )
        self.uid = data.get("uid")
        return data["oauth_token"], data["oauth_token_secret"]

    def authenticate(self, callback):
        """Run the full handshake.

        callback(token, secret) is called with the request token pair and
        must return only once the user has authorized it out of band.
        """
        if self.is_authenticated:
            raise SessionError("Access token is already set for this session.")
        token, secret = self.request_token()
        callback(token, secret)
        access_token, access_secret = self.exchange_request_token(token, secret)
        self.set_access_token(access_token, access_secret)
        log.info("Authenticated (uid=%s)", self.uid)

    # ── Internal ──────────────────────────────────────────────────

    def _oauth(self, token: str = None, secret: str = None) -> OAuth1:
        return OAuth1(
            self.consumer_key,
            client_secret=self.consumer_secret,
            resource_owner_key=token,
            resource_owner_secret=secret,
            signature_method=self.config.signature_method,
        )

    def _token_call(self, url: str, auth: OAuth1) -> dict:
        try:
            resp = self.session.post(url, auth=auth, timeout=self.config.timeout)
        except requests.RequestException as exc:
            raise TransportError(f"Token request to {url} failed: {exc}") from exc

        if resp.status_code != 200:
            raise AuthError(f"Token request rejected ({resp.status_code}): {resp.text}")

        data = dict(parse_qsl(resp.text))
        if "oauth_token" not in data or "oauth_token_secret" not in data:
            raise AuthError(f"Malformed token response: {resp.text}")
        return data
