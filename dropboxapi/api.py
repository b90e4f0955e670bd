"""Low-level API client wrapping the v1 REST endpoints."""

import json
import logging

import requests
from requests.adapters import HTTPAdapter

from . import config
from .auth import Authenticator
from .errors import (
    APIError,
    RateLimitedError,
    TransportError,
    error_for_status,
    retry,
)
from .utils import normalize_path, path_url

log = logging.getLogger(__name__)


def new_session(user_agent: str = config.USER_AGENT) -> requests.Session:
    """Session for a client that owns its connection pool."""
    session = requests.Session()
    session.headers["User-Agent"] = user_agent
    adapter = HTTPAdapter(max_retries=0)  # retries are ours to decide
    session.mount("https://", adapter)
    session.mount("http://", adapter)
    return session


class DropboxAPI:
    """Thin wrapper around the Dropbox v1 REST API.

    Every method returns the decoded response or raises a DropboxError
    subclass matching the HTTP status. The session is used as given;
    new_session() builds one with the client headers and adapters.
    """

    def __init__(self, authenticator: Authenticator,
                 client_config: config.ClientConfig = None,
                 session: requests.Session = None):
        self.auth = authenticator
        self.config = client_config or authenticator.config
        self.session = session or authenticator.session

    def _params(self, extra: dict = None) -> dict:
        p = {"locale": self.config.locale}
        if extra:
            p.update({k: v for k, v in extra.items() if v is not None})
        return p

    def _request(self, method: str, url: str, **kwargs) -> requests.Response:
        send = retry(
            max_retries=self.config.max_retries,
            backoff=self.config.retry_backoff,
            exceptions=(TransportError, RateLimitedError),
        )(self._send)
        return send(method, url, **kwargs)

    def _send(self, method: str, url: str, **kwargs) -> requests.Response:
        log.debug("%s %s", method, url)
        try:
            resp = self.session.request(
                method, url, auth=self.auth.signer(),
                timeout=self.config.timeout, **kwargs,
            )
        except requests.RequestException as exc:
            raise TransportError(f"{method} {url} failed: {exc}") from exc
        self._check(resp)
        return resp

    @staticmethod
    def _check(resp: requests.Response):
        if resp.status_code < 400:
            return
        try:
            body = resp.json()
        except ValueError:
            body = resp.text
        msg = body.get("error", "") if isinstance(body, dict) else body
        if isinstance(msg, dict):
            msg = json.dumps(msg)
        raise error_for_status(resp.status_code, msg)

    @staticmethod
    def _json(resp: requests.Response) -> dict:
        try:
            return resp.json()
        except ValueError as exc:
            raise APIError(resp.status_code, f"Malformed JSON response: {exc}") from exc

    # ── Account ───────────────────────────────────────────────────

    def account_info(self) -> dict:
        resp = self._request("GET", config.ACCOUNT_INFO_URL, params=self._params())
        return self._json(resp)

    # ── Metadata / listing ────────────────────────────────────────

    def metadata(self, path: str, list_contents: bool = True,
                 include_deleted: bool = False,
                 file_limit: int = config.MAX_LISTING_ENTRIES) -> dict:
        url = path_url(config.METADATA_URL, self.config.root, path)
        resp = self._request("GET", url, params=self._params({
            "list": str(list_contents).lower(),
            "include_deleted": str(include_deleted).lower(),
            "file_limit": file_limit,
        }))
        return self._json(resp)

    # ── File operations ───────────────────────────────────────────

    def create_folder(self, path: str) -> dict:
        return self._fileop(config.CREATE_FOLDER_URL, {"path": normalize_path(path)})

    def delete(self, path: str) -> dict:
        return self._fileop(config.DELETE_URL, {"path": normalize_path(path)})

    def copy(self, from_path: str, to_path: str) -> dict:
        return self._fileop(config.COPY_URL, {
            "from_path": normalize_path(from_path),
            "to_path": normalize_path(to_path),
        })

    def move(self, from_path: str, to_path: str) -> dict:
        return self._fileop(config.MOVE_URL, {
            "from_path": normalize_path(from_path),
            "to_path": normalize_path(to_path),
        })

    def _fileop(self, url: str, data: dict) -> dict:
        data = dict(data, root=self.config.root)
        resp = self._request("POST", url, data=self._params(data))
        return self._json(resp)

    # ── Upload / download ─────────────────────────────────────────

    def files_put(self, path: str, data: bytes, overwrite: bool = True,
                  parent_rev: str = None) -> dict:
        url = path_url(config.FILES_PUT_URL, self.config.root, path)
        resp = self._request("PUT", url, params=self._params({
            "overwrite": str(overwrite).lower(),
            "parent_rev": parent_rev,
        }), data=data, headers={
            "Content-Type": "application/octet-stream",
            "Content-Length": str(len(data)),
        })
        return self._json(resp)

    def files_get(self, path: str, byte_range: str = None,
                  rev: str = None) -> tuple[int, bytes, dict]:
        """Download a file.

        Returns (status, body, metadata) where metadata is decoded from the
        x-dropbox-metadata response header.
        """
        url = path_url(config.FILES_URL, self.config.root, path)
        headers = {"Range": byte_range} if byte_range else {}
        resp = self._request("GET", url, params=self._params({"rev": rev}),
                             headers=headers)
        raw = resp.headers.get(config.METADATA_HEADER)
        if not raw:
            raise APIError(resp.status_code, f"Missing {config.METADATA_HEADER} header")
        try:
            meta = json.loads(raw)
        except ValueError as exc:
            raise APIError(resp.status_code, f"Bad {config.METADATA_HEADER} header: {exc}") from exc
        return resp.status_code, resp.content, meta
