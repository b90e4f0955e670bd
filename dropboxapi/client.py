"""DropboxClient: session owner and result-code facade over DropboxAPI."""

import functools
import logging

import requests

from . import config
from .api import DropboxAPI, new_session
from .auth import Authenticator
from .errors import ConflictError, DropboxError, ErrorCode, NotFoundError
from .models import (
    AccountInfo,
    GetRequest,
    GetResponse,
    Metadata,
    Result,
    UploadRequest,
)
from .utils import normalize_path

log = logging.getLogger(__name__)


def _operation(func):
    """Run a remote operation and turn its outcome into a Result.

    Remote failures come back as Result(code, None); only local misuse
    (ValueError and friends) propagates.
    """
    @functools.wraps(func)
    def wrapper(self, *args, **kwargs):
        if not self.is_authenticated:
            log.warning("%s called before authentication", func.__name__)
            return Result(ErrorCode.AUTH_ERROR)
        try:
            return func(self, *args, **kwargs)
        except DropboxError as exc:
            log.warning("%s failed: %s", func.__name__, exc)
            return Result(exc.code)
    return wrapper


def _within(path: str, ancestor: str) -> bool:
    """True if path is ancestor itself or lies below it."""
    return path == ancestor or path.startswith(ancestor.rstrip("/") + "/")


class DropboxClient:
    """Client for a single Dropbox account session.

    Example:
        client = DropboxClient(key, secret)
        client.set_access_token(token, token_secret)
        code, md = client.create_folder("/testdir")
        if code == ErrorCode.SUCCESS:
            print(md.path)

    Every operation returns a Result(code, value). value is only set when
    code is SUCCESS or PARTIAL_CONTENT.
    """

    def __init__(self, consumer_key: str, consumer_secret: str,
                 client_config: config.ClientConfig = None,
                 session: requests.Session = None):
        self.config = client_config or config.ClientConfig()
        self.session = session or new_session(self.config.user_agent)
        self.auth = Authenticator(consumer_key, consumer_secret,
                                  session=self.session,
                                  client_config=self.config)
        self.api = DropboxAPI(self.auth, self.config, self.session)

    @classmethod
    def from_credentials(cls, credentials: config.Credentials,
                         client_config: config.ClientConfig = None,
                         session: requests.Session = None) -> "DropboxClient":
        client = cls(credentials.consumer_key, credentials.consumer_secret,
                     client_config=client_config, session=session)
        if credentials.has_access_token:
            client.set_access_token(credentials.access_token,
                                    credentials.access_token_secret)
        return client

    def close(self):
        self.session.close()

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        self.close()

    # ── Authentication ────────────────────────────────────────────

    @property
    def is_authenticated(self) -> bool:
        return self.auth.is_authenticated

    def authenticate(self, callback) -> ErrorCode:
        """Run the OAuth handshake.

        callback(token, secret) receives the request token pair and must
        block until the user has authorized it, e.g. by visiting
        authorize_url(token).
        """
        try:
            self.auth.authenticate(callback)
        except DropboxError as exc:
            log.warning("Authentication failed: %s", exc)
            return exc.code
        return ErrorCode.SUCCESS

    def authorize_url(self, request_token: str, callback_url: str = None) -> str:
        return self.auth.authorize_url(request_token, callback_url)

    def set_access_token(self, token: str, secret: str):
        """Install a stored access pair without a network call.

        Raises SessionError if this client already holds an access pair.
        """
        self.auth.set_access_token(token, secret)

    def get_access_token(self) -> str:
        return self.auth.access_token

    def get_access_token_secret(self) -> str:
        return self.auth.access_token_secret

    # ── Account ───────────────────────────────────────────────────

    @_operation
    def get_account_info(self) -> Result:
        return Result(ErrorCode.SUCCESS, AccountInfo.from_json(self.api.account_info()))

    # ── Metadata ──────────────────────────────────────────────────

    @_operation
    def get_metadata(self, path: str, list_contents: bool = True,
                     include_deleted: bool = False) -> Result:
        data = self.api.metadata(path, list_contents=list_contents,
                                 include_deleted=include_deleted)
        return Result(ErrorCode.SUCCESS, Metadata.from_json(data))

    # ── File operations ───────────────────────────────────────────

    @_operation
    def create_folder(self, path: str) -> Result:
        md = Metadata.from_json(self.api.create_folder(path))
        log.info("Created folder %s", md.path)
        return Result(ErrorCode.SUCCESS, md)

    @_operation
    def delete_file(self, path: str) -> Result:
        md = Metadata.from_json(self.api.delete(path))
        log.info("Deleted %s", md.path)
        return Result(ErrorCode.SUCCESS, md)

    @_operation
    def copy_file(self, from_path: str, to_path: str) -> Result:
        md = Metadata.from_json(self.api.copy(from_path, to_path))
        log.info("Copied %s -> %s", from_path, md.path)
        return Result(ErrorCode.SUCCESS, md)

    @_operation
    def move_file(self, from_path: str, to_path: str, replace: bool = None) -> Result:
        """Move from_path to to_path.

        An occupied destination gives CONFLICT unless replace (default:
        ClientConfig.replace_on_move) is set, in which case the existing
        entry is deleted and the move retried once. The destination is
        never deleted when both paths are the same, when one contains the
        other, or when the source does not exist; those keep CONFLICT.
        """
        if replace is None:
            replace = self.config.replace_on_move
        try:
            data = self.api.move(from_path, to_path)
        except ConflictError:
            if not replace or not self._replaceable(from_path, to_path):
                raise
            log.info("Replacing existing %s", to_path)
            self.api.delete(to_path)
            data = self.api.move(from_path, to_path)
        md = Metadata.from_json(data)
        log.info("Moved %s -> %s", from_path, md.path)
        return Result(ErrorCode.SUCCESS, md)

    def _replaceable(self, from_path: str, to_path: str) -> bool:
        src = normalize_path(from_path)
        dst = normalize_path(to_path)
        if _within(src, dst) or _within(dst, src):
            log.warning("Not replacing %s: overlaps source %s", dst, src)
            return False
        return self._exists(from_path) and self._exists(to_path)

    def _exists(self, path: str) -> bool:
        try:
            data = self.api.metadata(path, list_contents=False)
        except NotFoundError:
            return False
        return not data.get("is_deleted", False)

    # ── Upload / download ─────────────────────────────────────────

    @_operation
    def upload_file(self, request: UploadRequest) -> Result:
        md = Metadata.from_json(self.api.files_put(
            request.path, request.data,
            overwrite=request.overwrite, parent_rev=request.parent_rev,
        ))
        if md.path != request.path:
            log.info("Uploaded %s as %s (%d bytes)", request.path, md.path, md.size_bytes)
        else:
            log.info("Uploaded %s (%d bytes)", md.path, md.size_bytes)
        return Result(ErrorCode.SUCCESS, md)

    @_operation
    def get_file(self, request: GetRequest) -> Result:
        """Download a file, or the requested byte range of it.

        A full download yields SUCCESS, a ranged one PARTIAL_CONTENT. A
        range starting at or past the end of the file yields
        RANGE_NOT_SATISFIABLE; one running past the end is truncated.
        """
        status, body, meta = self.api.files_get(
            request.path, byte_range=request.range_header(), rev=request.rev,
        )
        md = Metadata.from_json(meta)
        if not request.has_range:
            return Result(ErrorCode.SUCCESS, GetResponse(body, md, status))

        if status != ErrorCode.PARTIAL_CONTENT:
            # Range header ignored, the whole file came back
            if request.offset >= len(body):
                return Result(ErrorCode.RANGE_NOT_SATISFIABLE)
            body = body[request.offset:request.offset + request.length]
        log.debug("Fetched %d bytes of %s at offset %d", len(body), md.path, request.offset)
        return Result(ErrorCode.PARTIAL_CONTENT, GetResponse(body, md, status))
