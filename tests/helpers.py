"""In-memory stand-in for the Dropbox v1 service, used as a requests session."""

import json
import posixpath
from unittest.mock import MagicMock
from urllib.parse import parse_qsl, unquote, urlencode

from dropboxapi import config

TEST_DIR = "/testdir"
SIZE = 1 << 20


class FakeResponse:
    def __init__(self, status_code=200, body=None, content=b"", headers=None, text=None):
        self.status_code = status_code
        self._body = body
        self.content = content
        self.headers = headers or {}
        if text is None:
            text = json.dumps(body) if body is not None else ""
        self.text = text

    def json(self):
        if self._body is None:
            raise ValueError("No JSON object could be decoded")
        return self._body


def json_resp(data, status_code=200):
    """MagicMock response in the shape requests returns."""
    resp = MagicMock()
    resp.status_code = status_code
    resp.json.return_value = data
    resp.text = json.dumps(data)
    resp.headers = {}
    return resp


class FakeDropboxSession:
    """Minimal Dropbox service speaking through the requests.Session interface.

    Implements the OAuth token endpoints, account/info, metadata, fileops
    and files/files_put with the status codes the real service uses.
    """

    REQUEST_TOKEN = "req-token"
    REQUEST_SECRET = "req-secret"
    ACCESS_TOKEN = "acc-token"
    ACCESS_SECRET = "acc-secret"
    UID = 12345

    def __init__(self, root=config.DEFAULT_ROOT, honor_range=True):
        self.root = root
        self.honor_range = honor_range
        self.headers = {}
        self.calls = []
        self.authorized = set()
        self.reject_token_requests = False
        self._rev = 0
        self.entries = {"/": self._entry("/", is_dir=True)}
        self.account = {
            "display_name": "Test User",
            "email": "test@example.com",
            "uid": self.UID,
            "country": "US",
            "referral_link": "https://db.tt/ref",
            "quota_info": {"quota": 2 * 1024 ** 3, "normal": 1024 ** 2, "shared": 0},
        }

    # ── requests.Session surface ──────────────────────────────────

    def mount(self, prefix, adapter):
        pass

    def close(self):
        pass

    def post(self, url, auth=None, timeout=None, **kwargs):
        self.calls.append(("POST", url))
        if self.reject_token_requests:
            return FakeResponse(403, text="Invalid consumer.")
        if url == config.REQUEST_TOKEN_URL:
            return FakeResponse(text=urlencode({
                "oauth_token_secret": self.REQUEST_SECRET,
                "oauth_token": self.REQUEST_TOKEN,
            }))
        if url == config.ACCESS_TOKEN_URL:
            if auth.client.resource_owner_key not in self.authorized:
                return FakeResponse(401, text="Request token not authorized.")
            return FakeResponse(text=urlencode({
                "oauth_token_secret": self.ACCESS_SECRET,
                "oauth_token": self.ACCESS_TOKEN,
                "uid": self.UID,
            }))
        return FakeResponse(404, body={"error": "Unknown endpoint"})

    def request(self, method, url, auth=None, timeout=None, params=None,
                data=None, headers=None):
        self.calls.append((method, url))
        if auth is None or auth.client.resource_owner_key != self.ACCESS_TOKEN:
            return FakeResponse(401, body={"error": "Invalid or expired token."})

        params = params or {}
        headers = headers or {}
        if url == config.ACCOUNT_INFO_URL:
            return FakeResponse(body=self.account)
        if url.startswith(config.FILES_PUT_URL + "/"):
            return self._files_put(self._path(url, config.FILES_PUT_URL), data, params)
        if url.startswith(config.FILES_URL + "/"):
            return self._files_get(self._path(url, config.FILES_URL), headers)
        if url.startswith(config.METADATA_URL + "/"):
            return self._metadata(self._path(url, config.METADATA_URL), params)

        form = dict(data) if isinstance(data, dict) else dict(parse_qsl(data or ""))
        if form.get("root") != self.root:
            return FakeResponse(400, body={"error": "Invalid root"})
        if url == config.CREATE_FOLDER_URL:
            return self._create_folder(form["path"])
        if url == config.DELETE_URL:
            return self._delete(form["path"])
        if url == config.COPY_URL:
            return self._copy(form["from_path"], form["to_path"], move=False)
        if url == config.MOVE_URL:
            return self._copy(form["from_path"], form["to_path"], move=True)
        return FakeResponse(404, body={"error": "Unknown endpoint"})

    # ── Test controls ─────────────────────────────────────────────

    def authorize(self, token):
        self.authorized.add(token)

    def live(self, path):
        entry = self.entries.get(path)
        return entry if entry is not None and not entry["is_deleted"] else None

    # ── Endpoint behaviour ────────────────────────────────────────

    def _path(self, url, base):
        prefix = f"{base}/{self.root}"
        return unquote(url[len(prefix):]) or "/"

    def _entry(self, path, is_dir=False, data=b""):
        self._rev += 1
        return {"path": path, "is_dir": is_dir, "is_deleted": False,
                "data": data, "rev": f"{self._rev:x}"}

    def _md(self, entry):
        size = len(entry["data"])
        md = {
            "path": entry["path"],
            "is_dir": entry["is_dir"],
            "bytes": 0 if entry["is_dir"] else size,
            "size": f"{size} bytes",
            "rev": entry["rev"],
            "root": self.root,
            "modified": "Tue, 19 Jul 2011 21:55:38 +0000",
            "thumb_exists": False,
            "icon": "folder" if entry["is_dir"] else "page_white",
        }
        if entry["is_deleted"]:
            md["is_deleted"] = True
        if not entry["is_dir"]:
            md["mime_type"] = "application/octet-stream"
        return md

    def _subtree(self, path):
        prefix = path.rstrip("/") + "/"
        return [p for p in self.entries if p == path or p.startswith(prefix)]

    def _metadata(self, path, params):
        entry = self.entries.get(path)
        include_deleted = params.get("include_deleted") == "true"
        if entry is None or (entry["is_deleted"] and not include_deleted):
            return FakeResponse(404, body={"error": f"Path '{path}' not found"})
        md = self._md(entry)
        if entry["is_dir"] and params.get("list") == "true":
            md["hash"] = f"h{self._rev}"
            md["contents"] = [
                self._md(e) for p, e in sorted(self.entries.items())
                if p != path and posixpath.dirname(p) == path
                and (include_deleted or not e["is_deleted"])
            ]
        return FakeResponse(body=md)

    def _create_folder(self, path):
        if self.live(path):
            return FakeResponse(403, body={"error": f" at path '{path}' already exists"})
        self.entries[path] = self._entry(path, is_dir=True)
        return FakeResponse(body=self._md(self.entries[path]))

    def _delete(self, path):
        if not self.live(path):
            return FakeResponse(404, body={"error": f"Path '{path}' not found"})
        for p in self._subtree(path):
            self.entries[p]["is_deleted"] = True
        return FakeResponse(body=self._md(self.entries[path]))

    def _copy(self, src, dst, move):
        if not self.live(src):
            return FakeResponse(404, body={"error": f"Path '{src}' not found"})
        if self.live(dst):
            return FakeResponse(403, body={"error": f"A file already exists at '{dst}'"})
        for p in self._subtree(src):
            entry = self.entries[p]
            if entry["is_deleted"]:
                continue
            new_path = dst + p[len(src):]
            self.entries[new_path] = self._entry(new_path, entry["is_dir"], entry["data"])
            if move:
                entry["is_deleted"] = True
        return FakeResponse(body=self._md(self.entries[dst]))

    def _files_put(self, path, data, params):
        existing = self.live(path)
        if existing is not None and (params.get("overwrite") == "false" or existing["is_dir"]):
            path = self._free_name(path)
        self.entries[path] = self._entry(path, data=bytes(data))
        return FakeResponse(body=self._md(self.entries[path]))

    def _free_name(self, path):
        base, ext = posixpath.splitext(path)
        n = 1
        while self.live(f"{base} ({n}){ext}"):
            n += 1
        return f"{base} ({n}){ext}"

    def _files_get(self, path, headers):
        entry = self.live(path)
        if entry is None or entry["is_dir"]:
            return FakeResponse(404, body={"error": f"File '{path}' not found"})
        meta = {config.METADATA_HEADER: json.dumps(self._md(entry))}
        content = entry["data"]
        byte_range = headers.get("Range")
        if not byte_range or not self.honor_range:
            return FakeResponse(content=content, headers=meta)

        start, end = byte_range[len("bytes="):].split("-")
        start, end = int(start), int(end)
        if start >= len(content):
            return FakeResponse(416, body={"error": "Requested range not satisfiable"})
        return FakeResponse(206, content=content[start:end + 1], headers=meta)
