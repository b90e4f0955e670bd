"""Request and result types for dropboxapi."""

from dataclasses import dataclass, field
from typing import Any, NamedTuple

from .errors import ErrorCode


@dataclass
class Metadata:
    """Descriptor of a remote entry as reported by the service.

    A deleted entry keeps the is_dir it had before deletion. size_bytes
    only describes content when the entry is a live file.
    """

    path: str = ""
    is_dir: bool = False
    is_deleted: bool = False
    size_bytes: int = 0
    size: str = ""
    rev: str = ""
    modified: str = ""
    client_mtime: str = ""
    mime_type: str = ""
    root: str = ""
    icon: str = ""
    thumb_exists: bool = False
    hash: str = ""
    contents: list["Metadata"] = field(default_factory=list)

    @classmethod
    def from_json(cls, data: dict) -> "Metadata":
        return cls(
            path=data.get("path", ""),
            is_dir=bool(data.get("is_dir", False)),
            is_deleted=bool(data.get("is_deleted", False)),
            size_bytes=int(data.get("bytes", 0)),
            size=data.get("size", ""),
            rev=data.get("rev", ""),
            modified=data.get("modified", ""),
            client_mtime=data.get("client_mtime", ""),
            mime_type=data.get("mime_type", ""),
            root=data.get("root", ""),
            icon=data.get("icon", ""),
            thumb_exists=bool(data.get("thumb_exists", False)),
            hash=data.get("hash", ""),
            contents=[cls.from_json(c) for c in data.get("contents", [])],
        )

    @property
    def name(self) -> str:
        return self.path.rstrip("/").rsplit("/", 1)[-1]


@dataclass(frozen=True)
class QuotaInfo:
    """Storage quota in bytes."""

    quota: int = 0
    normal: int = 0
    shared: int = 0

    @property
    def used(self) -> int:
        return self.normal + self.shared

    @property
    def free(self) -> int:
        return max(0, self.quota - self.used)


@dataclass(frozen=True)
class AccountInfo:
    display_name: str = ""
    email: str = ""
    uid: int = 0
    country: str = ""
    referral_link: str = ""
    quota: QuotaInfo = field(default_factory=QuotaInfo)

    @classmethod
    def from_json(cls, data: dict) -> "AccountInfo":
        q = data.get("quota_info", {})
        return cls(
            display_name=data.get("display_name", ""),
            email=data.get("email", ""),
            uid=int(data.get("uid", 0)),
            country=data.get("country", ""),
            referral_link=data.get("referral_link", ""),
            quota=QuotaInfo(
                quota=int(q.get("quota", 0)),
                normal=int(q.get("normal", 0)),
                shared=int(q.get("shared", 0)),
            ),
        )


@dataclass
class UploadRequest:
    """A single upload; overwrite=False lets the service auto-rename on conflict."""

    path: str
    data: bytes = b""
    overwrite: bool = True
    parent_rev: str | None = None

    def set_upload_data(self, data: bytes):
        self.data = bytes(data)

    def set_overwrite(self, overwrite: bool):
        self.overwrite = overwrite


@dataclass
class GetRequest:
    """A download, optionally limited to the byte range [offset, offset+length)."""

    path: str
    offset: int | None = None
    length: int | None = None
    rev: str | None = None

    def __post_init__(self):
        self._validate()

    def _validate(self):
        # offset and length are plain attributes; re-checked before use
        if (self.offset is None) != (self.length is None):
            raise ValueError("offset and length must be given together")
        if self.offset is not None:
            self.set_range(self.offset, self.length)

    def set_range(self, offset: int, length: int):
        if offset < 0:
            raise ValueError(f"Range offset must be >= 0, got {offset}")
        if length <= 0:
            raise ValueError(f"Range length must be > 0, got {length}")
        self.offset = offset
        self.length = length

    def clear_range(self):
        self.offset = None
        self.length = None

    @property
    def has_range(self) -> bool:
        return self.offset is not None or self.length is not None

    def range_header(self) -> str | None:
        if not self.has_range:
            return None
        self._validate()
        return f"bytes={self.offset}-{self.offset + self.length - 1}"


@dataclass
class GetResponse:
    data: bytes
    metadata: Metadata
    status: int = 200

    @property
    def data_length(self) -> int:
        return len(self.data)


class Result(NamedTuple):
    """(code, value) pair returned by every client operation.

    value is set exactly when code is a success code.
    """

    code: ErrorCode
    value: Any = None

    @property
    def ok(self) -> bool:
        return self.code.is_success
