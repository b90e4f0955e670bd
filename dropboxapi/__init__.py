"""Python client for the Dropbox v1 REST API."""

__version__ = "0.1.0"

from .client import DropboxClient
from .config import ClientConfig, Credentials
from .errors import ErrorCode
from .models import (
    AccountInfo,
    GetRequest,
    GetResponse,
    Metadata,
    QuotaInfo,
    Result,
    UploadRequest,
)

__all__ = [
    "AccountInfo",
    "ClientConfig",
    "Credentials",
    "DropboxClient",
    "ErrorCode",
    "GetRequest",
    "GetResponse",
    "Metadata",
    "QuotaInfo",
    "Result",
    "UploadRequest",
]
