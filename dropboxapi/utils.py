"""Formatting, path and logging utilities."""

import logging
import posixpath
import sys
from urllib.parse import quote

log = logging.getLogger(__name__)


def setup_logging(verbose: bool = False):
    """Configure root logger."""
    level = logging.DEBUG if verbose else logging.INFO
    fmt = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
    logging.basicConfig(level=level, format=fmt, stream=sys.stderr)
    logging.getLogger().setLevel(level)
    # requests_oauthlib logs every signature at DEBUG
    logging.getLogger("requests_oauthlib").setLevel(logging.WARNING)
    logging.getLogger("oauthlib").setLevel(logging.WARNING)


def format_size(size_bytes: int) -> str:
    """Human-readable file size."""
    for unit in ("B", "KB", "MB", "GB", "TB"):
        if abs(size_bytes) < 1024:
            return f"{size_bytes:.1f} {unit}"
        size_bytes /= 1024  # type: ignore[assignment]
    return f"{size_bytes:.1f} PB"


def normalize_path(path: str) -> str:
    """Absolute remote path with a single leading slash and no trailing one."""
    if path is None or not path.strip():
        raise ValueError("Remote path must not be empty")
    return posixpath.normpath("/" + path.strip().lstrip("/"))


def path_url(base: str, root: str, path: str) -> str:
    """Build <base>/<root><path> with the path percent-encoded."""
    return f"{base}/{root}{quote(normalize_path(path), safe='/')}"
