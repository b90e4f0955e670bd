"""Argparse CLI: subcommand definitions and dispatch."""

import argparse
import os
import sys

from . import __version__, config
from .auth import TokenStore
from .client import DropboxClient
from .errors import AuthError, ErrorCode
from .models import GetRequest, UploadRequest
from .utils import format_size, setup_logging


def _make_client(require_token: bool = True) -> DropboxClient:
    creds = config.credentials_from_env()
    client = DropboxClient.from_credentials(creds, client_config=config.config_from_env())
    if client.is_authenticated or not require_token:
        return client

    stored = TokenStore().load()
    if stored is None:
        raise AuthError("Not authenticated. Run 'dropboxapi auth' first.")
    client.set_access_token(stored["access_token"], stored["access_token_secret"])
    return client


def _check(result):
    """Unpack a Result, exiting with the error code name on failure."""
    code, value = result
    if not code.is_success:
        print(f"Error: {code.name}", file=sys.stderr)
        sys.exit(1)
    return value


def authorize_interactive(client: DropboxClient):
    """Return a blocking callback that waits for the user to authorize."""
    def callback(token, secret):
        print(f"Request token: {token}")
        print(f"Request token secret: {secret}")
        print()
        print("Please visit the following URL in your browser to authorize:")
        print()
        print(f"  {client.authorize_url(token)}")
        print()
        input("Press Enter after authorization...")
    return callback


# ── Subcommand handlers ──────────────────────────────────────────

def cmd_auth(args):
    client = _make_client(require_token=False)
    if not client.is_authenticated:
        code = client.authenticate(authorize_interactive(client))
        if code != ErrorCode.SUCCESS:
            print(f"Error: {code.name}", file=sys.stderr)
            sys.exit(1)

    TokenStore().save({
        "access_token": client.get_access_token(),
        "access_token_secret": client.get_access_token_secret(),
        "uid": client.auth.uid,
    })
    print(f"Access token: {client.get_access_token()}")
    print(f"Access token secret: {client.get_access_token_secret()}")
    print("Authentication successful!")


def cmd_info(args):
    client = _make_client()
    info = _check(client.get_account_info())
    print(f"Name:    {info.display_name}")
    print(f"Email:   {info.email}")
    print(f"UID:     {info.uid}")
    print(f"Country: {info.country or 'N/A'}")
    print(f"Quota:   {format_size(info.quota.used)} / {format_size(info.quota.quota)}")


def cmd_ls(args):
    client = _make_client()
    md = _check(client.get_metadata(args.path, include_deleted=args.deleted))

    entries = md.contents if md.is_dir else [md]
    if not entries:
        print("(empty)")
        return

    for item in entries:
        kind = "d" if item.is_dir else "-"
        if item.is_deleted:
            kind = "x"
        size = "" if item.is_dir else format_size(item.size_bytes)
        print(f"{kind}  {size:>10s}  {item.modified:31s}  {item.name}")


def cmd_mkdir(args):
    client = _make_client()
    md = _check(client.create_folder(args.path))
    print(f"Created: {md.path}")


def cmd_put(args):
    local = os.path.abspath(args.local_path)
    if not os.path.isfile(local):
        print(f"Local file not found: {local}")
        sys.exit(1)

    remote = args.remote_path
    if remote.endswith("/"):
        remote = remote + os.path.basename(local)

    with open(local, "rb") as f:
        req = UploadRequest(remote, f.read(), overwrite=not args.no_overwrite)

    client = _make_client()
    md = _check(client.upload_file(req))
    print(f"Uploaded: {md.path} ({format_size(md.size_bytes)})")


def cmd_get(args):
    if (args.offset is None) != (args.length is None):
        print("--offset and --length must be used together", file=sys.stderr)
        sys.exit(2)
    req = GetRequest(args.remote_path, offset=args.offset, length=args.length)

    client = _make_client()
    resp = _check(client.get_file(req))

    if args.output in (None, "-"):
        sys.stdout.buffer.write(resp.data)
        sys.stdout.buffer.flush()
        return

    local = os.path.abspath(args.output)
    if os.path.isdir(local):
        local = os.path.join(local, resp.metadata.name)
    with open(local, "wb") as f:
        f.write(resp.data)
    print(f"Downloaded: {resp.metadata.path} -> {local} ({format_size(resp.data_length)})")


def cmd_cp(args):
    client = _make_client()
    md = _check(client.copy_file(args.src, args.dst))
    print(f"Copied: {args.src} -> {md.path}")


def cmd_mv(args):
    client = _make_client()
    md = _check(client.move_file(args.src, args.dst, replace=args.replace))
    print(f"Moved: {args.src} -> {md.path}")


def cmd_rm(args):
    client = _make_client()
    for path in args.paths:
        md = _check(client.delete_file(path))
        print(f"Deleted: {md.path}")


# ── Parser construction ──────────────────────────────────────────

def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="dropboxapi",
        description="Dropbox CLI tool (v1 REST API)",
    )
    parser.add_argument("-V", "--version", action="version", version=f"dropboxapi {__version__}")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")

    sub = parser.add_subparsers(dest="command", help="Available commands")

    # auth
    p = sub.add_parser("auth", help="Authenticate with Dropbox")
    p.set_defaults(func=cmd_auth)

    # info / whoami
    for name in ("info", "whoami"):
        p = sub.add_parser(name, help="Show account info")
        p.set_defaults(func=cmd_info)

    # ls / list
    for name in ("ls", "list"):
        p = sub.add_parser(name, help="List remote folder")
        p.add_argument("path", nargs="?", default="/", help="Remote path")
        p.add_argument("-d", "--deleted", action="store_true", help="Include deleted entries")
        p.set_defaults(func=cmd_ls)

    # mkdir
    p = sub.add_parser("mkdir", help="Create remote folder")
    p.add_argument("path", help="Remote folder path")
    p.set_defaults(func=cmd_mkdir)

    # put / upload
    for name in ("put", "upload"):
        p = sub.add_parser(name, help="Upload a file")
        p.add_argument("local_path", help="Local file path")
        p.add_argument("remote_path", help="Remote destination path (trailing / keeps the name)")
        p.add_argument("-n", "--no-overwrite", action="store_true",
                       help="Let the service rename the upload instead of replacing")
        p.set_defaults(func=cmd_put)

    # get / download
    for name in ("get", "download"):
        p = sub.add_parser(name, help="Download a file")
        p.add_argument("remote_path", help="Remote file path")
        p.add_argument("-o", "--output", default=None,
                       help="Local file or directory (default: stdout)")
        p.add_argument("--offset", type=int, default=None, help="First byte of the range")
        p.add_argument("--length", type=int, default=None, help="Number of bytes in the range")
        p.set_defaults(func=cmd_get)

    # cp / copy
    for name in ("cp", "copy"):
        p = sub.add_parser(name, help="Copy remote file or folder")
        p.add_argument("src", help="Source path")
        p.add_argument("dst", help="Destination path")
        p.set_defaults(func=cmd_cp)

    # mv / move
    for name in ("mv", "move"):
        p = sub.add_parser(name, help="Move/rename remote file or folder")
        p.add_argument("src", help="Source path")
        p.add_argument("dst", help="Destination path")
        p.add_argument("--replace", action="store_true",
                       help="Delete an existing destination first")
        p.set_defaults(func=cmd_mv)

    # rm / delete
    for name in ("rm", "delete"):
        p = sub.add_parser(name, help="Delete remote files or folders")
        p.add_argument("paths", nargs="+", help="Remote paths to delete")
        p.set_defaults(func=cmd_rm)

    return parser


def main():
    parser = build_parser()
    args = parser.parse_args()

    setup_logging(verbose=getattr(args, "verbose", False))

    if not args.command:
        parser.print_help()
        sys.exit(1)

    try:
        args.func(args)
    except KeyboardInterrupt:
        print("\nInterrupted.")
        sys.exit(130)
    except Exception as exc:
        print(f"Error: {exc}", file=sys.stderr)
        if getattr(args, "verbose", False):
            import traceback
            traceback.print_exc()
        sys.exit(1)
