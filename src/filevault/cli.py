"""
FileVault CLI - Command-line interface for the filevault package.

Provides subcommands:
- filevault serve: Start the gRPC file server
- filevault upload: Upload comma-separated files from the client directory
- filevault download: Download comma-separated files into the client directory
- filevault list: List files stored on the server
- filevault version: Display version information
"""

import argparse
import asyncio
import os
import sys
from pathlib import Path

from filevault.client.client import DEFAULT_TARGET, FileVaultClient
from filevault.client.orchestrator import download_files, list_remote, upload_files
from filevault.log import configure_logging
from filevault.server.config import Config, DEFAULT_MAX_CHUNK_SIZE
from filevault.server.server import run_server

DEFAULT_CLIENT_DIR = Path("files") / "files_client"


def get_version() -> str:
    """Get the package version."""
    try:
        from importlib.metadata import version

        return version("filevault")
    except Exception:
        return "0.1.0"


def cmd_version(args):
    """Handle the 'version' subcommand."""
    print(f"filevault version {get_version()}")
    print(f"Python {sys.version}")
    return 0


def cmd_serve(args):
    """Handle the 'serve' subcommand."""
    try:
        config = Config.from_env(
            listen_address=args.listen,
            storage_dir=(
                Path(args.storage_dir).expanduser() if args.storage_dir else None
            ),
            upload_limit=args.upload_limit,
            download_limit=args.download_limit,
            list_limit=args.list_limit,
            max_chunk_size=args.max_chunk_size,
            shutdown_grace_period=args.grace_period,
            storage=args.storage,
            s3_bucket=args.s3_bucket,
            s3_region=args.s3_region,
            s3_prefix=args.s3_prefix,
            s3_endpoint=args.s3_endpoint,
        )
    except ValueError as e:
        print(f"Error: {e}")
        return 1

    print("=" * 50)
    print(f"FileVault v{get_version()}")
    print(f"gRPC Server:  {config.listen_address}")
    if config.storage == "s3":
        print(f"Storage: S3 (s3://{config.s3_bucket}/{config.s3_prefix})")
    else:
        print(f"Storage: Local ({config.storage_dir})")
    print("=" * 50)

    return run_server(config)


def _client_dir(args) -> Path:
    return Path(args.dir).expanduser()


async def _run_upload(args) -> int:
    async with FileVaultClient(args.target, chunk_size=args.chunk_size) as client:
        result = await upload_files(client, args.names, _client_dir(args))
    for name in result.done:
        print(f"Uploaded: {name}")
    return 1 if result.failed else 0


async def _run_download(args) -> int:
    base_dir = _client_dir(args)
    base_dir.mkdir(parents=True, exist_ok=True)
    async with FileVaultClient(args.target) as client:
        result = await download_files(client, args.names, base_dir)
    for name in result.done:
        print(f"Downloaded: {name}")
    return 1 if result.failed else 0


async def _run_list(args) -> int:
    async with FileVaultClient(args.target) as client:
        files = await list_remote(client)

    if not files:
        print("No files found on server.")
        return 0

    print("Files on server:")
    for info in files:
        print(
            f"Filename: {info.filename}, Created At: {info.created_at}, "
            f"Updated At: {info.updated_at}"
        )
    return 0


def cmd_upload(args):
    """Handle the 'upload' subcommand."""
    return asyncio.run(_run_upload(args))


def cmd_download(args):
    """Handle the 'download' subcommand."""
    return asyncio.run(_run_download(args))


def cmd_list(args):
    """Handle the 'list' subcommand."""
    try:
        return asyncio.run(_run_list(args))
    except Exception as e:
        print(f"Error: failed to list files: {e}")
        return 1


def _add_client_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--target",
        type=str,
        default=os.environ.get("FILEVAULT_TARGET", DEFAULT_TARGET),
        help=f"Server address (default: {DEFAULT_TARGET})",
    )
    parser.add_argument(
        "--dir",
        type=str,
        default=str(DEFAULT_CLIENT_DIR),
        help=f"Local directory for files (default: {DEFAULT_CLIENT_DIR})",
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="filevault",
        description="FileVault - streaming gRPC file storage",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "--log-level",
        type=str,
        default=os.environ.get("FILEVAULT_LOG_LEVEL", "INFO"),
        help="Log level (default: INFO)",
    )

    subparsers = parser.add_subparsers(
        title="commands",
        description="Available commands",
        dest="command",
        required=True,
    )

    # 'serve' subcommand
    serve_parser = subparsers.add_parser(
        "serve",
        help="Start the file server",
        description="Start the FileVault gRPC server",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  filevault serve                                 # Defaults (local storage)
  filevault serve --listen 0.0.0.0:6000           # Custom listen address
  filevault serve --storage-dir ./data            # Custom storage directory
  filevault serve --upload-limit 2 --list-limit 20
  filevault serve --storage=s3 --s3-bucket=mybucket
        """,
    )
    serve_parser.add_argument(
        "--listen",
        type=str,
        default=None,
        help="Listen address (default: [::]:50051)",
    )
    serve_parser.add_argument(
        "--storage-dir",
        type=str,
        default=None,
        help="Storage directory (default: files/files_server)",
    )
    serve_parser.add_argument(
        "--upload-limit",
        type=int,
        default=None,
        help="Concurrent uploads (default: 10)",
    )
    serve_parser.add_argument(
        "--download-limit",
        type=int,
        default=None,
        help="Concurrent downloads (default: 10)",
    )
    serve_parser.add_argument(
        "--list-limit",
        type=int,
        default=None,
        help="Concurrent list calls (default: 100)",
    )
    serve_parser.add_argument(
        "--max-chunk-size",
        type=int,
        default=None,
        help="Download chunk size in bytes (default: 65536)",
    )
    serve_parser.add_argument(
        "--grace-period",
        type=float,
        default=None,
        help="Shutdown grace period in seconds (default: 10)",
    )
    serve_parser.add_argument(
        "--storage",
        type=str,
        default=None,
        choices=["local", "s3"],
        help="Storage backend type (default: local)",
    )
    serve_parser.add_argument(
        "--s3-bucket",
        type=str,
        default=None,
        help="S3 bucket name (required when --storage=s3)",
    )
    serve_parser.add_argument(
        "--s3-region",
        type=str,
        default=None,
        help="S3 region (default: us-east-1)",
    )
    serve_parser.add_argument(
        "--s3-prefix",
        type=str,
        default=None,
        help="S3 key prefix (default: files)",
    )
    serve_parser.add_argument(
        "--s3-endpoint",
        type=str,
        default=None,
        help="S3 endpoint URL (for S3-compatible services like LocalStack)",
    )
    serve_parser.set_defaults(func=cmd_serve)

    # 'upload' subcommand
    upload_parser = subparsers.add_parser("upload", help="Upload files to the server")
    upload_parser.add_argument("names", type=str, help="Comma-separated file names")
    _add_client_arguments(upload_parser)
    upload_parser.add_argument(
        "--chunk-size",
        type=int,
        default=DEFAULT_MAX_CHUNK_SIZE,
        help=f"Upload chunk size in bytes (default: {DEFAULT_MAX_CHUNK_SIZE})",
    )
    upload_parser.set_defaults(func=cmd_upload)

    # 'download' subcommand
    download_parser = subparsers.add_parser(
        "download", help="Download files from the server"
    )
    download_parser.add_argument("names", type=str, help="Comma-separated file names")
    _add_client_arguments(download_parser)
    download_parser.set_defaults(func=cmd_download)

    # 'list' subcommand
    list_parser = subparsers.add_parser("list", help="List files on the server")
    _add_client_arguments(list_parser)
    list_parser.set_defaults(func=cmd_list)

    # 'version' subcommand
    version_parser = subparsers.add_parser(
        "version",
        help="Display version information",
        description="Display FileVault version and Python version",
    )
    version_parser.set_defaults(func=cmd_version)

    return parser


def main(argv=None):
    """Main CLI entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)
    configure_logging(args.log_level)
    sys.exit(args.func(args))


if __name__ == "__main__":
    main()
