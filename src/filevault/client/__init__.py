from filevault.client.client import FileVaultClient
from filevault.client.orchestrator import (
    BatchResult,
    download_files,
    list_remote,
    parse_names,
    upload_files,
)

__all__ = [
    "FileVaultClient",
    "BatchResult",
    "download_files",
    "list_remote",
    "parse_names",
    "upload_files",
]
