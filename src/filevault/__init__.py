from filevault.errors import (
    FileVaultError,
    InvalidInput,
    NotFound,
    StorageFailure,
    TransferInterrupted,
)

__all__ = [
    "FileVaultError",
    "InvalidInput",
    "NotFound",
    "StorageFailure",
    "TransferInterrupted",
]
