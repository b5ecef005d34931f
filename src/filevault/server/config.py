import os
from dataclasses import dataclass, fields, replace
from pathlib import Path
from typing import Optional

GRPC_PORT = 50051
DEFAULT_LISTEN_ADDRESS = f"[::]:{GRPC_PORT}"
DEFAULT_STORAGE_DIR = Path("files") / "files_server"
DEFAULT_UPLOAD_LIMIT = 10
DEFAULT_DOWNLOAD_LIMIT = 10
DEFAULT_LIST_LIMIT = 100
DEFAULT_MAX_CHUNK_SIZE = 64 * 1024
DEFAULT_SHUTDOWN_GRACE_PERIOD = 10.0

ENV_PREFIX = "FILEVAULT_"

STORAGE_TYPES = ("local", "s3")


@dataclass(frozen=True)
class Config:
    listen_address: str = DEFAULT_LISTEN_ADDRESS
    storage_dir: Path = DEFAULT_STORAGE_DIR
    upload_limit: int = DEFAULT_UPLOAD_LIMIT
    download_limit: int = DEFAULT_DOWNLOAD_LIMIT
    list_limit: int = DEFAULT_LIST_LIMIT
    max_chunk_size: int = DEFAULT_MAX_CHUNK_SIZE
    shutdown_grace_period: float = DEFAULT_SHUTDOWN_GRACE_PERIOD
    storage: str = "local"
    s3_bucket: Optional[str] = None
    s3_region: str = "us-east-1"
    s3_prefix: str = "files"
    s3_endpoint: Optional[str] = None

    def __post_init__(self):
        for name in ("upload_limit", "download_limit", "list_limit", "max_chunk_size"):
            if getattr(self, name) <= 0:
                raise ValueError(f"{name} must be positive, got {getattr(self, name)}")
        if self.shutdown_grace_period < 0:
            raise ValueError("shutdown_grace_period cannot be negative")
        if self.storage not in STORAGE_TYPES:
            raise ValueError(f"Unknown storage type: {self.storage}")
        if self.storage == "s3" and not self.s3_bucket:
            raise ValueError("s3_bucket is required for S3 storage")

    @classmethod
    def from_env(cls, environ=None, **overrides) -> "Config":
        """Build a config from ``FILEVAULT_*`` variables.

        Keyword overrides that are not None win over the environment, which is
        how CLI flags are layered on top.
        """
        environ = os.environ if environ is None else environ
        values = {}
        for field in fields(cls):
            raw = environ.get(f"{ENV_PREFIX}{field.name.upper()}")
            if raw is not None:
                values[field.name] = _coerce(field.name, raw)
        values.update({k: v for k, v in overrides.items() if v is not None})
        return cls(**values)

    def with_overrides(self, **overrides) -> "Config":
        return replace(self, **{k: v for k, v in overrides.items() if v is not None})


_INT_FIELDS = {"upload_limit", "download_limit", "list_limit", "max_chunk_size"}


def _coerce(name: str, raw: str):
    try:
        if name in _INT_FIELDS:
            return int(raw)
        if name == "shutdown_grace_period":
            return float(raw)
    except ValueError:
        raise ValueError(
            f"Invalid value for {ENV_PREFIX}{name.upper()}: {raw!r}"
        ) from None
    if name == "storage_dir":
        return Path(raw).expanduser()
    return raw
