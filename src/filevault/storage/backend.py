from dataclasses import dataclass
from datetime import datetime
from typing import Protocol, runtime_checkable


@dataclass
class FileRecord:
    name: str
    created_at: datetime
    updated_at: datetime
    size: int = 0


@runtime_checkable
class StorageBackend(Protocol):
    async def write_file(self, name: str, content: bytes) -> None: ...

    async def read_file(self, name: str) -> bytes: ...

    async def list_files(self) -> list[FileRecord]: ...
