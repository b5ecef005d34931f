import os
import uuid
from datetime import datetime, timezone
from pathlib import Path

import aiofiles
import aiofiles.os

from filevault.storage.backend import FileRecord

INCOMING_SUFFIX = ".incoming"


def _from_timestamp(value: float) -> datetime:
    return datetime.fromtimestamp(value, tz=timezone.utc)


def _record_from_stat(path: Path, stat: os.stat_result) -> FileRecord:
    created = getattr(stat, "st_birthtime", stat.st_mtime)
    return FileRecord(
        name=path.name,
        created_at=_from_timestamp(created),
        updated_at=_from_timestamp(stat.st_mtime),
        size=stat.st_size,
    )


class LocalStorage:
    """Flat directory of files, one file per stored name.

    Content is written to a temporary file in a sibling ``.<root>.incoming``
    directory and moved over the final name with ``os.replace``; readers never
    observe a truncated file. No stored name can collide with the staging
    directory.
    """

    def __init__(self, root: Path):
        self.root = Path(root)
        resolved = self.root.absolute()
        self.incoming_dir = resolved.parent / f".{resolved.name}{INCOMING_SUFFIX}"

    def ensure_root(self) -> None:
        self.root.mkdir(parents=True, exist_ok=True)

    def _get_file_path(self, name: str) -> Path:
        return self.root / name

    async def write_file(self, name: str, content: bytes) -> None:
        self.incoming_dir.mkdir(parents=True, exist_ok=True)
        tmp_path = self.incoming_dir / f"{name}.{uuid.uuid4().hex}.part"
        try:
            async with aiofiles.open(tmp_path, "wb") as f:
                await f.write(content)
            await aiofiles.os.replace(tmp_path, self._get_file_path(name))
        finally:
            tmp_path.unlink(missing_ok=True)

    async def read_file(self, name: str) -> bytes:
        async with aiofiles.open(self._get_file_path(name), "rb") as f:
            return await f.read()

    async def list_files(self) -> list[FileRecord]:
        if not self.root.exists():
            return []

        records = []
        for path in self.root.iterdir():
            if not path.is_file():
                continue
            try:
                stat = path.stat()
            except FileNotFoundError:
                # replaced or removed since iterdir()
                continue
            records.append(_record_from_stat(path, stat))
        return records
