"""
Transport-independent core of the file transfer protocol.

``FileTransferService`` implements Upload, Download and List on top of a
``StorageBackend``. Every operation holds an admission slot of its class for
its whole duration; the gRPC servicer only translates messages and errors.
"""

import asyncio
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import PurePosixPath
from typing import AsyncIterable, Awaitable, Callable, Iterator, Optional

from loguru import logger

from filevault.errors import InvalidInput, NotFound, StorageFailure, TransferInterrupted
from filevault.server.admission import AdmissionController, OperationClass
from filevault.storage.backend import FileRecord, StorageBackend

TIMESTAMP_FORMAT = "%Y-%m-%dT%H:%M:%SZ"


@dataclass
class ChunkMessage:
    filename: str = ""
    chunk: bytes = b""


@dataclass
class UploadResult:
    filename: str
    size: int


@dataclass
class FileInfo:
    filename: str
    created_at: str
    updated_at: str


def sanitize_filename(filename: str) -> str:
    """Reduce a client-supplied name to its base name.

    ``"../../etc/passwd"`` becomes ``"passwd"``. Names that reduce to nothing
    usable (empty, ``.`` or ``..``) are rejected.
    """
    if "\x00" in filename:
        raise InvalidInput("filename cannot contain NUL bytes")
    base = PurePosixPath(filename.replace("\\", "/")).name
    if base in ("", ".", ".."):
        raise InvalidInput(f"invalid filename: {filename!r}")
    return base


def split_chunks(data: bytes, max_chunk_size: int) -> Iterator[bytes]:
    for offset in range(0, len(data), max_chunk_size):
        yield data[offset : offset + max_chunk_size]


def format_timestamp(value: datetime) -> str:
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).strftime(TIMESTAMP_FORMAT)


def to_file_info(record: FileRecord) -> FileInfo:
    return FileInfo(
        filename=record.name,
        created_at=format_timestamp(record.created_at),
        updated_at=format_timestamp(record.updated_at),
    )


class _UploadSession:
    def __init__(self):
        self.filename: Optional[str] = None
        self.buffer = bytearray()

    def receive(self, message: ChunkMessage) -> None:
        if self.filename is None:
            if not message.filename:
                raise InvalidInput("filename cannot be empty")
            self.filename = sanitize_filename(message.filename)
        self.buffer.extend(message.chunk)


class FileTransferService:
    def __init__(
        self,
        storage: StorageBackend,
        admission: AdmissionController,
        max_chunk_size: int,
    ):
        if max_chunk_size <= 0:
            raise ValueError(f"max_chunk_size must be positive, got {max_chunk_size}")
        self.storage = storage
        self.admission = admission
        self.max_chunk_size = max_chunk_size

    async def upload(self, messages: AsyncIterable[ChunkMessage]) -> UploadResult:
        async with self.admission.slot(OperationClass.UPLOAD):
            session = _UploadSession()
            iterator = messages.__aiter__()
            while True:
                try:
                    message = await iterator.__anext__()
                except StopAsyncIteration:
                    break
                except asyncio.CancelledError:
                    logger.info(
                        f"Upload of {session.filename or '<unnamed>'} cancelled, "
                        f"discarding {len(session.buffer)} bytes"
                    )
                    raise
                except Exception as e:
                    raise TransferInterrupted(f"cannot receive chunk: {e}") from e
                session.receive(message)

            if session.filename is None:
                raise InvalidInput("filename cannot be empty")

            content = bytes(session.buffer)
            try:
                await self.storage.write_file(session.filename, content)
            except Exception as e:
                logger.error(f"Failed to save {session.filename}: {e}")
                raise StorageFailure(f"cannot save file: {e}") from e

            logger.info(f"Saved file: {session.filename} ({len(content)} bytes)")
            return UploadResult(filename=session.filename, size=len(content))

    async def download(
        self, filename: str, send: Callable[[bytes], Awaitable[None]]
    ) -> int:
        """Stream ``filename`` to ``send`` in chunks; returns the chunk count."""
        async with self.admission.slot(OperationClass.DOWNLOAD):
            if not filename:
                raise InvalidInput("filename cannot be empty")
            name = sanitize_filename(filename)

            try:
                data = await self.storage.read_file(name)
            except FileNotFoundError as e:
                raise NotFound(f"file not found: {name}") from e
            except Exception as e:
                logger.error(f"Failed to read {name}: {e}")
                raise StorageFailure(f"cannot read file: {e}") from e

            sent = 0
            for chunk in split_chunks(data, self.max_chunk_size):
                try:
                    await send(chunk)
                except asyncio.CancelledError:
                    logger.info(f"Download of {name} cancelled after {sent} chunks")
                    raise
                except Exception as e:
                    raise TransferInterrupted(f"cannot send chunk: {e}") from e
                sent += 1

            logger.info(f"Sent file: {name} ({len(data)} bytes, {sent} chunks)")
            return sent

    async def list_files(self) -> list[FileInfo]:
        async with self.admission.slot(OperationClass.LIST):
            try:
                records = await self.storage.list_files()
            except Exception as e:
                logger.error(f"Failed to list files: {e}")
                raise StorageFailure(f"cannot list files: {e}") from e
            return [to_file_info(record) for record in records]
