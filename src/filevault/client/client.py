from pathlib import Path

import aiofiles
import grpc

from filevault import protocol
from filevault.rpc import FileStorageStub
from filevault.server.config import DEFAULT_MAX_CHUNK_SIZE, GRPC_PORT

DEFAULT_TARGET = f"localhost:{GRPC_PORT}"


class FileVaultClient:
    """Async client for the FileStorage service.

    Use as an async context manager; the channel is closed on exit.
    """

    def __init__(
        self, target: str = DEFAULT_TARGET, chunk_size: int = DEFAULT_MAX_CHUNK_SIZE
    ):
        self.target = target
        self.chunk_size = chunk_size
        self._channel = None
        self._stub = None

    async def __aenter__(self) -> "FileVaultClient":
        self._channel = grpc.aio.insecure_channel(self.target)
        self._stub = FileStorageStub(self._channel)
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        if self._channel is not None:
            await self._channel.close()
        self._channel = None
        self._stub = None

    async def list_files(self) -> list:
        response = await self._stub.ListFiles(protocol.ListRequest())
        return list(response.files)

    async def upload(self, name: str, path: Path):
        """Send ``path`` under ``name``: a header message, then its chunks."""

        async def requests():
            yield protocol.UploadRequest(filename=name)
            async with aiofiles.open(path, "rb") as f:
                while True:
                    chunk = await f.read(self.chunk_size)
                    if not chunk:
                        break
                    yield protocol.UploadRequest(chunk=chunk)

        return await self._stub.UploadFile(requests())

    async def download(self, name: str, dest: Path) -> int:
        """Write ``name`` to ``dest`` in arrival order; returns bytes written.

        A failed transfer removes the partially written ``dest``.
        """
        call = self._stub.DownloadFile(protocol.DownloadRequest(filename=name))
        written = 0
        completed = False
        try:
            async with aiofiles.open(dest, "wb") as f:
                async for response in call:
                    await f.write(response.chunk)
                    written += len(response.chunk)
            completed = True
        finally:
            if not completed:
                call.cancel()
                Path(dest).unlink(missing_ok=True)
        return written
