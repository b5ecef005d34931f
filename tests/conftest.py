import tempfile
from pathlib import Path

import pytest
import pytest_asyncio

from filevault.server.admission import AdmissionController
from filevault.server.config import Config
from filevault.server.server import FileVaultServer
from filevault.server.service import ChunkMessage, FileTransferService
from filevault.storage.local import LocalStorage


async def _stream(*messages: ChunkMessage):
    for message in messages:
        yield message


@pytest.fixture
def make_stream():
    return _stream


@pytest.fixture
def temp_storage_dir():
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir) / "files_server"


@pytest.fixture
def local_storage(temp_storage_dir):
    storage = LocalStorage(temp_storage_dir)
    storage.ensure_root()
    return storage


@pytest.fixture
def make_service(local_storage):
    def _make(
        storage=None,
        upload_limit: int = 10,
        download_limit: int = 10,
        list_limit: int = 10,
        max_chunk_size: int = 4,
    ) -> FileTransferService:
        admission = AdmissionController(upload_limit, download_limit, list_limit)
        return FileTransferService(
            storage if storage is not None else local_storage,
            admission,
            max_chunk_size,
        )

    return _make


@pytest_asyncio.fixture
async def running_server(temp_storage_dir):
    config = Config(
        listen_address="127.0.0.1:0",
        storage_dir=temp_storage_dir,
        max_chunk_size=4,
    )
    server = FileVaultServer(config)
    await server.start()
    yield server
    await server.stop(0)


@pytest.fixture
def server_target(running_server):
    return f"127.0.0.1:{running_server.port}"
