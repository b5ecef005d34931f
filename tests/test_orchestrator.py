from pathlib import Path
from types import SimpleNamespace
from unittest.mock import AsyncMock

import grpc
import pytest
import pytest_asyncio

from filevault.client.client import FileVaultClient
from filevault.client.orchestrator import (
    download_files,
    file_exists_on_server,
    list_remote,
    parse_names,
    upload_files,
)


@pytest.fixture
def client_dir(tmp_path) -> Path:
    path = tmp_path / "files_client"
    path.mkdir()
    return path


@pytest_asyncio.fixture
async def client(server_target):
    async with FileVaultClient(server_target, chunk_size=3) as client:
        yield client


class TestParseNames:
    def test_splits_and_trims(self):
        assert parse_names(" a.txt, b.txt ,,c ") == ["a.txt", "b.txt", "c"]

    def test_accepts_iterables(self):
        assert parse_names(["x", " ", "y "]) == ["x", "y"]


class TestUploadFiles:
    @pytest.mark.asyncio
    async def test_uploads_local_files(self, client, client_dir, temp_storage_dir):
        (client_dir / "a.txt").write_bytes(b"alpha")
        (client_dir / "b.txt").write_bytes(b"")

        result = await upload_files(client, "a.txt,b.txt", client_dir)

        assert result.done == ["a.txt", "b.txt"]
        assert (temp_storage_dir / "a.txt").read_bytes() == b"alpha"
        assert (temp_storage_dir / "b.txt").read_bytes() == b""

    @pytest.mark.asyncio
    async def test_skips_missing_local_file(self, client, client_dir):
        result = await upload_files(client, ["ghost.txt"], client_dir)

        assert result.skipped == ["ghost.txt"]
        assert result.done == []

    @pytest.mark.asyncio
    async def test_skips_file_already_on_server(
        self, client, client_dir, temp_storage_dir
    ):
        (temp_storage_dir / "dup.txt").write_bytes(b"remote")
        (client_dir / "dup.txt").write_bytes(b"local")

        result = await upload_files(client, ["dup.txt"], client_dir)

        assert result.skipped == ["dup.txt"]
        assert (temp_storage_dir / "dup.txt").read_bytes() == b"remote"

    @pytest.mark.asyncio
    async def test_failure_does_not_abort_batch(self, client_dir):
        (client_dir / "bad.txt").write_bytes(b"1")
        (client_dir / "good.txt").write_bytes(b"2")
        fake_client = AsyncMock()
        fake_client.list_files.return_value = []
        fake_client.upload.side_effect = [
            RuntimeError("stream broke"),
            SimpleNamespace(filename="good.txt", size=1),
        ]

        result = await upload_files(fake_client, ["bad.txt", "good.txt"], client_dir)

        assert result.failed == ["bad.txt"]
        assert result.done == ["good.txt"]


class TestDownloadFiles:
    @pytest.mark.asyncio
    async def test_downloads_remote_files(self, client, client_dir, temp_storage_dir):
        payload = bytes(range(50))
        (temp_storage_dir / "blob.bin").write_bytes(payload)

        result = await download_files(client, ["blob.bin"], client_dir)

        assert result.done == ["blob.bin"]
        assert (client_dir / "blob.bin").read_bytes() == payload

    @pytest.mark.asyncio
    async def test_skips_existing_local_file(
        self, client, client_dir, temp_storage_dir
    ):
        (temp_storage_dir / "here.txt").write_bytes(b"remote")
        (client_dir / "here.txt").write_bytes(b"local")

        result = await download_files(client, ["here.txt"], client_dir)

        assert result.skipped == ["here.txt"]
        assert (client_dir / "here.txt").read_bytes() == b"local"

    @pytest.mark.asyncio
    async def test_skips_file_missing_on_server(self, client, client_dir):
        result = await download_files(client, ["nope.txt"], client_dir)

        assert result.skipped == ["nope.txt"]
        assert not (client_dir / "nope.txt").exists()

    @pytest.mark.asyncio
    async def test_round_trip_through_client(self, client, client_dir, tmp_path):
        payload = b"round trip payload"
        (client_dir / "rt.txt").write_bytes(payload)
        await upload_files(client, ["rt.txt"], client_dir)

        out_dir = tmp_path / "out"
        result = await download_files(client, ["rt.txt"], out_dir)

        assert result.done == ["rt.txt"]
        assert (out_dir / "rt.txt").read_bytes() == payload


class TestFileVaultClient:
    @pytest.mark.asyncio
    async def test_failed_download_removes_partial_file(self, client, client_dir):
        dest = client_dir / "missing.bin"

        with pytest.raises(grpc.aio.AioRpcError) as exc_info:
            await client.download("missing.bin", dest)

        assert exc_info.value.code() == grpc.StatusCode.NOT_FOUND
        assert not dest.exists()


class TestListRemote:
    @pytest.mark.asyncio
    async def test_sorted_by_filename(self, client, temp_storage_dir):
        for name in ("c", "a", "b"):
            (temp_storage_dir / name).write_bytes(b"x")

        files = await list_remote(client)

        assert [info.filename for info in files] == ["a", "b", "c"]

    @pytest.mark.asyncio
    async def test_list_failure_counts_as_absent(self):
        fake_client = AsyncMock()
        fake_client.list_files.side_effect = RuntimeError("unavailable")

        assert await file_exists_on_server(fake_client, "any") is False
