"""
Batch upload/download driven by a pre-check against the remote listing.

Every name is processed on its own: a skip or a failure is logged and the
batch moves on to the next name.
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable, Union

from loguru import logger

from filevault.client.client import FileVaultClient


@dataclass
class BatchResult:
    done: list[str] = field(default_factory=list)
    skipped: list[str] = field(default_factory=list)
    failed: list[str] = field(default_factory=list)


def parse_names(raw: Union[str, Iterable[str]]) -> list[str]:
    if isinstance(raw, str):
        raw = raw.split(",")
    return [name.strip() for name in raw if name.strip()]


async def file_exists_on_server(client: FileVaultClient, name: str) -> bool:
    try:
        files = await client.list_files()
    except Exception as e:
        logger.error(f"failed to list files on server: {e}")
        return False
    return any(info.filename == name for info in files)


async def upload_files(
    client: FileVaultClient, names: Iterable[str], base_dir: Path
) -> BatchResult:
    result = BatchResult()
    for name in parse_names(names):
        path = Path(base_dir) / name

        if not path.is_file():
            logger.warning(f"file {path} does not exist on client, skipping upload")
            result.skipped.append(name)
            continue

        if await file_exists_on_server(client, name):
            logger.warning(f"file {name} already exists on server, skipping upload")
            result.skipped.append(name)
            continue

        try:
            response = await client.upload(name, path)
        except Exception as e:
            logger.error(f"upload failed for file {name}: {e}")
            result.failed.append(name)
            continue

        logger.info(f"Uploaded: {response.filename} ({response.size} bytes)")
        result.done.append(name)
    return result


async def download_files(
    client: FileVaultClient, names: Iterable[str], base_dir: Path
) -> BatchResult:
    result = BatchResult()
    for name in parse_names(names):
        save_path = Path(base_dir) / name

        if save_path.exists():
            logger.warning(
                f"file {save_path} already exists, "
                "skipping download to avoid overwriting"
            )
            result.skipped.append(name)
            continue

        if not await file_exists_on_server(client, name):
            logger.warning(f"file {name} not found on the server, skipping download")
            result.skipped.append(name)
            continue

        try:
            save_path.parent.mkdir(parents=True, exist_ok=True)
            size = await client.download(name, save_path)
        except Exception as e:
            logger.error(f"download failed for file {name}: {e}")
            result.failed.append(name)
            continue

        logger.info(f"Downloaded: {name} ({size} bytes)")
        result.done.append(name)
    return result


async def list_remote(client: FileVaultClient) -> list:
    files = await client.list_files()
    return sorted(files, key=lambda info: info.filename)
