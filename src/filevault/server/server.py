import asyncio
import signal
from typing import Optional

import grpc
from grpc_reflection.v1alpha import reflection
from loguru import logger

from filevault import protocol
from filevault.rpc import add_file_storage_servicer
from filevault.server.admission import AdmissionController
from filevault.server.config import Config
from filevault.server.service import FileTransferService
from filevault.server.servicer import FileStorageServicer
from filevault.storage.backend import StorageBackend
from filevault.storage.local import LocalStorage
from filevault.storage.s3 import S3Storage


class StartupError(Exception):
    pass


def create_storage_backend(config: Config) -> StorageBackend:
    if config.storage == "s3":
        return S3Storage(
            bucket=config.s3_bucket,
            region=config.s3_region,
            prefix=config.s3_prefix,
            endpoint_url=config.s3_endpoint,
        )
    return LocalStorage(config.storage_dir)


class FileVaultServer:
    """Owns the gRPC server and the transfer service behind it."""

    def __init__(self, config: Config, storage: Optional[StorageBackend] = None):
        self.config = config
        if storage is None:
            storage = create_storage_backend(config)
        self.storage = storage
        self.admission = AdmissionController(
            upload_limit=config.upload_limit,
            download_limit=config.download_limit,
            list_limit=config.list_limit,
        )
        self.service = FileTransferService(
            self.storage, self.admission, config.max_chunk_size
        )
        self.grpc_server = None
        self.port: Optional[int] = None
        self._shutdown_task: Optional[asyncio.Task] = None

    async def _prepare_storage(self) -> None:
        if isinstance(self.storage, LocalStorage):
            try:
                self.storage.ensure_root()
            except OSError as e:
                raise StartupError(
                    f"cannot create storage directory {self.storage.root}: {e}"
                ) from e
            logger.info(f"Storing files in: {self.storage.root.absolute()}")
        elif isinstance(self.storage, S3Storage):
            await self.storage.validate_connection()

    async def start(self) -> None:
        await self._prepare_storage()

        self.grpc_server = grpc.aio.server()
        add_file_storage_servicer(FileStorageServicer(self.service), self.grpc_server)
        reflection.enable_server_reflection(
            (protocol.SERVICE_NAME, reflection.SERVICE_NAME),
            self.grpc_server,
            pool=protocol.POOL,
        )

        try:
            self.port = self.grpc_server.add_insecure_port(self.config.listen_address)
        except RuntimeError as e:
            raise StartupError(f"cannot bind {self.config.listen_address}: {e}") from e
        if not self.port:
            raise StartupError(f"cannot bind {self.config.listen_address}")

        await self.grpc_server.start()
        logger.info(f"FileVault gRPC server listening on {self.config.listen_address}")
        logger.info(
            f"Limits: upload={self.config.upload_limit} "
            f"download={self.config.download_limit} list={self.config.list_limit} "
            f"chunk={self.config.max_chunk_size}B"
        )

    async def wait_for_termination(self) -> None:
        if self.grpc_server:
            await self.grpc_server.wait_for_termination()

    async def stop(self, grace_period: Optional[float] = None) -> None:
        if grace_period is None:
            grace_period = self.config.shutdown_grace_period
        logger.info(f"Shutting down server (grace period: {grace_period}s)")
        if self.grpc_server:
            await self.grpc_server.stop(grace_period)
        logger.info("Server stopped")

    def request_shutdown(self, signum) -> None:
        logger.info(f"Received signal {signum}, shutting down...")
        if self._shutdown_task is None:
            self._shutdown_task = asyncio.create_task(self.stop())


async def run_server_async(config: Config, storage: Optional[StorageBackend] = None):
    server = FileVaultServer(config, storage)

    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        loop.add_signal_handler(sig, lambda s=sig: server.request_shutdown(s))

    await server.start()
    await server.wait_for_termination()
    if server._shutdown_task is not None:
        await server._shutdown_task


def run_server(config: Config, storage: Optional[StorageBackend] = None) -> int:
    """Run until SIGINT/SIGTERM; returns the process exit status."""
    try:
        asyncio.run(run_server_async(config, storage))
    except StartupError as e:
        logger.error(f"Failed to start server: {e}")
        return 1
    return 0
