from loguru import logger

from filevault import protocol
from filevault.errors import FileVaultError
from filevault.server.service import ChunkMessage, FileTransferService


class FileStorageServicer:
    """grpc.aio implementation of the FileStorage service."""

    def __init__(self, service: FileTransferService):
        self.service = service

    async def UploadFile(self, request_iterator, context):
        async def messages():
            async for request in request_iterator:
                yield ChunkMessage(filename=request.filename, chunk=request.chunk)

        try:
            result = await self.service.upload(messages())
        except FileVaultError as e:
            logger.warning(f"UploadFile failed: {e.message}")
            await context.abort(e.status_code, e.message)

        return protocol.UploadResponse(filename=result.filename, size=result.size)

    async def DownloadFile(self, request, context):
        async def send(chunk: bytes) -> None:
            await context.write(protocol.DownloadResponse(chunk=chunk))

        try:
            await self.service.download(request.filename, send)
        except FileVaultError as e:
            logger.warning(f"DownloadFile {request.filename!r} failed: {e.message}")
            await context.abort(e.status_code, e.message)

    async def ListFiles(self, request, context):
        try:
            files = await self.service.list_files()
        except FileVaultError as e:
            logger.warning(f"ListFiles failed: {e.message}")
            await context.abort(e.status_code, e.message)

        return protocol.ListResponse(
            files=[
                protocol.FileInfo(
                    filename=info.filename,
                    created_at=info.created_at,
                    updated_at=info.updated_at,
                )
                for info in files
            ]
        )
