"""Client stub and server registration for the ``filevault.FileStorage`` service."""

import grpc

from filevault.protocol import (
    DOWNLOAD_METHOD,
    LIST_METHOD,
    SERVICE_NAME,
    UPLOAD_METHOD,
    DownloadRequest,
    DownloadResponse,
    ListRequest,
    ListResponse,
    UploadRequest,
    UploadResponse,
)


class FileStorageStub:
    def __init__(self, channel):
        self.UploadFile = channel.stream_unary(
            UPLOAD_METHOD,
            request_serializer=UploadRequest.SerializeToString,
            response_deserializer=UploadResponse.FromString,
        )
        self.DownloadFile = channel.unary_stream(
            DOWNLOAD_METHOD,
            request_serializer=DownloadRequest.SerializeToString,
            response_deserializer=DownloadResponse.FromString,
        )
        self.ListFiles = channel.unary_unary(
            LIST_METHOD,
            request_serializer=ListRequest.SerializeToString,
            response_deserializer=ListResponse.FromString,
        )


def add_file_storage_servicer(servicer, server) -> None:
    handlers = {
        "UploadFile": grpc.stream_unary_rpc_method_handler(
            servicer.UploadFile,
            request_deserializer=UploadRequest.FromString,
            response_serializer=UploadResponse.SerializeToString,
        ),
        "DownloadFile": grpc.unary_stream_rpc_method_handler(
            servicer.DownloadFile,
            request_deserializer=DownloadRequest.FromString,
            response_serializer=DownloadResponse.SerializeToString,
        ),
        "ListFiles": grpc.unary_unary_rpc_method_handler(
            servicer.ListFiles,
            request_deserializer=ListRequest.FromString,
            response_serializer=ListResponse.SerializeToString,
        ),
    }
    server.add_generic_rpc_handlers(
        (grpc.method_handlers_generic_handler(SERVICE_NAME, handlers),)
    )
