"""
Protobuf messages and method paths for the ``filevault.FileStorage`` service.

The schema mirrors ``proto/filevault.proto``. Message classes are built from a
``FileDescriptorProto`` at import time, so no generated ``_pb2`` modules are
needed to talk to the service.
"""

from google.protobuf import descriptor_pb2, descriptor_pool, message_factory

PACKAGE = "filevault"
SERVICE_NAME = f"{PACKAGE}.FileStorage"

UPLOAD_METHOD = f"/{SERVICE_NAME}/UploadFile"
DOWNLOAD_METHOD = f"/{SERVICE_NAME}/DownloadFile"
LIST_METHOD = f"/{SERVICE_NAME}/ListFiles"

_Field = descriptor_pb2.FieldDescriptorProto


def _scalar(name: str, number: int, field_type: int) -> dict:
    return {
        "name": name,
        "number": number,
        "type": field_type,
        "label": _Field.LABEL_OPTIONAL,
    }


def _repeated_message(name: str, number: int, message_name: str) -> dict:
    return {
        "name": name,
        "number": number,
        "type": _Field.TYPE_MESSAGE,
        "type_name": f".{PACKAGE}.{message_name}",
        "label": _Field.LABEL_REPEATED,
    }


_MESSAGE_FIELDS = {
    "UploadRequest": [
        _scalar("filename", 1, _Field.TYPE_STRING),
        _scalar("chunk", 2, _Field.TYPE_BYTES),
    ],
    "UploadResponse": [
        _scalar("filename", 1, _Field.TYPE_STRING),
        _scalar("size", 2, _Field.TYPE_UINT64),
    ],
    "DownloadRequest": [
        _scalar("filename", 1, _Field.TYPE_STRING),
    ],
    "DownloadResponse": [
        _scalar("chunk", 1, _Field.TYPE_BYTES),
    ],
    "ListRequest": [],
    "FileInfo": [
        _scalar("filename", 1, _Field.TYPE_STRING),
        _scalar("created_at", 2, _Field.TYPE_STRING),
        _scalar("updated_at", 3, _Field.TYPE_STRING),
    ],
    "ListResponse": [
        _repeated_message("files", 1, "FileInfo"),
    ],
}

# (method, request, response, client_streaming, server_streaming)
_METHODS = [
    ("UploadFile", "UploadRequest", "UploadResponse", True, False),
    ("DownloadFile", "DownloadRequest", "DownloadResponse", False, True),
    ("ListFiles", "ListRequest", "ListResponse", False, False),
]


def _build_file_descriptor() -> descriptor_pb2.FileDescriptorProto:
    file_proto = descriptor_pb2.FileDescriptorProto(
        name=f"{PACKAGE}.proto", package=PACKAGE, syntax="proto3"
    )
    for message_name, fields in _MESSAGE_FIELDS.items():
        message_proto = file_proto.message_type.add(name=message_name)
        for field in fields:
            message_proto.field.add(**field)

    service_proto = file_proto.service.add(name="FileStorage")
    for method_name, request, response, client_streaming, server_streaming in _METHODS:
        service_proto.method.add(
            name=method_name,
            input_type=f".{PACKAGE}.{request}",
            output_type=f".{PACKAGE}.{response}",
            client_streaming=client_streaming,
            server_streaming=server_streaming,
        )
    return file_proto


# Private pool; also served to clients through gRPC reflection.
POOL = descriptor_pool.DescriptorPool()
POOL.AddSerializedFile(_build_file_descriptor().SerializeToString())


def _message_class(message_name: str):
    descriptor = POOL.FindMessageTypeByName(f"{PACKAGE}.{message_name}")
    return message_factory.GetMessageClass(descriptor)


UploadRequest = _message_class("UploadRequest")
UploadResponse = _message_class("UploadResponse")
DownloadRequest = _message_class("DownloadRequest")
DownloadResponse = _message_class("DownloadResponse")
ListRequest = _message_class("ListRequest")
FileInfo = _message_class("FileInfo")
ListResponse = _message_class("ListResponse")
