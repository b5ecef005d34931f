import grpc


class FileVaultError(Exception):
    """Base class for errors surfaced to callers of the transfer protocol."""

    status_code = grpc.StatusCode.UNKNOWN

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class InvalidInput(FileVaultError):
    status_code = grpc.StatusCode.INVALID_ARGUMENT


class NotFound(FileVaultError):
    status_code = grpc.StatusCode.NOT_FOUND


class StorageFailure(FileVaultError):
    status_code = grpc.StatusCode.INTERNAL


class TransferInterrupted(FileVaultError):
    status_code = grpc.StatusCode.ABORTED
