from filevault.server.admission import AdmissionController, OperationClass
from filevault.server.config import Config
from filevault.server.server import FileVaultServer, run_server
from filevault.server.service import FileTransferService

__all__ = [
    "AdmissionController",
    "OperationClass",
    "Config",
    "FileVaultServer",
    "run_server",
    "FileTransferService",
]
