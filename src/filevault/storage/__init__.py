from filevault.storage.backend import FileRecord, StorageBackend
from filevault.storage.local import LocalStorage
from filevault.storage.s3 import S3Storage

__all__ = ["FileRecord", "StorageBackend", "LocalStorage", "S3Storage"]
