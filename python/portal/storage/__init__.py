"""Storage module for Supabase Storage operations.

Provides:
- StorageClient for interacting with Supabase Storage
- FakeStorageClient for tests and local runs without a project
- Path building for document uploads
"""

from portal.storage.client import (
    FakeStorageClient,
    StorageClient,
    StorageClientBase,
    StorageError,
)
from portal.storage.paths import build_document_path, sanitize_file_name

__all__ = [
    "StorageClient",
    "StorageClientBase",
    "StorageError",
    "FakeStorageClient",
    "build_document_path",
    "sanitize_file_name",
]
