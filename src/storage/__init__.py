"""
Storage module for transcript artifacts.

This module provides abstract and concrete implementations for storage
backends, supporting both local filesystem and S3-compatible cloud storage,
plus the artifact encoding shared by every backend.
"""

from .base import BaseStorage, StorageError
from .cloud import CloudStorage
from .local import LocalStorage
from .artifacts import (
    TRANSCRIPT_CONTENT_TYPE,
    build_transcript_artifact,
    decode_artifact,
    encode_artifact,
    transcript_storage_path,
)

__all__ = [
    "BaseStorage",
    "StorageError",
    "CloudStorage",
    "LocalStorage",
    "TRANSCRIPT_CONTENT_TYPE",
    "build_transcript_artifact",
    "decode_artifact",
    "encode_artifact",
    "transcript_storage_path",
]
