"""Streaming transfer engine with encryption.

This package contains:
- run_pipeline: bounded-memory read/transform/write loop
- encrypt_file, decrypt_file: local transfers
- download_and_decrypt: remote range reads into a local file
- upload_and_encrypt, MultipartWriteCoordinator: single-shot or multipart uploads
- TransferSession, run_transfer: per-invocation dispatch
"""

from s3aescp.transfer.download import (
    DownloadResult,
    RemoteRangeReader,
    RemoteRangeSource,
    download_and_decrypt,
)
from s3aescp.transfer.files import LocalFileSink, LocalFileSource, atomic_write
from s3aescp.transfer.local import decrypt_file, encrypt_file
from s3aescp.transfer.pipeline import ChunkBuffers, read_exact, run_pipeline
from s3aescp.transfer.retry import retry_with_backoff
from s3aescp.transfer.session import (
    Direction,
    TransferResult,
    TransferSession,
    resolve_direction,
    run_transfer,
)
from s3aescp.transfer.storage import (
    CompletedPart,
    ObjectStore,
    RemoteObjectHandle,
    S3ObjectStore,
    create_object_store,
    is_remote,
    parse_remote_url,
)
from s3aescp.transfer.upload import (
    MAX_PART_ATTEMPTS,
    MultipartWriteCoordinator,
    UploadResult,
    upload_and_encrypt,
)

__all__ = [
    # Pipeline
    "ChunkBuffers",
    "LocalFileSink",
    "LocalFileSource",
    "atomic_write",
    "read_exact",
    "run_pipeline",
    # Local
    "decrypt_file",
    "encrypt_file",
    # Storage
    "CompletedPart",
    "ObjectStore",
    "RemoteObjectHandle",
    "S3ObjectStore",
    "create_object_store",
    "is_remote",
    "parse_remote_url",
    # Download
    "DownloadResult",
    "RemoteRangeReader",
    "RemoteRangeSource",
    "download_and_decrypt",
    # Upload
    "MAX_PART_ATTEMPTS",
    "MultipartWriteCoordinator",
    "UploadResult",
    "retry_with_backoff",
    "upload_and_encrypt",
    # Session
    "Direction",
    "TransferResult",
    "TransferSession",
    "resolve_direction",
    "run_transfer",
]
