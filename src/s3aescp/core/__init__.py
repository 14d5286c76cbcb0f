"""Core module - Keystream cipher, configuration and error types."""

from s3aescp.core.config import Configuration, load_config
from s3aescp.core.crypto import (
    BLOCK_SIZE,
    IV_SIZE,
    KeystreamCipher,
    generate_iv,
    parse_key,
)
from s3aescp.core.types import (
    AbortError,
    AccessError,
    AlignmentError,
    ConfigError,
    NotFoundError,
    PartUploadError,
    RemoteQueryError,
    ShortReadError,
    ShortWriteError,
    TooSmallObjectError,
    TransferError,
    UploadState,
)

__all__ = [
    # Config
    "Configuration",
    "load_config",
    # Crypto
    "BLOCK_SIZE",
    "IV_SIZE",
    "KeystreamCipher",
    "generate_iv",
    "parse_key",
    # Types
    "AbortError",
    "AccessError",
    "AlignmentError",
    "ConfigError",
    "NotFoundError",
    "PartUploadError",
    "RemoteQueryError",
    "ShortReadError",
    "ShortWriteError",
    "TooSmallObjectError",
    "TransferError",
    "UploadState",
]
