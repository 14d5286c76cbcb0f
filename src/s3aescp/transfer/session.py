"""Transfer sessions and direction dispatch.

A session is built once per invocation from the command line and run by
run_transfer(), which picks the local or remote path.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path

from s3aescp.transfer.download import download_and_decrypt
from s3aescp.transfer.local import decrypt_file, encrypt_file
from s3aescp.transfer.storage import ObjectStore, is_remote
from s3aescp.transfer.upload import upload_and_encrypt

logger = logging.getLogger(__name__)


class Direction(str, Enum):
    """What a session does."""

    ENCRYPT = "encrypt"  # local -> local
    DECRYPT = "decrypt"  # local -> local
    UPLOAD = "upload"  # local -> remote, encrypting
    DOWNLOAD = "download"  # remote -> local, decrypting

    @property
    def is_remote(self) -> bool:
        return self in (Direction.UPLOAD, Direction.DOWNLOAD)


@dataclass(frozen=True)
class TransferSession:
    """Everything one invocation needs to run its transfer."""

    source: str
    dest: str
    key: bytes = field(repr=False)
    chunk_size: int
    direction: Direction
    verbose: bool = False


@dataclass
class TransferResult:
    """Outcome of a session."""

    direction: Direction
    source: str
    dest: str
    bytes_written: int
    parts: int = 0


def resolve_direction(source: str, dest: str, encrypt: bool, decrypt: bool) -> Direction:
    """Decide what to do from the paths and the -encrypt/-decrypt flags.

    Raises:
        ValueError: If the combination is not supported.
    """
    if encrypt and decrypt:
        raise ValueError("Cannot do encryption and decryption at the same time")

    source_remote, dest_remote = is_remote(source), is_remote(dest)
    if source_remote and dest_remote:
        raise ValueError("Copying files from remote to remote is not supported")
    if source_remote or dest_remote:
        if encrypt or decrypt:
            raise ValueError(
                "-encrypt and -decrypt apply to local operations only; "
                "remote transfers are always encrypted"
            )
        return Direction.DOWNLOAD if source_remote else Direction.UPLOAD

    if encrypt:
        return Direction.ENCRYPT
    if decrypt:
        return Direction.DECRYPT
    raise ValueError("For local operations please specify -encrypt or -decrypt")


def run_transfer(
    session: TransferSession,
    store_factory: Callable[[], ObjectStore] | None = None,
) -> TransferResult:
    """Run a session to completion.

    Args:
        session: The session to run.
        store_factory: Builds the object store; only called for remote directions.

    Returns:
        TransferResult describing what was written.
    """
    logger.debug(
        f"Running {session.direction.value}: {session.source} -> {session.dest} "
        f"(chunk size {session.chunk_size})"
    )

    if session.direction is Direction.ENCRYPT:
        written = encrypt_file(
            Path(session.source), Path(session.dest), session.key, session.chunk_size
        )
        return TransferResult(session.direction, session.source, session.dest, written)

    if session.direction is Direction.DECRYPT:
        written = decrypt_file(
            Path(session.source), Path(session.dest), session.key, session.chunk_size
        )
        return TransferResult(session.direction, session.source, session.dest, written)

    if store_factory is None:
        raise ValueError(f"{session.direction.value} needs an object store")
    store = store_factory()

    if session.direction is Direction.UPLOAD:
        upload = upload_and_encrypt(
            Path(session.source), session.dest, session.key, store, session.chunk_size
        )
        return TransferResult(
            session.direction, session.source, upload.dest, upload.size, upload.parts
        )

    download = download_and_decrypt(
        session.source, Path(session.dest), session.key, store, session.chunk_size
    )
    return TransferResult(session.direction, download.source, session.dest, download.size)
