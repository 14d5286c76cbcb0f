"""Download with decryption from the object store.

This module provides:
- RemoteRangeReader: size queries and exact byte-range reads
- RemoteRangeSource: pipeline source issuing one range read per chunk
- download_and_decrypt: stream a remote artifact into a local plaintext file
"""

from __future__ import annotations

import contextlib
import logging
from dataclasses import dataclass
from pathlib import Path

from s3aescp.core.crypto import IV_SIZE, KeystreamCipher
from s3aescp.core.types import TooSmallObjectError
from s3aescp.transfer.files import LocalFileSink, atomic_write
from s3aescp.transfer.pipeline import ChunkBuffers, read_exact, run_pipeline
from s3aescp.transfer.storage import ObjectStore, RemoteObjectHandle, parse_remote_url

logger = logging.getLogger(__name__)


@dataclass
class DownloadResult:
    """Result of a download."""

    source: str
    local_path: Path
    object_size: int
    size: int


class RemoteRangeReader:
    """Reads a remote object incrementally without materializing it."""

    def __init__(self, store: ObjectStore, handle: RemoteObjectHandle) -> None:
        self._store = store
        self._handle = handle

    @property
    def handle(self) -> RemoteObjectHandle:
        return self._handle

    def head_size(self) -> int:
        """Return the total object size (one metadata round trip)."""
        return self._store.head_size(self._handle)

    def read_range(self, start: int, end: int, view: memoryview) -> None:
        """Read bytes start..end (inclusive) into `view`.

        Raises:
            ValueError: If the range and buffer lengths disagree.
            ShortReadError: If the response carries fewer bytes.
        """
        if end - start + 1 != len(view):
            raise ValueError(f"Range {start}-{end} does not match a {len(view)}-byte buffer")
        body = self._store.get_range(self._handle, start, end)
        with contextlib.closing(body):
            read_exact(body, view, f"{self._handle.url} range {start}-{end}")


class RemoteRangeSource:
    """Pipeline source reading consecutive ranges of a remote object."""

    def __init__(self, reader: RemoteRangeReader, offset: int) -> None:
        self._reader = reader
        self._offset = offset

    @property
    def offset(self) -> int:
        return self._offset

    def read_chunk(self, view: memoryview) -> None:
        if not len(view):
            return
        self._reader.read_range(self._offset, self._offset + len(view) - 1, view)
        self._offset += len(view)


def download_and_decrypt(
    source_url: str,
    dest: Path,
    key: bytes,
    store: ObjectStore,
    chunk_size: int,
) -> DownloadResult:
    """Download an encrypted artifact and write the plaintext to `dest`.

    The first IV_SIZE bytes of the object are fetched with their own range
    request and seed the keystream; the rest is fetched and decrypted one
    chunk at a time. The destination only appears once the download has
    fully succeeded.

    Args:
        source_url: s3://bucket/key of the artifact.
        dest: Local path for the plaintext.
        key: Raw AES key.
        store: Object store to read from.
        chunk_size: Bytes per range request.

    Returns:
        DownloadResult with sizes.

    Raises:
        TooSmallObjectError: If the object is shorter than the IV.
        RemoteQueryError: If a store request fails.
        ShortReadError: If a range response is incomplete.
    """
    handle = parse_remote_url(source_url)
    buffers = ChunkBuffers(chunk_size)
    reader = RemoteRangeReader(store, handle)

    logger.info(f"Downloading {handle.url} to {dest}")

    object_size = reader.head_size()
    logger.debug(f"File size is {object_size}")
    if object_size < IV_SIZE:
        raise TooSmallObjectError(
            f"Object {handle.url} is too small for an encrypted file ({object_size} bytes)"
        )

    iv = bytearray(IV_SIZE)
    reader.read_range(0, IV_SIZE - 1, memoryview(iv))
    stream = KeystreamCipher(key, bytes(iv))

    remaining = object_size - IV_SIZE
    with atomic_write(Path(dest)) as f:
        written = run_pipeline(
            RemoteRangeSource(reader, IV_SIZE),
            LocalFileSink(f, str(dest)),
            stream,
            buffers,
            remaining,
        )

    logger.info(f"Downloaded {handle.url}: {written} bytes")
    return DownloadResult(
        source=handle.url,
        local_path=Path(dest),
        object_size=object_size,
        size=written,
    )
