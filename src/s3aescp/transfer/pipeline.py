"""Chunked read/transform/write pipeline.

This module provides:
- ChunkBuffers: the reusable scratch buffer pair that bounds memory
- ChunkSource, ChunkSink: what the pipeline reads from and writes to
- read_exact: fill a buffer from a stream or fail
- run_pipeline: the bounded-memory transfer loop
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import BinaryIO, Protocol

from s3aescp.core.crypto import BLOCK_SIZE, KeystreamCipher
from s3aescp.core.types import ShortReadError

logger = logging.getLogger(__name__)


class ChunkSource(Protocol):
    """Something the pipeline pulls bytes from."""

    def read_chunk(self, view: memoryview) -> None:
        """Fill `view` completely.

        Raises:
            ShortReadError: If fewer than len(view) bytes are available.
        """


class ChunkSink(Protocol):
    """Something the pipeline pushes transformed bytes to."""

    def write_chunk(self, view: memoryview) -> None:
        """Write all of `view`.

        Raises:
            ShortWriteError: If the sink accepted fewer bytes.
        """


@dataclass
class ChunkBuffers:
    """Read and write scratch buffers reused across pipeline iterations.

    The write buffer carries BLOCK_SIZE - 1 extra bytes because the cipher
    backend requires that much headroom when transforming into a buffer.
    Only views of the bytes filled in the current iteration are ever
    handed out, so nothing from a longer previous chunk leaks through.
    """

    chunk_size: int
    read_buffer: bytearray = field(init=False, repr=False)
    write_buffer: bytearray = field(init=False, repr=False)

    def __post_init__(self) -> None:
        if self.chunk_size <= 0:
            raise ValueError(f"Invalid chunk size: {self.chunk_size}")
        self.read_buffer = bytearray(self.chunk_size)
        self.write_buffer = bytearray(self.chunk_size + BLOCK_SIZE - 1)


def read_exact(stream: BinaryIO, view: memoryview, what: str = "source") -> None:
    """Read exactly len(view) bytes from a stream into `view`.

    Keeps reading until the buffer is full, since files and HTTP bodies
    may return less than asked for on a single read.

    Args:
        stream: Binary stream with a read(size) method.
        view: Writable buffer to fill.
        what: Description of the stream for error messages.

    Raises:
        ShortReadError: If the stream ends before the buffer is full.
    """
    filled = 0
    wanted = len(view)
    while filled < wanted:
        data = stream.read(wanted - filled)
        if not data:
            break
        view[filled : filled + len(data)] = data
        filled += len(data)
    if filled != wanted:
        raise ShortReadError(what, wanted, filled)


def run_pipeline(
    source: ChunkSource,
    sink: ChunkSink,
    stream: KeystreamCipher,
    buffers: ChunkBuffers,
    remaining: int,
    prefix: bytes | None = None,
) -> int:
    """Move `remaining` bytes from source to sink through the keystream.

    Each iteration reads min(chunk_size, remaining) bytes, transforms them
    and writes them out before the next read. If `prefix` is given it is
    copied untransformed to the front of the first output chunk, which then
    carries only chunk_size - len(prefix) transformed bytes. The prefix is
    written even when there is nothing to transform.

    Args:
        source: Where to read plaintext (or ciphertext) from.
        sink: Where to write the transformed bytes.
        stream: Keystream positioned at the first byte to transform.
        buffers: Scratch buffers, sized to the chunk size.
        remaining: Number of bytes to transform.
        prefix: Bytes to emit verbatim before the first transformed byte.

    Returns:
        Number of bytes written to the sink.
    """
    chunk_size = buffers.chunk_size
    head = len(prefix) if prefix is not None else 0
    if prefix is not None and head >= chunk_size:
        raise ValueError(
            f"Chunk size {chunk_size} too small for a {head}-byte prefix"
        )
    if remaining < 0:
        raise ValueError(f"Invalid transfer length: {remaining}")

    read_view = memoryview(buffers.read_buffer)
    write_view = memoryview(buffers.write_buffer)
    pending_prefix = prefix is not None
    written = 0
    block_num = 0

    while remaining > 0 or pending_prefix:
        offset = head if pending_prefix else 0
        current = min(chunk_size - offset, remaining)

        logger.debug(f"Processing block: {block_num}, remaining bytes: {remaining}")

        if pending_prefix:
            write_view[:head] = prefix

        chunk = read_view[:current]
        source.read_chunk(chunk)
        stream.transform_into(chunk, write_view[offset:])

        sink.write_chunk(write_view[: offset + current])

        written += offset + current
        remaining -= current
        pending_prefix = False
        block_num += 1

        if remaining < 0:
            raise RuntimeError(f"Pipeline overran its input by {-remaining} bytes")

    return written
