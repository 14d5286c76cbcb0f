"""Local-to-local encryption and decryption.

The encrypted file layout is the same as for remote artifacts:
IV (16 raw bytes) followed by the AES-CTR ciphertext.
"""

from __future__ import annotations

import logging
from pathlib import Path

from s3aescp.core.crypto import IV_SIZE, KeystreamCipher, generate_iv
from s3aescp.core.types import TooSmallObjectError
from s3aescp.transfer.files import LocalFileSink, LocalFileSource, atomic_write
from s3aescp.transfer.pipeline import ChunkBuffers, run_pipeline

logger = logging.getLogger(__name__)


def encrypt_file(
    source: Path,
    dest: Path,
    key: bytes,
    chunk_size: int,
    iv: bytes | None = None,
) -> int:
    """Encrypt `source` into `dest`.

    Args:
        source: Plaintext file.
        dest: Encrypted output file.
        key: Raw AES key.
        chunk_size: Bytes processed per iteration.
        iv: Fixed IV (random when None).

    Returns:
        Size of the encrypted file (plaintext size + 16).
    """
    source, dest = Path(source), Path(dest)
    buffers = ChunkBuffers(chunk_size)
    size = source.stat().st_size
    if iv is None:
        iv = generate_iv()

    logger.info(f"Encrypting {source} to {dest}")

    with open(source, "rb") as fin, atomic_write(dest) as fout:
        sink = LocalFileSink(fout, str(dest))
        # The IV goes out verbatim, ahead of the ciphertext
        sink.write_chunk(memoryview(iv))
        written = run_pipeline(
            LocalFileSource(fin, str(source)),
            sink,
            KeystreamCipher(key, iv),
            buffers,
            size,
        )

    return IV_SIZE + written


def decrypt_file(source: Path, dest: Path, key: bytes, chunk_size: int) -> int:
    """Decrypt `source` into `dest`.

    Args:
        source: Encrypted file (IV || ciphertext).
        dest: Plaintext output file.
        key: Raw AES key.
        chunk_size: Bytes processed per iteration.

    Returns:
        Size of the plaintext.

    Raises:
        TooSmallObjectError: If the file is shorter than the IV.
        ShortReadError: If the file shrinks while being read.
    """
    source, dest = Path(source), Path(dest)
    buffers = ChunkBuffers(chunk_size)
    size = source.stat().st_size
    if size < IV_SIZE:
        raise TooSmallObjectError(
            f"File {source} is too small for an encrypted file ({size} bytes)"
        )

    logger.info(f"Decrypting {source} to {dest}")

    with open(source, "rb") as fin, atomic_write(dest) as fout:
        reader = LocalFileSource(fin, str(source))
        iv = bytearray(IV_SIZE)
        reader.read_chunk(memoryview(iv))
        return run_pipeline(
            reader,
            LocalFileSink(fout, str(dest)),
            KeystreamCipher(key, bytes(iv)),
            buffers,
            size - IV_SIZE,
        )
