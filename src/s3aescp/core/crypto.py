"""Cryptographic functions for s3aescp.

This module provides:
- AES-CTR keystream transform that continues across chunks of any size
- Per-file random IV generation
- Parsing of the hex-encoded AES key from the configuration
"""

from __future__ import annotations

import os

from cryptography.hazmat.primitives.ciphers import Cipher, algorithms, modes

from s3aescp.core.types import AlignmentError, ConfigError

# AES constants
BLOCK_SIZE = 16  # 128 bits
IV_SIZE = BLOCK_SIZE
KEY_HEX_LENGTH = 32  # 16 bytes, AES-128

# A 64-bit block counter bounds how much keystream one IV may produce
MAX_KEYSTREAM_BYTES = BLOCK_SIZE * 2**64

_COUNTER_MODULUS = 2 ** (8 * BLOCK_SIZE)


def generate_iv() -> bytes:
    """Generate a cryptographically secure random IV.

    Returns:
        16 bytes of random data, used once per encrypted file.
    """
    return os.urandom(IV_SIZE)


def parse_key(hex_key: str) -> bytes:
    """Decode the hex-encoded AES key from the configuration.

    Args:
        hex_key: Exactly 32 hexadecimal characters.

    Returns:
        16 raw key bytes.

    Raises:
        ConfigError: If the key has the wrong length or is not hex.
    """
    if len(hex_key) != KEY_HEX_LENGTH:
        raise ConfigError(
            f"Invalid AES key: expected {KEY_HEX_LENGTH} hex characters, got {len(hex_key)}"
        )
    try:
        return bytes.fromhex(hex_key)
    except ValueError as e:
        raise ConfigError("Invalid AES key: not a hex string") from e


class KeystreamCipher:
    """AES in counter mode as a byte-for-byte XOR keystream.

    Chunks must be fed in contiguous, increasing order: each call continues
    the keystream where the previous one stopped, whatever the chunk sizes.
    Encryption and decryption are the same operation.
    """

    def __init__(self, key: bytes, iv: bytes, offset: int = 0) -> None:
        """Create a keystream positioned at a byte offset.

        Args:
            key: Raw AES key.
            iv: 16-byte initial counter block.
            offset: Byte offset into the keystream to start at.
        """
        if len(iv) != IV_SIZE:
            raise ValueError(f"IV must be {IV_SIZE} bytes, got {len(iv)}")
        if offset < 0 or offset > MAX_KEYSTREAM_BYTES:
            raise AlignmentError(f"Keystream offset {offset} out of range")

        block, skip = divmod(offset, BLOCK_SIZE)
        counter = (int.from_bytes(iv, "big") + block) % _COUNTER_MODULUS
        cipher = Cipher(
            algorithms.AES(key), modes.CTR(counter.to_bytes(BLOCK_SIZE, "big"))
        )
        self._ctx = cipher.encryptor()
        self._iv = bytes(iv)
        self._position = offset - skip
        if skip:
            self.transform(bytes(skip))

    @property
    def iv(self) -> bytes:
        return self._iv

    @property
    def position(self) -> int:
        """Number of keystream bytes consumed so far."""
        return self._position

    def _advance(self, length: int) -> None:
        if self._position + length > MAX_KEYSTREAM_BYTES:
            raise AlignmentError(
                f"Transforming {length} more bytes at position {self._position} "
                "would overflow the counter"
            )
        self._position += length

    def transform(self, data: bytes) -> bytes:
        """XOR data with the next len(data) keystream bytes."""
        self._advance(len(data))
        return self._ctx.update(data)

    def transform_into(self, data: memoryview, out: memoryview) -> int:
        """Like transform(), writing into a caller-owned buffer.

        `out` must hold at least len(data) + BLOCK_SIZE - 1 bytes.

        Returns:
            Number of bytes written to `out` (always len(data)).
        """
        if not data:
            return 0
        self._advance(len(data))
        written = self._ctx.update_into(data, out)
        if written != len(data):
            raise AlignmentError(f"Keystream produced {written} bytes for {len(data)}")
        return written

