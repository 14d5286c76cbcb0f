"""Tests for local encryption and decryption."""

import os
from pathlib import Path

import pytest

from s3aescp.core import ShortReadError, TooSmallObjectError
from s3aescp.transfer import atomic_write, decrypt_file, encrypt_file

FIXED_IV = bytes.fromhex("0f0e0d0c0b0a09080706050403020100")


@pytest.fixture
def plaintext_file(tmp_path: Path) -> Path:
    path = tmp_path / "plain.bin"
    path.write_bytes(os.urandom(5000))
    return path


class TestRoundTrip:
    """Encrypt then decrypt gives back the original file."""

    @pytest.mark.parametrize("chunk_size", [1, 8, 15, 16, 17, 4096, 4999, 5000, 5016, 10000])
    def test_round_trip_any_chunk_size(
        self, tmp_path: Path, plaintext_file: Path, key: bytes, chunk_size: int
    ) -> None:
        encrypted = tmp_path / "plain.bin.enc"
        decrypted = tmp_path / "plain.out"

        size = encrypt_file(plaintext_file, encrypted, key, chunk_size)
        restored = decrypt_file(encrypted, decrypted, key, chunk_size)

        assert size == 5016
        assert encrypted.stat().st_size == 5016
        assert restored == 5000
        assert decrypted.read_bytes() == plaintext_file.read_bytes()

    def test_decrypt_with_other_chunk_size(
        self, tmp_path: Path, plaintext_file: Path, key: bytes
    ) -> None:
        encrypted = tmp_path / "enc"
        decrypted = tmp_path / "dec"
        encrypt_file(plaintext_file, encrypted, key, 17)
        decrypt_file(encrypted, decrypted, key, 4096)
        assert decrypted.read_bytes() == plaintext_file.read_bytes()

    def test_empty_file(self, tmp_path: Path, key: bytes) -> None:
        """An empty file encrypts to just the IV."""
        empty = tmp_path / "empty"
        empty.write_bytes(b"")
        encrypted = tmp_path / "empty.enc"
        decrypted = tmp_path / "empty.out"

        assert encrypt_file(empty, encrypted, key, 8) == 16
        assert decrypt_file(encrypted, decrypted, key, 8) == 0
        assert decrypted.read_bytes() == b""

    def test_quick_brown_fox(self, tmp_path: Path, key: bytes) -> None:
        """A 20-byte text with 8-byte chunks gives a 36-byte artifact."""
        plaintext = b"The quick brown fox\n"
        assert len(plaintext) == 20
        source = tmp_path / "fox.txt"
        source.write_bytes(plaintext)

        encrypt_file(source, tmp_path / "fox.enc", key, 8)
        artifact = (tmp_path / "fox.enc").read_bytes()
        decrypt_file(tmp_path / "fox.enc", tmp_path / "fox.out", key, 8)

        assert len(artifact) == 36
        assert artifact[16:] != plaintext
        assert (tmp_path / "fox.out").read_bytes() == plaintext

    def test_wrong_key_gives_garbage(
        self, tmp_path: Path, plaintext_file: Path, key: bytes
    ) -> None:
        """CTR mode has no authentication: a wrong key silently decrypts to noise."""
        encrypt_file(plaintext_file, tmp_path / "enc", key, 1024)
        decrypt_file(tmp_path / "enc", tmp_path / "dec", bytes(16), 1024)
        assert (tmp_path / "dec").read_bytes() != plaintext_file.read_bytes()


class TestIVEmbedding:
    """The IV is stored verbatim at the start of the artifact."""

    def test_iv_prefix(self, tmp_path: Path, plaintext_file: Path, key: bytes) -> None:
        encrypt_file(plaintext_file, tmp_path / "enc", key, 64, iv=FIXED_IV)
        assert (tmp_path / "enc").read_bytes()[:16] == FIXED_IV

    def test_random_iv_differs_between_runs(
        self, tmp_path: Path, plaintext_file: Path, key: bytes
    ) -> None:
        encrypt_file(plaintext_file, tmp_path / "a", key, 64)
        encrypt_file(plaintext_file, tmp_path / "b", key, 64)
        a, b = (tmp_path / "a").read_bytes(), (tmp_path / "b").read_bytes()
        assert a[:16] != b[:16]
        assert a[16:] != b[16:]

    def test_chunk_size_invariance(self, tmp_path: Path, key: bytes) -> None:
        """With a fixed IV, every chunk size gives the same artifact."""
        plaintext = os.urandom(3000)
        source = tmp_path / "src"
        source.write_bytes(plaintext)

        artifacts = set()
        for chunk_size in (16, 17, 4096, len(plaintext) + 16):
            dest = tmp_path / f"enc-{chunk_size}"
            encrypt_file(source, dest, key, chunk_size, iv=FIXED_IV)
            artifacts.add(dest.read_bytes())

        assert len(artifacts) == 1


class TestDecryptErrors:
    """Failure cases for local decryption."""

    @pytest.mark.parametrize("size", [0, 1, 15])
    def test_too_small_file_rejected(self, tmp_path: Path, key: bytes, size: int) -> None:
        source = tmp_path / "tiny"
        source.write_bytes(b"x" * size)
        with pytest.raises(TooSmallObjectError):
            decrypt_file(source, tmp_path / "out", key, 16)
        assert not (tmp_path / "out").exists()

    def test_iv_only_file_decrypts_to_empty(self, tmp_path: Path, key: bytes) -> None:
        source = tmp_path / "iv-only"
        source.write_bytes(FIXED_IV)
        assert decrypt_file(source, tmp_path / "out", key, 16) == 0
        assert (tmp_path / "out").read_bytes() == b""

    def test_missing_source(self, tmp_path: Path, key: bytes) -> None:
        with pytest.raises(FileNotFoundError):
            decrypt_file(tmp_path / "missing", tmp_path / "out", key, 16)


class TestAtomicWrite:
    """Tests for atomic_write."""

    def test_success_moves_file_into_place(self, tmp_path: Path) -> None:
        dest = tmp_path / "out.bin"
        with atomic_write(dest) as f:
            f.write(b"data")
            assert not dest.exists()
        assert dest.read_bytes() == b"data"
        assert not (tmp_path / "out.bin.tmp").exists()

    def test_failure_leaves_nothing_behind(self, tmp_path: Path) -> None:
        dest = tmp_path / "out.bin"
        with pytest.raises(ShortReadError):
            with atomic_write(dest) as f:
                f.write(b"partial")
                raise ShortReadError("test", 10, 7)
        assert not dest.exists()
        assert not (tmp_path / "out.bin.tmp").exists()

    def test_failure_keeps_existing_destination(self, tmp_path: Path) -> None:
        dest = tmp_path / "out.bin"
        dest.write_bytes(b"old")
        with pytest.raises(RuntimeError):
            with atomic_write(dest) as f:
                f.write(b"new")
                raise RuntimeError("boom")
        assert dest.read_bytes() == b"old"
