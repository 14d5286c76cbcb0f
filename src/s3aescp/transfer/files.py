"""Local file endpoints for the transfer pipeline.

This module provides:
- LocalFileSource, LocalFileSink: pipeline adapters over open files
- atomic_write: write to a temporary file and rename on success
"""

from __future__ import annotations

import contextlib
import logging
from collections.abc import Iterator
from pathlib import Path
from typing import BinaryIO

from s3aescp.core.types import ShortWriteError
from s3aescp.transfer.pipeline import read_exact

logger = logging.getLogger(__name__)


class LocalFileSource:
    """Reads exact-size chunks from an open binary file."""

    def __init__(self, fileobj: BinaryIO, name: str = "input file") -> None:
        self._file = fileobj
        self._name = name

    def read_chunk(self, view: memoryview) -> None:
        read_exact(self._file, view, self._name)


class LocalFileSink:
    """Writes chunks to an open binary file."""

    def __init__(self, fileobj: BinaryIO, name: str = "output file") -> None:
        self._file = fileobj
        self._name = name

    def write_chunk(self, view: memoryview) -> None:
        written = self._file.write(view)
        if written != len(view):
            raise ShortWriteError(self._name, len(view), written or 0)


@contextlib.contextmanager
def atomic_write(path: Path) -> Iterator[BinaryIO]:
    """Open a temporary file next to `path` and move it into place on success.

    Uses a temporary file (.tmp) during the transfer so that no partial
    destination is left on disk if the transfer fails.

    Args:
        path: Final destination path.

    Yields:
        Binary file object to write to.
    """
    path = Path(path)
    tmp_path = path.with_name(path.name + ".tmp")
    try:
        with open(tmp_path, "wb") as f:
            yield f
        tmp_path.replace(path)
    except BaseException:
        # Clean up temp file on failure
        if tmp_path.exists():
            with contextlib.suppress(OSError):
                tmp_path.unlink()
        raise
