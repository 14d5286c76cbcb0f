"""Shared fixtures for s3aescp tests."""

from __future__ import annotations

import logging
from collections.abc import Iterator

import pytest

from tests.fakes import TEST_KEY_HEX, FakeObjectStore


@pytest.fixture
def key() -> bytes:
    """The AES key used throughout the tests."""
    return bytes.fromhex(TEST_KEY_HEX)


@pytest.fixture
def store() -> FakeObjectStore:
    """An empty in-memory object store."""
    return FakeObjectStore()


@pytest.fixture(autouse=True)
def reset_package_logger() -> Iterator[None]:
    """Undo the CLI's logging set-up so caplog keeps working."""
    yield
    package_logger = logging.getLogger("s3aescp")
    for handler in package_logger.handlers[:]:
        package_logger.removeHandler(handler)
    package_logger.setLevel(logging.NOTSET)
    package_logger.propagate = True
