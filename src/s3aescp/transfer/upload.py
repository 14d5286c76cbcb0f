"""Upload with encryption to the object store.

This module provides:
- MultipartWriteCoordinator: single-shot or multipart upload of a stream of chunks
- upload_and_encrypt: stream a local file into a remote encrypted artifact
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from types import TracebackType

from s3aescp.core.crypto import IV_SIZE, KeystreamCipher, generate_iv
from s3aescp.core.types import (
    AbortError,
    PartUploadError,
    RemoteQueryError,
    ShortWriteError,
    UploadState,
)
from s3aescp.transfer.files import LocalFileSource
from s3aescp.transfer.pipeline import ChunkBuffers, run_pipeline
from s3aescp.transfer.retry import (
    DEFAULT_INITIAL_BACKOFF,
    DEFAULT_MAX_ATTEMPTS,
    retry_with_backoff,
)
from s3aescp.transfer.storage import (
    CompletedPart,
    ObjectStore,
    RemoteObjectHandle,
    parse_remote_url,
)

logger = logging.getLogger(__name__)

MAX_PART_ATTEMPTS = DEFAULT_MAX_ATTEMPTS

# Errors worth another attempt at the same part
RETRYABLE_PART_ERRORS: tuple[type[Exception], ...] = (RemoteQueryError, OSError)


@dataclass
class UploadResult:
    """Result of an upload."""

    source: Path
    dest: str
    size: int
    parts: int


class MultipartWriteCoordinator:
    """Writes a stream of chunks as one remote object.

    State machine: NOT_STARTED -> IN_PROGRESS -> COMPLETED | ABORTED.
    If the whole object fits in one chunk it is stored with a single PUT
    and no multipart session is created. Otherwise every chunk becomes one
    numbered part, retried on failure up to `max_attempts` times with the
    same bytes. An upload that cannot finish is aborted rather than left
    behind on the store.

    Use as a context manager so that any error raised while the upload is
    in progress aborts it.
    """

    def __init__(
        self,
        store: ObjectStore,
        handle: RemoteObjectHandle,
        total_size: int,
        chunk_size: int,
        max_attempts: int = MAX_PART_ATTEMPTS,
        initial_backoff: float = DEFAULT_INITIAL_BACKOFF,
    ) -> None:
        """Initialize the coordinator.

        Args:
            store: Object store to write to.
            handle: Destination object.
            total_size: Exact number of bytes that will be written.
            chunk_size: Size of every part except the last.
            max_attempts: Attempts per part before giving up.
            initial_backoff: First sleep between attempts, in seconds.
        """
        self._store = store
        self._handle = handle
        self._total_size = total_size
        self._chunk_size = chunk_size
        self._max_attempts = max_attempts
        self._initial_backoff = initial_backoff
        self._state = UploadState.NOT_STARTED
        self._upload_id: str | None = None
        self._parts: list[CompletedPart] = []
        self._written = 0
        self._abort_error: AbortError | None = None

    @property
    def state(self) -> UploadState:
        return self._state

    @property
    def upload_id(self) -> str | None:
        return self._upload_id

    @property
    def completed_parts(self) -> tuple[CompletedPart, ...]:
        return tuple(self._parts)

    @property
    def abort_error(self) -> AbortError | None:
        """Error from a failed abort call, if any."""
        return self._abort_error

    @property
    def single_shot(self) -> bool:
        """True if the whole object fits in one chunk."""
        return self._total_size <= self._chunk_size

    def __enter__(self) -> MultipartWriteCoordinator:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        if exc is not None and self._state is UploadState.IN_PROGRESS:
            logger.error(f"Upload of {self._handle.url} failed: {exc}")
            abort_error = self.abort()
            if abort_error is not None:
                exc.add_note(str(abort_error))

    def write_chunk(self, view: memoryview) -> None:
        """Upload the next chunk.

        The first chunk decides between a single PUT and a multipart upload.

        Raises:
            PartUploadError: If a part fails on every attempt (the upload
                is aborted before this is raised).
            RemoteQueryError: If the PUT or the multipart initiation fails.
        """
        if self._state in (UploadState.COMPLETED, UploadState.ABORTED):
            raise RuntimeError(f"Upload of {self._handle.url} is already {self._state.value}")
        if self._written + len(view) > self._total_size:
            raise ShortWriteError(self._handle.url, self._total_size, self._written + len(view))

        data = bytes(view)

        if self._state is UploadState.NOT_STARTED:
            if self.single_shot:
                self._put_single(data)
                return
            self._upload_id = self._store.create_multipart_upload(self._handle)
            self._state = UploadState.IN_PROGRESS
            logger.debug(f"Created multipart upload {self._upload_id} for {self._handle.url}")

        self._upload_part(data)

    def _put_single(self, data: bytes) -> None:
        if len(data) != self._total_size:
            raise ShortWriteError(self._handle.url, self._total_size, len(data))
        logger.debug(f"Doing simple 1-block upload, bytes: {len(data)}")
        self._store.put_object(self._handle, data)
        self._written = len(data)
        self._state = UploadState.COMPLETED

    def _require_upload_id(self) -> str:
        if self._upload_id is None:
            raise RuntimeError(f"No multipart upload started for {self._handle.url}")
        return self._upload_id

    def _upload_part(self, data: bytes) -> None:
        upload_id = self._require_upload_id()
        part_number = len(self._parts) + 1

        def on_retry(attempt: int, error: Exception) -> None:
            logger.info(f"Retrying to upload part #{part_number}")

        try:
            etag: str = retry_with_backoff(
                lambda: self._store.upload_part(self._handle, upload_id, part_number, data),
                max_attempts=self._max_attempts,
                initial_backoff=self._initial_backoff,
                retryable_exceptions=RETRYABLE_PART_ERRORS,
                on_retry=on_retry,
            )
        except RETRYABLE_PART_ERRORS as e:
            error = PartUploadError(part_number, self._max_attempts, e)
            logger.error(f"MultipartUpload failed: {error}")
            error.abort_error = self.abort()
            if error.abort_error is not None:
                error.add_note(str(error.abort_error))
            raise error from e

        self._parts.append(CompletedPart(part_number=part_number, etag=etag))
        self._written += len(data)
        logger.info(f"Uploaded part #{part_number}")

    def complete(self) -> None:
        """Finish the upload once every byte has been written.

        A failing completion call aborts the upload.

        Raises:
            ShortWriteError: If fewer than total_size bytes were written.
            RemoteQueryError: If the completion call fails.
        """
        if self._state is UploadState.COMPLETED:
            return
        if self._state is not UploadState.IN_PROGRESS:
            raise RuntimeError(f"Cannot complete upload in state {self._state.value}")
        if self._written != self._total_size:
            raise ShortWriteError(self._handle.url, self._total_size, self._written)

        upload_id = self._require_upload_id()
        self._store.complete_multipart_upload(self._handle, upload_id, self._parts)
        self._state = UploadState.COMPLETED
        logger.debug(f"Completed multipart upload {upload_id} with {len(self._parts)} parts")

    def abort(self) -> AbortError | None:
        """Abort an in-progress multipart upload.

        Returns:
            AbortError if the abort call itself failed, None otherwise.
        """
        if self._state is not UploadState.IN_PROGRESS:
            return None
        upload_id = self._require_upload_id()

        logger.info(f"Aborting multipart upload for UploadId#{upload_id}")
        self._state = UploadState.ABORTED
        try:
            self._store.abort_multipart_upload(self._handle, upload_id)
        except Exception as e:
            # Reported alongside the error that caused the abort
            self._abort_error = AbortError(upload_id, e)
            logger.error(str(self._abort_error))
        return self._abort_error


def upload_and_encrypt(
    source: Path,
    dest_url: str,
    key: bytes,
    store: ObjectStore,
    chunk_size: int,
    iv: bytes | None = None,
    max_attempts: int = MAX_PART_ATTEMPTS,
    initial_backoff: float = DEFAULT_INITIAL_BACKOFF,
) -> UploadResult:
    """Encrypt a local file and upload it as IV || ciphertext.

    The IV fills the first IV_SIZE bytes of the first part (or of the
    single PUT body) and is never encrypted; the file's bytes follow as one
    continuous keystream across all parts.

    Args:
        source: Local plaintext file.
        dest_url: s3://bucket/key destination.
        key: Raw AES key.
        store: Object store to write to.
        chunk_size: Bytes per part; must be larger than the IV.
        iv: Fixed IV (random when None).
        max_attempts: Attempts per part.
        initial_backoff: First sleep between part attempts, in seconds.

    Returns:
        UploadResult with the artifact size and number of parts.

    Raises:
        PartUploadError: If a part could not be uploaded.
        RemoteQueryError: If another store request fails.
        ShortReadError: If the source file shrinks during the upload.
    """
    source = Path(source)
    handle = parse_remote_url(dest_url)
    if chunk_size <= IV_SIZE:
        raise ValueError(f"Chunk size must exceed {IV_SIZE} bytes for uploads")

    size = source.stat().st_size
    total_size = size + IV_SIZE
    if iv is None:
        iv = generate_iv()

    logger.info(f"Uploading {source} to {handle.url}")
    logger.debug(f"Source file size: {size}")

    stream = KeystreamCipher(key, iv)
    buffers = ChunkBuffers(chunk_size)
    coordinator = MultipartWriteCoordinator(
        store,
        handle,
        total_size,
        chunk_size,
        max_attempts=max_attempts,
        initial_backoff=initial_backoff,
    )

    with open(source, "rb") as f, coordinator:
        run_pipeline(
            LocalFileSource(f, str(source)),
            coordinator,
            stream,
            buffers,
            size,
            prefix=iv,
        )
        coordinator.complete()

    logger.info(f"Successfully uploaded {handle.url}: {total_size} bytes")
    return UploadResult(
        source=source,
        dest=handle.url,
        size=total_size,
        parts=len(coordinator.completed_parts),
    )
