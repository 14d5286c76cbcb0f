"""Shared types for s3aescp.

This module defines the error taxonomy and enums used by both the local
and the remote transfer paths.
"""

from __future__ import annotations

from enum import Enum


class TransferError(Exception):
    """Base exception for transfer errors."""


class ConfigError(TransferError):
    """Bad configuration: malformed key, unreadable file or bad credentials."""


class AlignmentError(TransferError):
    """Keystream position would leave the cipher's counter space."""


class ShortReadError(TransferError):
    """A source returned fewer bytes than requested.

    Attributes:
        expected: Number of bytes requested.
        actual: Number of bytes actually received.
    """

    def __init__(self, what: str, expected: int, actual: int) -> None:
        self.expected = expected
        self.actual = actual
        super().__init__(f"Incomplete read from {what}: expected {expected} bytes, got {actual}")


class ShortWriteError(TransferError):
    """A sink acknowledged fewer bytes than requested."""

    def __init__(self, what: str, expected: int, actual: int) -> None:
        self.expected = expected
        self.actual = actual
        super().__init__(f"Incomplete write to {what}: expected {expected} bytes, wrote {actual}")


class RemoteQueryError(TransferError):
    """An object store request failed."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class NotFoundError(RemoteQueryError):
    """Remote object or bucket not found."""


class AccessError(RemoteQueryError):
    """Access to the remote object was denied."""


class TooSmallObjectError(TransferError):
    """Object is shorter than the IV and cannot be an encrypted artifact."""


class AbortError(TransferError):
    """Aborting a failed multipart upload failed as well.

    Always reported next to the error that caused the abort, never
    instead of it.
    """

    def __init__(self, upload_id: str, cause: Exception) -> None:
        self.upload_id = upload_id
        self.cause = cause
        super().__init__(f"Abort of multipart upload {upload_id} failed: {cause}")


class PartUploadError(TransferError):
    """A multipart part could not be uploaded within the retry bound.

    Attributes:
        part_number: The part that failed.
        attempts: Number of attempts made.
        abort_error: Set if the follow-up abort call failed too.
    """

    def __init__(self, part_number: int, attempts: int, cause: Exception) -> None:
        self.part_number = part_number
        self.attempts = attempts
        self.abort_error: AbortError | None = None
        super().__init__(
            f"Upload of part #{part_number} failed after {attempts} attempts: {cause}"
        )


class UploadState(str, Enum):
    """State of a multipart write coordinator."""

    NOT_STARTED = "not_started"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    ABORTED = "aborted"
