"""In-memory test doubles for s3aescp tests."""

from __future__ import annotations

import io
from collections.abc import Sequence
from typing import BinaryIO

from s3aescp.core.types import NotFoundError, RemoteQueryError
from s3aescp.transfer.storage import CompletedPart, ObjectStore, RemoteObjectHandle

TEST_KEY_HEX = "00112233445566778899aabbccddeeff"


class FakeObjectStore(ObjectStore):
    """In-memory object store recording every call.

    Attributes:
        objects: Stored objects by (bucket, key).
        calls: Names of the operations called, in order.
        ranges: (start, end) of every range read.
        fail_parts: Part number -> number of attempts that should fail
            (a huge number fails forever).
        fail_abort: Make abort_multipart_upload fail.
        fail_complete: Make complete_multipart_upload fail.
        declared_size: Override the size reported by head_size.
        short_ranges: Return one byte less than requested on range reads.
    """

    def __init__(self) -> None:
        self.objects: dict[tuple[str, str], bytes] = {}
        self.uploads: dict[str, dict[int, bytes]] = {}
        self.calls: list[str] = []
        self.ranges: list[tuple[int, int]] = []
        self.part_attempts: dict[int, int] = {}
        self.part_payloads: list[tuple[int, bytes]] = []
        self.fail_parts: dict[int, int] = {}
        self.fail_abort = False
        self.fail_complete = False
        self.declared_size: int | None = None
        self.short_ranges = False
        self._next_upload = 0

    @property
    def location(self) -> str:
        return "memory"

    def head_size(self, handle: RemoteObjectHandle) -> int:
        self.calls.append("head_size")
        if self.declared_size is not None:
            return self.declared_size
        try:
            return len(self.objects[(handle.bucket, handle.key)])
        except KeyError:
            raise NotFoundError(f"HEAD {handle.url} failed: Not Found", 404) from None

    def get_range(self, handle: RemoteObjectHandle, start: int, end: int) -> BinaryIO:
        self.calls.append("get_range")
        self.ranges.append((start, end))
        data = self.objects[(handle.bucket, handle.key)][start : end + 1]
        if self.short_ranges:
            data = data[:-1]
        return io.BytesIO(data)

    def put_object(self, handle: RemoteObjectHandle, data: bytes) -> None:
        self.calls.append("put_object")
        self.objects[(handle.bucket, handle.key)] = bytes(data)

    def create_multipart_upload(self, handle: RemoteObjectHandle) -> str:
        self.calls.append("create_multipart_upload")
        self._next_upload += 1
        upload_id = f"upload-{self._next_upload}"
        self.uploads[upload_id] = {}
        return upload_id

    def upload_part(
        self, handle: RemoteObjectHandle, upload_id: str, part_number: int, data: bytes
    ) -> str:
        self.calls.append("upload_part")
        attempts = self.part_attempts.get(part_number, 0) + 1
        self.part_attempts[part_number] = attempts
        self.part_payloads.append((part_number, bytes(data)))
        if attempts <= self.fail_parts.get(part_number, 0):
            raise RemoteQueryError(f"UploadPart #{part_number} failed: injected", 500)
        self.uploads[upload_id][part_number] = bytes(data)
        return f'"etag-{part_number}"'

    def complete_multipart_upload(
        self, handle: RemoteObjectHandle, upload_id: str, parts: Sequence[CompletedPart]
    ) -> None:
        self.calls.append("complete_multipart_upload")
        if self.fail_complete:
            raise RemoteQueryError("CompleteMultipartUpload failed: injected", 500)
        uploaded = self.uploads.pop(upload_id)
        self.objects[(handle.bucket, handle.key)] = b"".join(
            uploaded[part.part_number] for part in parts
        )

    def abort_multipart_upload(self, handle: RemoteObjectHandle, upload_id: str) -> None:
        self.calls.append("abort_multipart_upload")
        if self.fail_abort:
            raise RemoteQueryError("AbortMultipartUpload failed: injected", 500)
        self.uploads.pop(upload_id, None)
