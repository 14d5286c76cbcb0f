"""Object store abstraction for encrypted artifacts.

This module provides:
- RemoteObjectHandle and s3:// URL parsing
- ObjectStore: the operations the transfer engine needs from a store
- S3ObjectStore for AWS S3 and S3-compatible stores (MinIO, OVH, ...)
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, BinaryIO, TypeVar
from urllib.parse import urlparse

from s3aescp.core.types import (
    AccessError,
    ConfigError,
    NotFoundError,
    RemoteQueryError,
)

if TYPE_CHECKING:
    from s3aescp.core.config import Configuration

logger = logging.getLogger(__name__)

REMOTE_SCHEME = "s3"
CONTENT_TYPE = "binary/octet-stream"

_NOT_FOUND_CODES = {"404", "NoSuchKey", "NoSuchBucket", "NotFound", "NoSuchUpload"}
_ACCESS_CODES = {"403", "AccessDenied", "Forbidden", "InvalidAccessKeyId", "SignatureDoesNotMatch"}

T = TypeVar("T")


@dataclass(frozen=True)
class RemoteObjectHandle:
    """Location of an object in the store."""

    bucket: str
    key: str

    @property
    def url(self) -> str:
        return f"{REMOTE_SCHEME}://{self.bucket}/{self.key}"


@dataclass(frozen=True)
class CompletedPart:
    """A successfully uploaded multipart part."""

    part_number: int
    etag: str


def is_remote(location: str) -> bool:
    """Check whether a path names a remote object (s3://bucket/key)."""
    return location.startswith(f"{REMOTE_SCHEME}://")


def parse_remote_url(url: str) -> RemoteObjectHandle:
    """Split an s3://bucket/key URL into a handle.

    Raises:
        ValueError: If the URL is not an s3:// URL with bucket and key.
    """
    parsed = urlparse(url)
    if parsed.scheme != REMOTE_SCHEME:
        raise ValueError(f"Not a remote URL: {url}")
    key = parsed.path.lstrip("/")
    if not parsed.netloc or not key:
        raise ValueError(f"Remote URL needs a bucket and an object key: {url}")
    return RemoteObjectHandle(bucket=parsed.netloc, key=key)


class ObjectStore(ABC):
    """Abstract interface for the object store used by transfers."""

    @property
    @abstractmethod
    def location(self) -> str:
        """Return a human-readable description of the store."""

    @abstractmethod
    def head_size(self, handle: RemoteObjectHandle) -> int:
        """Return the object size in bytes.

        Raises:
            NotFoundError: If the object doesn't exist.
            AccessError: If access is denied.
        """

    @abstractmethod
    def get_range(self, handle: RemoteObjectHandle, start: int, end: int) -> BinaryIO:
        """Open a byte range of an object for reading.

        Args:
            handle: Object to read.
            start: First byte offset.
            end: Last byte offset (inclusive).

        Returns:
            Readable stream over the range; the caller closes it.
        """

    @abstractmethod
    def put_object(self, handle: RemoteObjectHandle, data: bytes) -> None:
        """Store a whole object in one request."""

    @abstractmethod
    def create_multipart_upload(self, handle: RemoteObjectHandle) -> str:
        """Start a multipart upload and return its upload id."""

    @abstractmethod
    def upload_part(
        self, handle: RemoteObjectHandle, upload_id: str, part_number: int, data: bytes
    ) -> str:
        """Upload one part and return its ETag."""

    @abstractmethod
    def complete_multipart_upload(
        self, handle: RemoteObjectHandle, upload_id: str, parts: Sequence[CompletedPart]
    ) -> None:
        """Assemble the uploaded parts into the final object."""

    @abstractmethod
    def abort_multipart_upload(self, handle: RemoteObjectHandle, upload_id: str) -> None:
        """Discard a multipart upload and its parts."""


class S3ObjectStore(ObjectStore):
    """S3-compatible object store (AWS, OVH, MinIO, etc.)."""

    def __init__(
        self,
        endpoint_url: str | None = None,
        access_key: str | None = None,
        secret_key: str | None = None,
        region: str = "us-east-1",
        client: Any | None = None,
    ) -> None:
        """Initialize the S3 store.

        Args:
            endpoint_url: Custom endpoint URL (for OVH, MinIO, etc.).
            access_key: AWS access key ID.
            secret_key: AWS secret access key.
            region: AWS region (default: us-east-1).
            client: Pre-built boto3 S3 client, overrides the other arguments.
        """
        self._endpoint_url = endpoint_url
        if client is None:
            import boto3

            client = boto3.client(
                "s3",
                endpoint_url=endpoint_url,
                aws_access_key_id=access_key,
                aws_secret_access_key=secret_key,
                region_name=region,
            )
        self._client: Any = client

    @property
    def location(self) -> str:
        """Return the S3 endpoint."""
        if self._endpoint_url:
            return f"S3: {self._endpoint_url}"
        return "S3"

    def _call(self, what: str, handle: RemoteObjectHandle, func: Callable[[], T]) -> T:
        """Run a client call, translating botocore errors."""
        from botocore.exceptions import (
            BotoCoreError,
            ClientError,
            NoCredentialsError,
            PartialCredentialsError,
        )

        try:
            return func()
        except ClientError as e:
            error = e.response.get("Error", {})
            code = str(error.get("Code", ""))
            status = e.response.get("ResponseMetadata", {}).get("HTTPStatusCode")
            message = f"{what} {handle.url} failed: {error.get('Message') or code}"
            if code in _NOT_FOUND_CODES or status == 404:
                raise NotFoundError(message, 404) from e
            if code in _ACCESS_CODES or status == 403:
                raise AccessError(message, 403) from e
            raise RemoteQueryError(message, status) from e
        except (NoCredentialsError, PartialCredentialsError) as e:
            raise ConfigError(f"Bad credentials: {e}") from e
        except BotoCoreError as e:
            raise RemoteQueryError(f"{what} {handle.url} failed: {e}") from e

    def head_size(self, handle: RemoteObjectHandle) -> int:
        """Query the object size with a HEAD request."""
        response = self._call(
            "HEAD",
            handle,
            lambda: self._client.head_object(Bucket=handle.bucket, Key=handle.key),
        )
        return int(response["ContentLength"])

    def get_range(self, handle: RemoteObjectHandle, start: int, end: int) -> BinaryIO:
        """Open an inclusive byte range for reading."""
        byte_range = f"bytes={start}-{end}"
        logger.debug(f"GET {handle.url} range {byte_range}")
        response = self._call(
            "GET",
            handle,
            lambda: self._client.get_object(
                Bucket=handle.bucket, Key=handle.key, Range=byte_range
            ),
        )
        body: BinaryIO = response["Body"]
        return body

    def put_object(self, handle: RemoteObjectHandle, data: bytes) -> None:
        """Store a whole object."""
        self._call(
            "PUT",
            handle,
            lambda: self._client.put_object(
                Bucket=handle.bucket,
                Key=handle.key,
                Body=data,
                ContentType=CONTENT_TYPE,
            ),
        )

    def create_multipart_upload(self, handle: RemoteObjectHandle) -> str:
        """Start a multipart upload."""
        response = self._call(
            "CreateMultipartUpload",
            handle,
            lambda: self._client.create_multipart_upload(
                Bucket=handle.bucket, Key=handle.key, ContentType=CONTENT_TYPE
            ),
        )
        upload_id: str = response["UploadId"]
        return upload_id

    def upload_part(
        self, handle: RemoteObjectHandle, upload_id: str, part_number: int, data: bytes
    ) -> str:
        """Upload one part of a multipart upload."""
        response = self._call(
            f"UploadPart #{part_number}",
            handle,
            lambda: self._client.upload_part(
                Bucket=handle.bucket,
                Key=handle.key,
                UploadId=upload_id,
                PartNumber=part_number,
                Body=data,
                ContentLength=len(data),
            ),
        )
        etag: str = response["ETag"]
        return etag

    def complete_multipart_upload(
        self, handle: RemoteObjectHandle, upload_id: str, parts: Sequence[CompletedPart]
    ) -> None:
        """Complete a multipart upload with its parts in the given order."""
        self._call(
            "CompleteMultipartUpload",
            handle,
            lambda: self._client.complete_multipart_upload(
                Bucket=handle.bucket,
                Key=handle.key,
                UploadId=upload_id,
                MultipartUpload={
                    "Parts": [
                        {"PartNumber": part.part_number, "ETag": part.etag}
                        for part in parts
                    ]
                },
            ),
        )

    def abort_multipart_upload(self, handle: RemoteObjectHandle, upload_id: str) -> None:
        """Abort a multipart upload."""
        self._call(
            "AbortMultipartUpload",
            handle,
            lambda: self._client.abort_multipart_upload(
                Bucket=handle.bucket, Key=handle.key, UploadId=upload_id
            ),
        )


def create_object_store(config: Configuration) -> ObjectStore:
    """Factory function to create the object store from configuration.

    Args:
        config: Loaded configuration with credentials and region.

    Returns:
        Configured ObjectStore instance.
    """
    store = S3ObjectStore(
        endpoint_url=config.endpoint_url,
        access_key=config.access_key_id,
        secret_key=config.secret_access_key,
        region=config.region,
    )
    logger.debug(f"Using object store {store.location} in region {config.region}")
    return store
