"""S3 client wrapper for MinIO operations."""

import logging
import time
from contextlib import contextmanager
from typing import Any, Iterator

from botocore.exceptions import (
    BotoCoreError,
    ClientError,
    ConnectTimeoutError,
    ReadTimeoutError,
)

from minio_backup.exceptions import StoreError, StoreTimeoutError

logger = logging.getLogger(__name__)

_MISSING_BUCKET_CODES = {"404", "NoSuchBucket", "NotFound"}
_EXISTING_BUCKET_CODES = {"BucketAlreadyOwnedByYou", "BucketAlreadyExists"}
_CHUNK_SIZE = 64 * 1024


@contextmanager
def _store_errors(bucket: str, key: str | None = None) -> Iterator[None]:
    """Translate botocore failures into StoreError."""
    try:
        yield
    except (ConnectTimeoutError, ReadTimeoutError) as e:
        raise StoreTimeoutError(bucket, key, e) from e
    except (ClientError, BotoCoreError) as e:
        raise StoreError(bucket, key, e) from e


def _error_code(error: StoreError) -> str | None:
    if isinstance(error.cause, ClientError):
        return error.cause.response.get("Error", {}).get("Code")
    return None


class S3Client:
    """Handles S3 operations against one MinIO endpoint."""

    def __init__(
        self,
        client: Any,
        region: str = "eu-west-1",
        transfer_timeout: float | None = None,
    ):
        """
        Initialize S3 client wrapper.

        Args:
            client: boto3 S3 client instance.
            region: Region used as the location constraint for new buckets.
            transfer_timeout: Upper bound in seconds on a whole download.
                None means only the per-read socket timeout applies.
        """
        self._client = client
        self._region = region
        self._transfer_timeout = transfer_timeout

    def bucket_exists(self, bucket: str) -> bool:
        """
        Check if a bucket exists.

        Args:
            bucket: S3 bucket name.

        Returns:
            True if the bucket exists, False otherwise.

        Raises:
            StoreError: On any failure other than a missing bucket.
        """
        try:
            with _store_errors(bucket):
                self._client.head_bucket(Bucket=bucket)
            return True
        except StoreError as e:
            if _error_code(e) in _MISSING_BUCKET_CODES:
                return False
            raise

    def ensure_bucket(self, bucket: str) -> None:
        """Create the bucket unless it already exists."""
        if self.bucket_exists(bucket):
            return

        kwargs: dict[str, Any] = {"Bucket": bucket}
        if self._region != "us-east-1":
            kwargs["CreateBucketConfiguration"] = {"LocationConstraint": self._region}

        try:
            with _store_errors(bucket):
                self._client.create_bucket(**kwargs)
            logger.info("Created bucket: %s", bucket)
        except StoreError as e:
            # Lost a race with another writer
            if _error_code(e) in _EXISTING_BUCKET_CODES:
                logger.debug("Bucket %s already exists", bucket)
                return
            raise

    def download_bytes(self, bucket: str, key: str) -> bytes:
        """
        Download an object and buffer its whole body in memory.

        Args:
            bucket: S3 bucket name.
            key: S3 object key.

        Returns:
            The object's bytes.

        Raises:
            StoreTimeoutError: If a read stalls, or the whole body takes
                longer than the transfer timeout.
            StoreError: If the bucket or key is missing, or on transport failure.
        """
        deadline = None
        if self._transfer_timeout is not None:
            deadline = time.monotonic() + self._transfer_timeout

        chunks = []
        with _store_errors(bucket, key):
            response = self._client.get_object(Bucket=bucket, Key=key)
            body = response["Body"]
            try:
                while True:
                    chunk = body.read(_CHUNK_SIZE)
                    if not chunk:
                        break
                    chunks.append(chunk)
                    if deadline is not None and time.monotonic() > deadline:
                        raise StoreTimeoutError(
                            bucket,
                            key,
                            f"Download exceeded {self._transfer_timeout:g}s",
                        )
            finally:
                body.close()

        data = b"".join(chunks)
        logger.info("Downloaded: s3://%s/%s (%d bytes)", bucket, key, len(data))
        return data

    def upload_bytes(self, bucket: str, key: str, data: bytes) -> None:
        """
        Upload bytes, creating the bucket first if needed.

        Args:
            bucket: S3 bucket name.
            key: S3 object key.
            data: Object content.

        Raises:
            StoreError: On failure, or if the store does not answer 200 OK.
        """
        self.ensure_bucket(bucket)

        with _store_errors(bucket, key):
            response = self._client.put_object(Bucket=bucket, Key=key, Body=data)

        status = response.get("ResponseMetadata", {}).get("HTTPStatusCode")
        if status != 200:
            raise StoreError(bucket, key, f"Upload Error (HTTP {status})")

        logger.info("Uploaded: s3://%s/%s", bucket, key)
