"""Replication service copying objects from the source store to the backup store."""

import logging

from minio_backup.exceptions import ReplicationError, StoreError
from minio_backup.infrastructure.s3_client import S3Client
from minio_backup.models.schemas import ReplicationRequest

logger = logging.getLogger(__name__)


class BackupReplicator:
    """Copies single objects between two MinIO stores."""

    def __init__(self, source: S3Client, destination: S3Client):
        """
        Initialize backup replicator.

        Args:
            source: Client for the primary store.
            destination: Client for the backup store.
        """
        self._source = source
        self._destination = destination

    def replicate(self, request: ReplicationRequest) -> int:
        """
        Copy one object to the backup store under the same bucket and key.

        The whole object is buffered in memory between download and upload.
        Nothing is written to the backup store if the download fails.

        Args:
            request: The object to copy.

        Returns:
            Number of bytes copied.

        Raises:
            ReplicationError: If either the download or the upload fails.
        """
        bucket = request.bucket
        key = request.object_key

        try:
            data = self._source.download_bytes(bucket, key)
        except StoreError as e:
            raise ReplicationError(bucket, key, "download", e) from e

        try:
            self._destination.upload_bytes(bucket, key, data)
        except StoreError as e:
            raise ReplicationError(bucket, key, "upload", e) from e

        logger.debug("Replicated s3://%s/%s (%d bytes)", bucket, key, len(data))
        return len(data)
