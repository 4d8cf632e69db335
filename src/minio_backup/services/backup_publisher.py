"""Publisher service for sending backup requests to the queue."""

import logging

from minio_backup.infrastructure.rabbitmq_client import RabbitMQClient
from minio_backup.models.schemas import SUPPORTED_SCHEMA_VERSION

logger = logging.getLogger(__name__)


class BackupPublisher:
    """Publishes backup request events."""

    def __init__(self, queue_client: RabbitMQClient, queue_name: str):
        self._queue_client = queue_client
        self.queue_name = queue_name

    def publish_backup_request(self, bucket: str, object_key: str) -> bool:
        """
        Ask the backup consumers to copy one object.

        Args:
            bucket: Bucket holding the object.
            object_key: Key (file guid) of the object.

        Returns:
            True if publish succeeded, False otherwise.
        """
        if not bucket or not object_key:
            logger.error("Cannot publish: bucket and object key are required")
            return False

        message = {
            "version": SUPPORTED_SCHEMA_VERSION,
            "bucketname": bucket,
            "fileguid": object_key,
        }

        logger.info("Publishing backup request: s3://%s/%s", bucket, object_key)

        self._queue_client.declare_queue(self.queue_name)
        return self._queue_client.publish(self.queue_name, message)
