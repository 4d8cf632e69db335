"""Backup handler: consumes backup events and copies objects one at a time."""

import logging
from concurrent.futures import Executor, ThreadPoolExecutor

from minio_backup.exceptions import DecodeError, ReplicationError
from minio_backup.infrastructure.rabbitmq_client import RabbitMQClient
from minio_backup.models.schemas import (
    Delivery,
    DeliveryOutcome,
    ReplicationRequest,
    ReplicationResult,
)
from minio_backup.services.event_decoder import decode
from minio_backup.services.replicator import BackupReplicator

logger = logging.getLogger(__name__)


def copy_to_backup(
    request: ReplicationRequest,
    replicator: BackupReplicator,
) -> ReplicationResult:
    """
    Copy one object to the backup store, reporting failures instead of raising.

    Args:
        request: Decoded backup request.
        replicator: Replication service.

    Returns:
        ReplicationResult with size and success status.
    """
    try:
        size = replicator.replicate(request)
    except ReplicationError as e:
        logger.error(
            "An error occurred while backing up file %s to bucket %s "
            "(stage=%s, timed_out=%s): %s",
            e.object_key,
            e.bucket,
            e.stage,
            e.timed_out,
            e.cause,
        )
        return ReplicationResult(
            bucket=request.bucket,
            object_key=request.object_key,
            success=False,
            timed_out=e.timed_out,
            error=str(e),
        )

    return ReplicationResult(
        bucket=request.bucket,
        object_key=request.object_key,
        size=size,
        success=True,
    )


class BackupConsumer:
    """
    Owns the subscription to the backup queue.

    The broker hands this consumer at most one unacknowledged message
    (prefetch=1), and deliveries are processed on a single worker thread so
    the connection thread stays free for heartbeats. A delivery is
    acknowledged only after its object has been copied.
    """

    def __init__(
        self,
        queue_client: RabbitMQClient,
        replicator: BackupReplicator,
        queue_name: str = "file_transfer_queue",
        invalid_message_policy: str = "reject",
        executor: Executor | None = None,
    ):
        self._queue_client = queue_client
        self._replicator = replicator
        self.queue_name = queue_name
        self.invalid_message_policy = invalid_message_policy
        self._executor = executor or ThreadPoolExecutor(
            max_workers=1, thread_name_prefix="backup-worker"
        )

        self.copied_count = 0
        self.failed_count = 0
        self.ignored_count = 0
        self.malformed_count = 0

    def run(self) -> None:
        """
        Subscribe and process deliveries forever.

        Returns only when the broker connection is lost, in which case the
        pika connection error propagates to the caller.
        """
        self._queue_client.declare_queue(self.queue_name)
        self._queue_client.set_prefetch(1)
        self._queue_client.consume(self.queue_name, self.on_delivery)

        logger.info("Listening on %s...", self.queue_name)
        try:
            self._queue_client.start_consuming()
        finally:
            self._executor.shutdown(wait=False)

    def on_delivery(self, delivery: Delivery) -> None:
        """Hand a delivery to the worker thread. Called on the connection thread."""
        self._executor.submit(self.handle_delivery, delivery)

    def handle_delivery(self, delivery: Delivery) -> DeliveryOutcome:
        """Process a delivery, never letting a single message take the worker down."""
        try:
            outcome = self.process_delivery(delivery)
        except Exception as e:
            logger.error(
                "Unexpected error handling delivery %d: %s",
                delivery.delivery_tag,
                e,
                exc_info=True,
            )
            outcome = DeliveryOutcome.FAILED

        if outcome is DeliveryOutcome.ACKNOWLEDGED:
            self.copied_count += 1
        elif outcome is DeliveryOutcome.FAILED:
            self.failed_count += 1
        elif outcome is DeliveryOutcome.MALFORMED:
            self.malformed_count += 1
        else:
            self.ignored_count += 1

        logger.info(
            "Stats: %d copied, %d failed, %d ignored, %d malformed",
            self.copied_count,
            self.failed_count,
            self.ignored_count,
            self.malformed_count,
        )
        return outcome

    def process_delivery(self, delivery: Delivery) -> DeliveryOutcome:
        """
        Run one delivery through decode, copy and acknowledgment.

        Args:
            delivery: The message as received from the broker.

        Returns:
            The terminal outcome for this delivery.
        """
        tag = delivery.delivery_tag

        try:
            request = decode(delivery.body)
        except DecodeError as e:
            logger.error("Malformed message (delivery %d): %s", tag, e)
            self._settle_malformed(tag)
            return DeliveryOutcome.MALFORMED

        if request is None:
            logger.warning(
                "Ignoring message (delivery %d): not a version 1 event "
                "with a bucketname and a fileguid",
                tag,
            )
            self._settle_invalid(tag)
            return DeliveryOutcome.IGNORED

        logger.info(
            "Event received, beginning to copy %s from the %s bucket%s",
            request.object_key,
            request.bucket,
            " (redelivered)" if delivery.redelivered else "",
        )

        result = copy_to_backup(request, self._replicator)
        if not result.success:
            # Left unacknowledged; the broker redelivers after reconnect
            return DeliveryOutcome.FAILED

        logger.info(
            "File %s (%d bytes) has successfully been copied to backup",
            result.object_key,
            result.size,
        )
        self._queue_client.ack(tag)
        return DeliveryOutcome.ACKNOWLEDGED

    def _settle_invalid(self, delivery_tag: int) -> None:
        if self.invalid_message_policy == "reject":
            self._queue_client.reject(delivery_tag, requeue=False)
        elif self.invalid_message_policy == "ack":
            self._queue_client.ack(delivery_tag)

    def _settle_malformed(self, delivery_tag: int) -> None:
        # Unparseable payloads are never acknowledged, whatever the policy
        if self.invalid_message_policy != "leave":
            self._queue_client.reject(delivery_tag, requeue=False)
