"""RabbitMQ client wrapper for queue operations."""

import functools
import json
import logging
from typing import Any, Callable

import pika
from pika.exceptions import AMQPError

from minio_backup.models.schemas import Delivery

logger = logging.getLogger(__name__)


class RabbitMQClient:
    """Handles RabbitMQ operations on a single channel."""

    def __init__(self, connection: Any):
        """
        Initialize RabbitMQ client wrapper.

        Args:
            connection: pika BlockingConnection instance.
        """
        self._connection = connection
        self._channel = None

    @property
    def channel(self) -> Any:
        """Get the channel, opening it on first use."""
        if self._channel is None:
            self._channel = self._connection.channel()
        return self._channel

    def declare_queue(self, queue: str) -> None:
        """
        Declare a durable, shared queue.

        Args:
            queue: Queue name.
        """
        self.channel.queue_declare(
            queue=queue,
            durable=True,  # survives broker restart
            exclusive=False,
            auto_delete=False,
        )
        logger.info("Declared queue: %s", queue)

    def set_prefetch(self, count: int = 1) -> None:
        """
        Limit unacknowledged deliveries on this channel.

        Args:
            count: Maximum unacknowledged messages; size is unlimited.
        """
        self.channel.basic_qos(prefetch_size=0, prefetch_count=count, global_qos=False)

    def consume(self, queue: str, on_delivery: Callable[[Delivery], None]) -> str:
        """
        Register a manual-ack consumer on a queue.

        Args:
            queue: Queue name.
            on_delivery: Called on the connection thread for every message.

        Returns:
            The consumer tag.
        """

        def _on_message(channel, method, properties, body):
            on_delivery(
                Delivery(
                    delivery_tag=method.delivery_tag,
                    body=body,
                    redelivered=bool(method.redelivered),
                )
            )

        return self.channel.basic_consume(
            queue=queue,
            on_message_callback=_on_message,
            auto_ack=False,
        )

    def start_consuming(self) -> None:
        """Block and dispatch deliveries until the connection closes."""
        self.channel.start_consuming()

    def ack(self, delivery_tag: int) -> None:
        """Acknowledge exactly one delivery. Safe to call from any thread."""
        self._connection.add_callback_threadsafe(
            functools.partial(
                self.channel.basic_ack, delivery_tag=delivery_tag, multiple=False
            )
        )

    def reject(self, delivery_tag: int, requeue: bool = False) -> None:
        """Reject exactly one delivery. Safe to call from any thread."""
        self._connection.add_callback_threadsafe(
            functools.partial(
                self.channel.basic_reject, delivery_tag=delivery_tag, requeue=requeue
            )
        )

    def publish(self, queue: str, message_body: dict) -> bool:
        """
        Publish a persistent JSON message via the default exchange.

        Args:
            queue: Destination queue name (used as routing key).
            message_body: Message payload as dict.

        Returns:
            True if successful, False otherwise.
        """
        try:
            self.channel.basic_publish(
                exchange="",
                routing_key=queue,
                body=json.dumps(message_body).encode("utf-8"),
                properties=pika.BasicProperties(
                    content_type="application/json",
                    delivery_mode=2,  # persistent
                ),
            )
            logger.info("Published message to %s", queue)
            return True
        except AMQPError as e:
            logger.error("Failed to publish message to %s: %s", queue, e)
            return False

    def close(self) -> None:
        """Close the underlying connection if it is still open."""
        if self._connection.is_open:
            self._connection.close()
