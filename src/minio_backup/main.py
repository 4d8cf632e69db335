"""Main entry point for the MinIO backup manager."""

import argparse
import logging
import sys

from dependency_injector import providers
from pika.exceptions import AMQPError

from minio_backup.config import Config
from minio_backup.exceptions import ConfigurationError
from minio_backup.infrastructure import DependenciesContainer

logger = logging.getLogger(__name__)


def setup_logging(level: str = "INFO") -> None:
    """Configure logging to stdout."""
    logging.basicConfig(
        level=getattr(logging, level, logging.INFO),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        handlers=[logging.StreamHandler(sys.stdout)],
    )
    # pika is chatty at INFO
    logging.getLogger("pika").setLevel(logging.WARNING)


def build_container(config: Config) -> DependenciesContainer:
    """Create the DI container bound to an already validated config."""
    container = DependenciesContainer()
    container.config.override(providers.Object(config))
    return container


def run_backup_manager(container: DependenciesContainer) -> None:
    """
    Subscribe to backup events and copy objects until the process stops.

    Args:
        container: DI container.
    """
    config = container.config()

    logger.info("=" * 60)
    logger.info("Starting backup manager")
    logger.info("=" * 60)
    logger.info(
        'Manager will copy objects from "%s" to "%s" when getting events from "%s"',
        config.src_name,
        config.dst_name,
        config.rabbitmq_host,
    )
    logger.info("src = %s", config.source.endpoint)
    logger.info("dst = %s", config.destination.endpoint)
    logger.info("Invalid message policy: %s", config.invalid_message_policy)

    consumer = container.backup_consumer()

    logger.info("Subscribing to events")
    consumer.run()

    logger.error("Backup manager exited unexpectedly")


def publish_request(container: DependenciesContainer, bucket: str, object_key: str) -> bool:
    """Publish a single backup request and close the connection."""
    publisher = container.backup_publisher()
    try:
        return publisher.publish_backup_request(bucket, object_key)
    finally:
        container.queue_client().close()


def main(argv: list[str] | None = None) -> None:
    """Entry point with CLI argument parsing."""
    parser = argparse.ArgumentParser(
        description="Copy MinIO objects to a backup MinIO on RabbitMQ events"
    )
    subparsers = parser.add_subparsers(dest="command")

    subparsers.add_parser("run", help="Consume backup events (default)")

    publish_parser = subparsers.add_parser(
        "publish", help="Publish a backup request for one object"
    )
    publish_parser.add_argument("bucket", help="Bucket holding the object")
    publish_parser.add_argument("object_key", help="Object key (file guid)")

    args = parser.parse_args(argv)

    try:
        config = Config.from_env()
    except ConfigurationError as e:
        setup_logging()
        logger.error("Configuration error: %s", e)
        sys.exit(1)

    setup_logging(config.log_level)

    try:
        config.validate(require_stores=args.command != "publish")
        container = build_container(config)

        if args.command == "publish":
            if not publish_request(container, args.bucket, args.object_key):
                sys.exit(1)
            return

        run_backup_manager(container)
        sys.exit(1)
    except KeyboardInterrupt:
        logger.info("Interrupted by user")
        sys.exit(0)
    except ConfigurationError as e:
        logger.error("Configuration error: %s", e)
        sys.exit(1)
    except AMQPError as e:
        logger.error("RabbitMQ error: %s", e, exc_info=True)
        sys.exit(1)


if __name__ == "__main__":
    main()
