"""Dependency injection container for the application."""

import boto3
import pika
from botocore.config import Config as BotoConfig
from dependency_injector import providers
from dependency_injector.containers import DeclarativeContainer

from minio_backup.config import Config, StoreSettings
from minio_backup.infrastructure.rabbitmq_client import RabbitMQClient
from minio_backup.infrastructure.s3_client import S3Client


def _load_config() -> Config:
    """Load and validate configuration from the environment."""
    config = Config.from_env()
    config.validate()
    return config


def _create_s3_boto_client(
    settings: StoreSettings,
    connect_timeout: float,
    read_timeout: float,
):
    """Create a boto3 S3 client for a MinIO endpoint."""
    boto_config = BotoConfig(
        signature_version="s3v4",
        s3={"addressing_style": "path"},  # required for minio
        connect_timeout=connect_timeout,
        read_timeout=read_timeout,
        retries={"max_attempts": 0},
    )
    return boto3.client(
        "s3",
        endpoint_url=settings.endpoint,
        aws_access_key_id=settings.access_key,
        aws_secret_access_key=settings.secret_key,
        region_name=settings.region,
        config=boto_config,
    )


def _create_rabbitmq_connection(host: str, port: int, heartbeat: int):
    """Open a blocking connection to RabbitMQ."""
    parameters = pika.ConnectionParameters(
        host=host,
        port=port,
        heartbeat=heartbeat,
    )
    return pika.BlockingConnection(parameters)


def _create_replicator(source: S3Client, destination: S3Client):
    """Factory for BackupReplicator to avoid circular import."""
    from minio_backup.services.replicator import BackupReplicator

    return BackupReplicator(source, destination)


def _create_backup_publisher(queue_client: RabbitMQClient, queue_name: str):
    """Factory for BackupPublisher to avoid circular import."""
    from minio_backup.services.backup_publisher import BackupPublisher

    return BackupPublisher(queue_client, queue_name)


def _create_backup_consumer(
    queue_client: RabbitMQClient,
    replicator,
    queue_name: str,
    invalid_message_policy: str,
):
    """Factory for BackupConsumer to avoid circular import."""
    from minio_backup.handlers.backup import BackupConsumer

    return BackupConsumer(
        queue_client=queue_client,
        replicator=replicator,
        queue_name=queue_name,
        invalid_message_policy=invalid_message_policy,
    )


class DependenciesContainer(DeclarativeContainer):
    """DI container for the application."""

    config = providers.Singleton(_load_config)

    # Source MinIO
    source_boto_client = providers.Singleton(
        _create_s3_boto_client,
        settings=config.provided.source,
        connect_timeout=config.provided.store_connect_timeout,
        read_timeout=config.provided.store_read_timeout,
    )

    source_client = providers.Singleton(
        S3Client,
        client=source_boto_client,
        region=config.provided.region,
        transfer_timeout=config.provided.store_transfer_timeout,
    )

    # Backup MinIO
    destination_boto_client = providers.Singleton(
        _create_s3_boto_client,
        settings=config.provided.destination,
        connect_timeout=config.provided.store_connect_timeout,
        read_timeout=config.provided.store_read_timeout,
    )

    destination_client = providers.Singleton(
        S3Client,
        client=destination_boto_client,
        region=config.provided.region,
        transfer_timeout=config.provided.store_transfer_timeout,
    )

    replicator = providers.Singleton(
        _create_replicator,
        source=source_client,
        destination=destination_client,
    )

    # RabbitMQ dependency chain
    rabbitmq_connection = providers.Singleton(
        _create_rabbitmq_connection,
        host=config.provided.rabbitmq_host,
        port=config.provided.rabbitmq_port,
        heartbeat=config.provided.rabbitmq_heartbeat,
    )

    queue_client = providers.Singleton(
        RabbitMQClient,
        connection=rabbitmq_connection,
    )

    backup_consumer = providers.Singleton(
        _create_backup_consumer,
        queue_client=queue_client,
        replicator=replicator,
        queue_name=config.provided.queue_name,
        invalid_message_policy=config.provided.invalid_message_policy,
    )

    backup_publisher = providers.Singleton(
        _create_backup_publisher,
        queue_client=queue_client,
        queue_name=config.provided.queue_name,
    )
