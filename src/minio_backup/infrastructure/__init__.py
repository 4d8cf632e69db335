"""Infrastructure package."""

from minio_backup.infrastructure.dependency_injection import DependenciesContainer
from minio_backup.infrastructure.rabbitmq_client import RabbitMQClient
from minio_backup.infrastructure.s3_client import S3Client

__all__ = [
    "DependenciesContainer",
    "RabbitMQClient",
    "S3Client",
]
