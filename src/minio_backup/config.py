"""Configuration management for the backup manager."""

import os
from dataclasses import dataclass
from typing import Any

from dotenv import load_dotenv

from minio_backup.exceptions import ConfigurationError

# Load env from DOTENV_PATH or the working directory
load_dotenv(os.getenv("DOTENV_PATH"))

INVALID_MESSAGE_POLICIES = ("reject", "ack", "leave")


def _env_number(name: str, default: str, cast: type) -> Any:
    """Read a numeric environment variable, naming it when it does not parse."""
    raw = os.getenv(name, default)
    try:
        return cast(raw)
    except ValueError as e:
        raise ConfigurationError(
            f"{name} must be a {cast.__name__}, got {raw!r}"
        ) from e


@dataclass(frozen=True)
class StoreSettings:
    """Connection settings for one MinIO endpoint."""

    endpoint: str
    access_key: str
    secret_key: str
    region: str = "eu-west-1"


@dataclass
class Config:
    """Worker configuration loaded from environment variables."""

    # Source MinIO
    src_name: str = ""
    src_port: str = ""
    src_access_key: str = ""
    src_secret_key: str = ""

    # Destination (backup) MinIO
    dst_name: str = ""
    dst_port: str = ""
    dst_access_key: str = ""
    dst_secret_key: str = ""

    region: str = "eu-west-1"
    store_connect_timeout: float = 10.0
    store_read_timeout: float = 60.0
    store_transfer_timeout: float = 300.0

    # RabbitMQ
    rabbitmq_host: str = ""
    rabbitmq_port: int = 5672
    rabbitmq_heartbeat: int = 60
    queue_name: str = "file_transfer_queue"
    invalid_message_policy: str = "reject"

    log_level: str = "INFO"

    @classmethod
    def from_env(cls) -> "Config":
        """
        Build a Config from the current process environment.

        Raises:
            ConfigurationError: If a numeric variable does not parse.
        """
        return cls(
            src_name=os.getenv("MINIO_SRC_NAME", ""),
            src_port=os.getenv("MINIO_SRC_PORT", ""),
            src_access_key=os.getenv("MINIO_SRC_ACCESS_KEY", ""),
            src_secret_key=os.getenv("MINIO_SRC_SECRET_KEY", ""),
            dst_name=os.getenv("MINIO_DST_NAME", ""),
            dst_port=os.getenv("MINIO_DST_PORT", ""),
            dst_access_key=os.getenv("MINIO_DST_ACCESS_KEY", ""),
            dst_secret_key=os.getenv("MINIO_DST_SECRET_KEY", ""),
            region=os.getenv("MINIO_REGION", "eu-west-1"),
            store_connect_timeout=_env_number("STORE_CONNECT_TIMEOUT", "10", float),
            store_read_timeout=_env_number("STORE_READ_TIMEOUT", "60", float),
            store_transfer_timeout=_env_number("STORE_TRANSFER_TIMEOUT", "300", float),
            rabbitmq_host=os.getenv("RABBITMQ", ""),
            rabbitmq_port=_env_number("RABBITMQ_PORT", "5672", int),
            rabbitmq_heartbeat=_env_number("RABBITMQ_HEARTBEAT", "60", int),
            queue_name=os.getenv("QUEUE_NAME", "file_transfer_queue"),
            invalid_message_policy=os.getenv("INVALID_MESSAGE_POLICY", "reject").lower(),
            log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
        )

    @property
    def source(self) -> StoreSettings:
        return StoreSettings(
            endpoint=f"http://{self.src_name}:{self.src_port}",
            access_key=self.src_access_key,
            secret_key=self.src_secret_key,
            region=self.region,
        )

    @property
    def destination(self) -> StoreSettings:
        return StoreSettings(
            endpoint=f"http://{self.dst_name}:{self.dst_port}",
            access_key=self.dst_access_key,
            secret_key=self.dst_secret_key,
            region=self.region,
        )

    def validate(self, require_stores: bool = True) -> None:
        """
        Validate required configuration.

        Args:
            require_stores: Also require both MinIO endpoints and credentials.

        Raises:
            ConfigurationError: If a required variable is missing or invalid.
        """
        required = {"RABBITMQ": self.rabbitmq_host}
        if require_stores:
            required.update(
                {
                    "MINIO_SRC_NAME": self.src_name,
                    "MINIO_SRC_PORT": self.src_port,
                    "MINIO_SRC_ACCESS_KEY": self.src_access_key,
                    "MINIO_SRC_SECRET_KEY": self.src_secret_key,
                    "MINIO_DST_NAME": self.dst_name,
                    "MINIO_DST_PORT": self.dst_port,
                    "MINIO_DST_ACCESS_KEY": self.dst_access_key,
                    "MINIO_DST_SECRET_KEY": self.dst_secret_key,
                }
            )
        missing = [name for name, value in required.items() if not value]
        if missing:
            raise ConfigurationError(
                f"Missing required environment variables: {', '.join(missing)}"
            )

        if self.invalid_message_policy not in INVALID_MESSAGE_POLICIES:
            raise ConfigurationError(
                f"INVALID_MESSAGE_POLICY must be one of {INVALID_MESSAGE_POLICIES}, "
                f"got {self.invalid_message_policy!r}"
            )
