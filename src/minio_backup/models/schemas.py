"""Pydantic models for backup requests and results."""

from dataclasses import dataclass
from enum import Enum
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

SUPPORTED_SCHEMA_VERSION = 1


class ReplicationRequest(BaseModel):
    """A request to copy one object to the backup store."""

    model_config = ConfigDict(frozen=True)

    schema_version: Literal[1] = SUPPORTED_SCHEMA_VERSION
    bucket: str = Field(min_length=1)
    object_key: str = Field(min_length=1)


class ReplicationResult(BaseModel):
    """Result of a replication attempt."""

    bucket: str
    object_key: str
    size: int | None = None
    success: bool
    timed_out: bool = False
    error: str | None = None


@dataclass(frozen=True)
class Delivery:
    """A message delivered by the broker, before decoding."""

    delivery_tag: int
    body: bytes
    redelivered: bool = False


class DeliveryOutcome(str, Enum):
    """Terminal state of processing a single delivery."""

    ACKNOWLEDGED = "acknowledged"
    IGNORED = "ignored"
    MALFORMED = "malformed"
    FAILED = "failed"
