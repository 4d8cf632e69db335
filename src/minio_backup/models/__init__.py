"""Models package."""

from minio_backup.models.schemas import (
    Delivery,
    DeliveryOutcome,
    ReplicationRequest,
    ReplicationResult,
)

__all__ = ["Delivery", "DeliveryOutcome", "ReplicationRequest", "ReplicationResult"]
