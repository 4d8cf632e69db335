from .backup_publisher import BackupPublisher
from .event_decoder import decode, parse_payload
from .replicator import BackupReplicator

__all__ = [
    "BackupPublisher",
    "BackupReplicator",
    "decode",
    "parse_payload",
]
