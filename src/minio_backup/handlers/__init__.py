"""Handlers package."""

from minio_backup.handlers.backup import BackupConsumer, copy_to_backup

__all__ = ["BackupConsumer", "copy_to_backup"]
