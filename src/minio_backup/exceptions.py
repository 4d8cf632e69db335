"""Exception hierarchy for the backup manager."""


class BackupManagerError(Exception):
    """Base exception for backup manager errors."""


class ConfigurationError(BackupManagerError):
    """Raised when required configuration is missing or invalid."""


class DecodeError(BackupManagerError):
    """Raised when a message payload is not a parseable JSON object."""


class StoreError(BackupManagerError):
    """Raised when an object store call fails."""

    def __init__(self, bucket: str, key: str | None, cause: Exception | str):
        self.bucket = bucket
        self.key = key
        self.cause = cause
        location = f"s3://{bucket}/{key}" if key else f"s3://{bucket}"
        super().__init__(f"{location}: {cause}")


class StoreTimeoutError(StoreError):
    """Raised when an object store call exceeds its bounded wait."""


class ReplicationError(BackupManagerError):
    """Raised when copying an object to the backup store fails."""

    def __init__(self, bucket: str, object_key: str, stage: str, cause: Exception):
        self.bucket = bucket
        self.object_key = object_key
        self.stage = stage
        self.cause = cause
        super().__init__(
            f"{stage} failed for {object_key} in bucket {bucket}: {cause}"
        )

    @property
    def timed_out(self) -> bool:
        """True when the underlying store call hit its timeout."""
        return isinstance(self.cause, StoreTimeoutError)
