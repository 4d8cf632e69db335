"""MinIO backup manager: replicates objects to a backup store on queue events."""

__version__ = "1.0.0"
