"""Decoding of raw queue payloads into replication requests."""

import json
from typing import Any

from minio_backup.exceptions import DecodeError
from minio_backup.models.schemas import SUPPORTED_SCHEMA_VERSION, ReplicationRequest


def parse_payload(body: bytes) -> dict[str, Any]:
    """
    Parse a raw payload into a generic JSON object.

    Raises:
        DecodeError: If the payload is not UTF-8 JSON with an object at the top level.
    """
    try:
        parsed = json.loads(body.decode("utf-8"))
    except UnicodeDecodeError as e:
        raise DecodeError(f"Payload is not valid UTF-8: {e}") from e
    except json.JSONDecodeError as e:
        raise DecodeError(f"Payload is not valid JSON: {e}") from e

    if not isinstance(parsed, dict):
        raise DecodeError(
            f"Payload must be a JSON object, got {type(parsed).__name__}"
        )
    return parsed


def _non_empty_str(value: Any) -> str | None:
    if isinstance(value, str) and value:
        return value
    return None


def decode(body: bytes) -> ReplicationRequest | None:
    """
    Decode a queue payload into a ReplicationRequest.

    Only version 1 events carrying both a bucket name and a file guid are
    accepted. Anything else yields None so the caller can skip it.

    Args:
        body: Raw message bytes.

    Returns:
        The request, or None if the message is not meant for this consumer.

    Raises:
        DecodeError: If the payload cannot be parsed at all.
    """
    payload = parse_payload(body)

    version = payload.get("version")
    # bool is an int subclass; true must not pass as version 1
    if isinstance(version, bool) or not isinstance(version, int):
        return None
    if version != SUPPORTED_SCHEMA_VERSION:
        return None

    bucket = _non_empty_str(payload.get("bucketname"))
    object_key = _non_empty_str(payload.get("fileguid"))
    if bucket is None or object_key is None:
        return None

    return ReplicationRequest(
        schema_version=version,
        bucket=bucket,
        object_key=object_key,
    )
