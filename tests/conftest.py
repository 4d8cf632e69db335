"""Shared fixtures: in-memory stand-ins for boto3 S3 and a pika connection."""

import io
import threading
import time
from collections import defaultdict, deque
from types import SimpleNamespace

import pytest
from botocore.exceptions import ClientError

from minio_backup.infrastructure.rabbitmq_client import RabbitMQClient
from minio_backup.infrastructure.s3_client import S3Client
from minio_backup.services.replicator import BackupReplicator


def _client_error(code: str, operation: str) -> ClientError:
    return ClientError({"Error": {"Code": code, "Message": code}}, operation)


class FakeS3:
    """Minimal in-memory boto3 S3 client."""

    def __init__(self):
        self.buckets: dict[str, dict[str, bytes]] = {}
        self.put_status = 200
        self.calls: list[str] = []

    def head_bucket(self, Bucket):
        self.calls.append("head_bucket")
        if Bucket not in self.buckets:
            raise _client_error("404", "HeadBucket")
        return {}

    def create_bucket(self, Bucket, CreateBucketConfiguration=None):
        self.calls.append("create_bucket")
        if Bucket in self.buckets:
            raise _client_error("BucketAlreadyOwnedByYou", "CreateBucket")
        self.buckets[Bucket] = {}
        return {}

    def get_object(self, Bucket, Key):
        self.calls.append("get_object")
        if Bucket not in self.buckets:
            raise _client_error("NoSuchBucket", "GetObject")
        if Key not in self.buckets[Bucket]:
            raise _client_error("NoSuchKey", "GetObject")
        return {"Body": io.BytesIO(self.buckets[Bucket][Key])}

    def put_object(self, Bucket, Key, Body):
        self.calls.append("put_object")
        if Bucket not in self.buckets:
            raise _client_error("NoSuchBucket", "PutObject")
        if self.put_status == 200:
            self.buckets[Bucket][Key] = bytes(Body)
        return {"ResponseMetadata": {"HTTPStatusCode": self.put_status}}


class FakeChannel:
    """In-memory broker channel honouring prefetch and manual acks."""

    def __init__(self):
        self.queues: dict[str, deque] = defaultdict(deque)
        self.declared: dict[str, dict] = {}
        self.qos: dict | None = None
        self.acked: list[int] = []
        self.rejected: list[tuple[int, bool]] = []
        self.unacked: dict[int, bytes] = {}
        self.published_properties: list = []
        self._consumer = None
        self._next_tag = 1
        self._cond = threading.Condition()

    def queue_declare(self, queue, durable, exclusive, auto_delete):
        self.declared[queue] = {
            "durable": durable,
            "exclusive": exclusive,
            "auto_delete": auto_delete,
        }

    def basic_qos(self, prefetch_size, prefetch_count, global_qos):
        self.qos = {
            "prefetch_size": prefetch_size,
            "prefetch_count": prefetch_count,
            "global_qos": global_qos,
        }

    def basic_consume(self, queue, on_message_callback, auto_ack):
        self._consumer = (queue, on_message_callback, auto_ack)
        return "ctag-1"

    def basic_publish(self, exchange, routing_key, body, properties=None):
        with self._cond:
            self.queues[routing_key].append(body)
            self.published_properties.append(properties)
            self._cond.notify_all()

    def basic_ack(self, delivery_tag, multiple=False):
        assert multiple is False
        with self._cond:
            self.unacked.pop(delivery_tag)
            self.acked.append(delivery_tag)
            self._cond.notify_all()

    def basic_reject(self, delivery_tag, requeue=True):
        with self._cond:
            body = self.unacked.pop(delivery_tag)
            self.rejected.append((delivery_tag, requeue))
            if requeue:
                queue = self._consumer[0]
                self.queues[queue].appendleft(body)
            self._cond.notify_all()

    def depth(self, queue: str) -> int:
        """Ready plus unacknowledged messages."""
        with self._cond:
            return len(self.queues[queue]) + len(self.unacked)

    def start_consuming(self, timeout: float = 5.0):
        """Dispatch until the queue drains or the timeout elapses."""
        queue, callback, _ = self._consumer
        prefetch = self.qos["prefetch_count"] if self.qos else 0
        deadline = time.monotonic() + timeout

        with self._cond:
            while True:
                while self.queues[queue] and (
                    prefetch == 0 or len(self.unacked) < prefetch
                ):
                    body = self.queues[queue].popleft()
                    tag = self._next_tag
                    self._next_tag += 1
                    self.unacked[tag] = body
                    method = SimpleNamespace(delivery_tag=tag, redelivered=False)
                    callback(self, method, None, body)

                if not self.queues[queue] and not self.unacked:
                    return
                remaining = deadline - time.monotonic()
                if remaining <= 0:
                    return
                self._cond.wait(remaining)


class FakeConnection:
    """Stands in for pika.BlockingConnection."""

    def __init__(self):
        self.fake_channel = FakeChannel()
        self.is_open = True

    def channel(self):
        return self.fake_channel

    def add_callback_threadsafe(self, callback):
        callback()

    def close(self):
        self.is_open = False


@pytest.fixture
def source_s3():
    return FakeS3()


@pytest.fixture
def backup_s3():
    return FakeS3()


@pytest.fixture
def replicator(source_s3, backup_s3):
    return BackupReplicator(S3Client(source_s3), S3Client(backup_s3))


@pytest.fixture
def connection():
    return FakeConnection()


@pytest.fixture
def channel(connection):
    return connection.fake_channel


@pytest.fixture
def queue_client(connection):
    return RabbitMQClient(connection)
