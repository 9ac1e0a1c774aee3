"""
SQS integration for the property import queue.

The queue URL is resolved once by an explicit ``connect_import_queue()`` call,
which returns an immutable ``QueueHandle``. The handle is passed to the import
dispatcher and the queue consumer; nothing here caches it at module level.

The queue is expected to be FIFO: messages carry a MessageGroupId (ordering
scope) and a MessageDeduplicationId (the caller's idempotency key).
"""
from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

import boto3
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError

from .errors import QueueConfigError, QueuePublishError
from .redis_client import truthy

logger = logging.getLogger("realty.queue")


@dataclass(frozen=True)
class QueueSettings:
    queue_name: str
    region: Optional[str] = None
    endpoint_url: Optional[str] = None
    access_key_id: Optional[str] = None
    secret_access_key: Optional[str] = None


@dataclass(frozen=True)
class QueueHandle:
    """A resolved queue: the boto3 SQS client plus the queue URL."""
    client: Any
    queue_url: str
    queue_name: str


def is_queue_enabled() -> bool:
    return truthy(os.getenv("SQS_ENABLED", "false"))


def load_queue_settings() -> QueueSettings:
    return QueueSettings(
        queue_name=os.getenv("SQS_QUEUE_NAME") or "property-import-queue.fifo",
        region=os.getenv("AWS_REGION") or None,
        endpoint_url=os.getenv("SQS_ENDPOINT") or None,
        access_key_id=os.getenv("AWS_ACCESS_KEY_ID") or None,
        secret_access_key=os.getenv("AWS_SECRET_ACCESS_KEY") or None,
    )


def create_sqs_client(settings: QueueSettings):
    """
    Build a boto3 SQS client.

    endpoint_url is set for local emulators (LocalStack, ElasticMQ); credentials
    fall back to boto3's default chain when not configured explicitly.
    """
    config = Config(retries={"max_attempts": 3, "mode": "standard"})
    client_kwargs: Dict[str, Any] = {"service_name": "sqs", "config": config}
    if settings.region:
        client_kwargs["region_name"] = settings.region
    if settings.endpoint_url:
        client_kwargs["endpoint_url"] = settings.endpoint_url
    if settings.access_key_id and settings.secret_access_key:
        client_kwargs["aws_access_key_id"] = settings.access_key_id
        client_kwargs["aws_secret_access_key"] = settings.secret_access_key
    try:
        return boto3.client(**client_kwargs)
    except (BotoCoreError, ValueError) as exc:
        raise QueueConfigError(f"Failed to create SQS client: {exc}") from exc


def connect_import_queue(settings: Optional[QueueSettings] = None, client: Any = None) -> QueueHandle:
    """
    Resolve the import queue URL and return a handle.

    Raises QueueConfigError if the client cannot be built or the queue does not exist.
    """
    settings = settings or load_queue_settings()
    client = client or create_sqs_client(settings)
    try:
        response = client.get_queue_url(QueueName=settings.queue_name)
    except (ClientError, BotoCoreError) as exc:
        logger.error("Failed to get queue URL for %s: %s", settings.queue_name, exc)
        raise QueueConfigError(f"Failed to get queue URL: {exc}") from exc

    queue_url = response.get("QueueUrl")
    if not queue_url:
        raise QueueConfigError("Queue URL not found in response")
    logger.info("Resolved import queue %s -> %s", settings.queue_name, queue_url)
    return QueueHandle(client=client, queue_url=queue_url, queue_name=settings.queue_name)


def publish_message(
    handle: QueueHandle,
    body: Dict[str, Any],
    message_group_id: str,
    deduplication_id: str,
) -> str:
    """Send a JSON message to the queue and return its MessageId."""
    try:
        result = handle.client.send_message(
            QueueUrl=handle.queue_url,
            MessageBody=json.dumps(body),
            MessageGroupId=message_group_id,
            MessageDeduplicationId=deduplication_id,
        )
    except (ClientError, BotoCoreError) as exc:
        logger.error("Failed to send message: %s", exc)
        raise QueuePublishError(f"SQS operation failed: {exc}") from exc

    message_id = result.get("MessageId")
    if not message_id:
        raise QueuePublishError("SQS operation failed: Message ID not received")
    logger.info("Message sent with ID: %s", message_id)
    return message_id


def receive_messages(handle: QueueHandle, max_messages: int = 10, wait_seconds: int = 20) -> List[Dict[str, Any]]:
    """Long-poll for up to `max_messages` messages. Returns [] when the wait times out."""
    response = handle.client.receive_message(
        QueueUrl=handle.queue_url,
        MaxNumberOfMessages=max_messages,
        WaitTimeSeconds=wait_seconds,
    )
    return response.get("Messages", [])


def delete_message(handle: QueueHandle, receipt_handle: str) -> None:
    handle.client.delete_message(QueueUrl=handle.queue_url, ReceiptHandle=receipt_handle)
