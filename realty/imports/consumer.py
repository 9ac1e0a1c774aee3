# Queue consumer for property import jobs.
# Decodes a queued job and calls the shared processing entry point; retries are left to SQS redelivery.
from __future__ import annotations

import base64
import binascii
import logging
import time
from typing import Callable, Optional

from pydantic import ValidationError

from .. import schemas
from ..errors import ParseError
from ..queue import QueueHandle, delete_message, receive_messages
from .processing import process_import

logger = logging.getLogger("realty.imports")


def decode_job(body: str) -> tuple[schemas.ImportJobPayload, bytes]:
    """Validate a queue message body and return (payload, decoded file bytes)."""
    try:
        payload = schemas.ImportJobPayload.model_validate_json(body)
    except ValidationError as exc:
        raise ParseError(f"malformed import job payload: {exc.error_count()} validation error(s)") from exc
    try:
        file_bytes = base64.b64decode(payload.file_buffer, validate=True)
    except (binascii.Error, ValueError) as exc:
        raise ParseError("fileBuffer is not valid base64") from exc
    return payload, file_bytes


def handle_import_message(body: str, processor: Callable[..., object] = process_import):
    """
    Process one queued import job.

    Failures are logged and re-raised so the queue's redelivery / dead-letter
    policy decides what happens next.
    """
    key: Optional[str] = None
    try:
        payload, file_bytes = decode_job(body)
        key = payload.idempotency_key
        logger.info("Processing import job: %s", key)
        result = processor(file_bytes, payload.tenant_id, idempotency_key=key)
        logger.info("Import job completed: %s", key)
        return result
    except Exception as exc:
        logger.error("Import job failed: %s", exc, extra={"idempotency_key": key})
        raise


class ImportConsumer:
    """
    Long-polling SQS worker loop.

    A message is deleted only after it was processed successfully. A failing
    message stays on the queue and becomes visible again after the visibility
    timeout; the queue's redrive policy moves it to the dead-letter queue.
    """

    def __init__(
        self,
        queue: QueueHandle,
        processor: Callable[..., object] = process_import,
        wait_seconds: int = 20,
        max_messages: int = 1,
        error_backoff_seconds: float = 1.0,
        max_backoff_seconds: float = 60.0,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self.queue = queue
        self.processor = processor
        self.wait_seconds = wait_seconds
        self.max_messages = max_messages
        self.error_backoff_seconds = error_backoff_seconds
        self.max_backoff_seconds = max_backoff_seconds
        self._sleep = sleep

    def poll_once(self) -> int:
        """Receive and process one round of messages. Returns the number processed successfully."""
        processed = 0
        messages = receive_messages(self.queue, max_messages=self.max_messages, wait_seconds=self.wait_seconds)
        for message in messages:
            try:
                handle_import_message(message["Body"], processor=self.processor)
            except Exception:
                # Already logged; leave the message for redelivery
                continue
            delete_message(self.queue, message["ReceiptHandle"])
            processed += 1
        return processed

    def run_forever(self, should_stop: Callable[[], bool] = lambda: False) -> None:
        """
        Poll until `should_stop()` returns True.

        Receive/delete errors (network, throttling, a missing queue) pause the loop;
        the pause doubles on each consecutive failure up to max_backoff_seconds and
        resets after a successful poll.
        """
        backoff = self.error_backoff_seconds
        while not should_stop():
            try:
                self.poll_once()
            except Exception as exc:
                logger.warning("import consumer poll failed, retrying in %.1fs: %s", backoff, exc)
                self._sleep(backoff)
                backoff = min(backoff * 2, self.max_backoff_seconds)
                continue
            backoff = self.error_backoff_seconds
