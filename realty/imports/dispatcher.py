# Import dispatcher: hand a CSV upload to the SQS import queue, or run it inline when the queue is unavailable.
from __future__ import annotations

import base64
import logging
from typing import Callable, Literal, Optional

from ..errors import QueuePublishError
from ..queue import QueueHandle, publish_message
from .processing import process_import

logger = logging.getLogger("realty.imports")

DispatchOutcome = Literal["enqueued", "inline"]

# Messages for one tenant share a FIFO group, so a tenant's imports are consumed in upload order
MESSAGE_GROUP_PREFIX = "property-import"


def message_group_for(tenant_id: str) -> str:
    return f"{MESSAGE_GROUP_PREFIX}:{tenant_id}"


def build_job_payload(file_bytes: bytes, tenant_id: str, idempotency_key: str) -> dict:
    """Queue message body; camelCase keys are the wire format shared with the consumer."""
    return {
        "fileBuffer": base64.b64encode(file_bytes).decode("ascii"),
        "tenantId": tenant_id,
        "idempotencyKey": idempotency_key,
    }


class ImportDispatcher:
    """
    Routes import requests to the queue, falling back to synchronous processing.

    `queue` is None when SQS is disabled or failed to initialise; every job then
    runs inline. `processor` is the shared processing entry point.
    """

    def __init__(
        self,
        queue: Optional[QueueHandle],
        processor: Callable[..., object] = process_import,
    ) -> None:
        self.queue = queue
        self.processor = processor

    def enqueue_import_job(self, file_bytes: bytes, tenant_id: str, idempotency_key: str) -> DispatchOutcome:
        """
        Publish the import job, or process it in the caller's context if publishing fails.

        Queue failures never reach the caller. Errors raised by the inline
        processor itself (ParseError, StorageError) do.
        """
        try:
            if self.queue is None:
                raise QueuePublishError("import queue is not configured")
            publish_message(
                self.queue,
                build_job_payload(file_bytes, tenant_id, idempotency_key),
                message_group_for(tenant_id),
                idempotency_key,
            )
        except Exception as exc:
            # Any publish failure (unreachable, misconfigured, throttled) degrades to inline processing
            logger.warning("SQS not available, processing import directly")
            logger.debug("queue publish failure for %s: %s", idempotency_key, exc)
            self.processor(file_bytes, tenant_id, idempotency_key=idempotency_key)
            return "inline"

        logger.info("import.enqueued", extra={"tenant_id": tenant_id, "idempotency_key": idempotency_key})
        return "enqueued"
