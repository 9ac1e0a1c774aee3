# Import worker process: consumes property import jobs from SQS.
# Run with `python -m realty.worker` (or the `realty-import-worker` console script).
from __future__ import annotations

import logging
import os
import signal
import sys

from .errors import QueueConfigError
from .imports.consumer import ImportConsumer
from .queue import connect_import_queue

logger = logging.getLogger("realty.worker")


def main() -> int:
    logging.basicConfig(
        level=os.getenv("LOG_LEVEL", "INFO").upper(),
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
    )
    try:
        handle = connect_import_queue()
    except QueueConfigError as exc:
        logger.error("Import worker cannot start: %s", exc)
        return 1

    stopping = {"flag": False}

    def _stop(signum, _frame) -> None:
        logger.info("Received signal %s; stopping after the current poll", signum)
        stopping["flag"] = True

    signal.signal(signal.SIGTERM, _stop)
    signal.signal(signal.SIGINT, _stop)

    wait_seconds = int(os.getenv("SQS_WAIT_SECONDS", "20"))
    backoff = float(os.getenv("SQS_ERROR_BACKOFF_SECONDS", "1"))
    consumer = ImportConsumer(handle, wait_seconds=wait_seconds, error_backoff_seconds=backoff)
    logger.info("Import worker polling %s", handle.queue_url)
    consumer.run_forever(should_stop=lambda: stopping["flag"])
    return 0


if __name__ == "__main__":
    sys.exit(main())
