# Single processing entry point for bulk property imports.
# Called by the dispatcher's inline fallback and by the queue consumer; neither duplicates this logic.
from __future__ import annotations

import logging
from typing import Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from .. import models
from ..cache import invalidate_tenant
from ..db import SessionLocal
from .parser import parse_property_csv
from .upsert import UpsertSummary, upsert_properties

logger = logging.getLogger("realty.imports")


def _get_job(db: Session, idempotency_key: Optional[str]) -> Optional[models.ImportJob]:
    if not idempotency_key:
        return None
    return (
        db.query(models.ImportJob)
        .filter(models.ImportJob.idempotency_key == idempotency_key)
        .first()
    )


def _mark_failed(db: Session, idempotency_key: Optional[str], error: Exception) -> None:
    job = _get_job(db, idempotency_key)
    if job is None:
        return
    job.status = "failed"
    job.error_message = str(error)[:2000]
    db.add(job)
    db.commit()


def process_import(
    file_bytes: bytes,
    tenant_id: str,
    *,
    idempotency_key: Optional[str] = None,
    db: Optional[Session] = None,
) -> UpsertSummary:
    """
    Parse a CSV upload and upsert its rows for `tenant_id`.

    Semantics:
    - ParseError aborts before anything is written.
    - Batches that hit a missing tenant are skipped; any other storage error
      propagates and leaves earlier batches committed.
    - The tenant's cached reads are dropped after any run that may have
      committed a batch, including one that failed part way.
    - If an ImportJob exists for `idempotency_key`, its status and counters are kept current.
    - Accepts an optional Session; otherwise creates and cleans up its own.
    """
    created_session = False
    if db is None:
        db = SessionLocal()
        created_session = True

    writing = False
    try:
        job = _get_job(db, idempotency_key)
        if job is not None:
            job.status = "processing"
            db.add(job)
            db.commit()

        rows = parse_property_csv(file_bytes)
        if job is not None:
            job.total_records = len(rows)
            db.add(job)
            db.commit()

        # From here on earlier batches may be committed even if a later one fails
        writing = True
        summary = upsert_properties(db, rows, tenant_id)

        job = _get_job(db, idempotency_key)
        if job is not None:
            job.status = "completed"
            job.processed_records = summary.rows_written
            job.skipped_batches = summary.skipped_batches
            db.add(job)
            db.commit()

        if summary.rows_written:
            invalidate_tenant(tenant_id)
        logger.info(
            "import.completed",
            extra={
                "tenant_id": tenant_id,
                "idempotency_key": idempotency_key,
                "rows": len(rows),
                "batches": summary.batches,
                "rows_written": summary.rows_written,
                "skipped_batches": summary.skipped_batches,
            },
        )
        return summary
    except Exception as exc:
        db.rollback()
        if writing:
            invalidate_tenant(tenant_id)
        try:
            _mark_failed(db, idempotency_key, exc)
        except SQLAlchemyError as status_exc:
            db.rollback()
            logger.warning("Could not record failure for import %s: %s", idempotency_key, status_exc)
        raise
    finally:
        if created_session:
            db.close()
