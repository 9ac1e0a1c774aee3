# Batch upsert engine: writes parsed rows to the properties table in bounded, sequential batches.
# Each batch is one INSERT ... ON CONFLICT (address, tenant_id) DO UPDATE statement committed on its own.
from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from typing import Dict, Iterator, List, Sequence, TypeVar

from sqlalchemy import func
from sqlalchemy.dialects import mysql, postgresql, sqlite
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from .. import models
from ..errors import StorageError, TenantNotFoundError
from .parser import ParsedPropertyRow

logger = logging.getLogger("realty.imports")

# Rows per statement; bounds statement payload size and lock duration
BATCH_SIZE = int(os.getenv("IMPORT_BATCH_SIZE", "500"))

# Natural key for import upserts
CONFLICT_COLUMNS = ("address", "tenant_id")
# Only these change when an address is re-imported; coordinates are set-once
UPDATE_COLUMNS = ("valuation", "bedrooms", "bathrooms", "square_feet", "year_built")

T = TypeVar("T")


@dataclass
class UpsertSummary:
    batches: int = 0
    rows_written: int = 0
    skipped_batches: int = 0


def chunked(items: Sequence[T], size: int) -> Iterator[Sequence[T]]:
    """Yield consecutive slices of at most `size` items."""
    if size < 1:
        raise ValueError("batch size must be positive")
    for start in range(0, len(items), size):
        yield items[start:start + size]


def build_upsert_statement(dialect_name: str, values: List[dict]):
    """
    Build the insert-or-update statement for one batch on the given SQL dialect.

    PostgreSQL and SQLite use ON CONFLICT (address, tenant_id) DO UPDATE;
    MySQL uses ON DUPLICATE KEY UPDATE against the same unique key.
    """
    table = models.Property.__table__
    if dialect_name in ("postgresql", "sqlite"):
        insert = postgresql.insert if dialect_name == "postgresql" else sqlite.insert
        stmt = insert(table).values(values)
        updates = {col: stmt.excluded[col] for col in UPDATE_COLUMNS}
        updates["updated_at"] = func.now()
        return stmt.on_conflict_do_update(index_elements=list(CONFLICT_COLUMNS), set_=updates)
    if dialect_name in ("mysql", "mariadb"):
        stmt = mysql.insert(table).values(values)
        updates = {col: stmt.inserted[col] for col in UPDATE_COLUMNS}
        updates["updated_at"] = func.now()
        return stmt.on_duplicate_key_update(updates)
    raise StorageError(f"Upsert is not supported on dialect {dialect_name!r}")


def is_foreign_key_violation(exc: IntegrityError) -> bool:
    """Classify an IntegrityError raised by the DB driver as a foreign-key violation."""
    orig = exc.orig
    # psycopg2 exposes pgcode, psycopg 3 exposes sqlstate
    if getattr(orig, "pgcode", None) == "23503" or getattr(orig, "sqlstate", None) == "23503":
        return True
    args = getattr(orig, "args", ())
    # MySQL: ER_NO_REFERENCED_ROW_2
    if args and args[0] == 1452:
        return True
    # SQLite: "FOREIGN KEY constraint failed"
    return "foreign key constraint" in str(orig).lower()


def dedupe_by_address(batch: Sequence[ParsedPropertyRow]) -> List[ParsedPropertyRow]:
    """
    Collapse rows that repeat an address within one batch, keeping the last one.

    PostgreSQL rejects an ON CONFLICT DO UPDATE statement that touches the same
    row twice, so each statement must carry every address at most once.
    """
    latest: Dict[str, ParsedPropertyRow] = {}
    for row in batch:
        latest[row.address] = row
    return list(latest.values())


def _write_batch(db: Session, batch: Sequence[ParsedPropertyRow], tenant_id: str) -> int:
    rows = dedupe_by_address(batch)
    if len(rows) < len(batch):
        logger.info(
            "Batch repeats %d address(es); keeping the last row for each",
            len(batch) - len(rows),
            extra={"tenant_id": tenant_id},
        )
    values = [row.to_values(tenant_id) | {"is_active": True} for row in rows]
    stmt = build_upsert_statement(db.get_bind().dialect.name, values)
    try:
        db.execute(stmt)
        db.commit()
    except IntegrityError as exc:
        db.rollback()
        if is_foreign_key_violation(exc):
            raise TenantNotFoundError(tenant_id) from exc
        raise StorageError(f"Batch write failed: {exc.orig}") from exc
    except SQLAlchemyError as exc:
        db.rollback()
        raise StorageError(f"Batch write failed: {exc}") from exc
    return len(rows)


def upsert_properties(
    db: Session,
    rows: Sequence[ParsedPropertyRow],
    tenant_id: str,
    batch_size: int = BATCH_SIZE,
) -> UpsertSummary:
    """
    Upsert `rows` for `tenant_id` in sequential batches of `batch_size`.

    Failure policy:
    - A batch rejected because the tenant does not exist is logged and skipped;
      later batches still run.
    - Any other write failure raises StorageError and aborts the remaining batches.
      Batches committed before the failure stay committed.
    - A soft-deleted property whose address is re-imported is updated but stays
      deleted; only the restore endpoint brings it back.
    """
    summary = UpsertSummary()
    for batch in chunked(rows, batch_size):
        summary.batches += 1
        try:
            written = _write_batch(db, batch, tenant_id)
        except TenantNotFoundError:
            logger.error("Tenant %s does not exist. Skipping batch.", tenant_id)
            summary.skipped_batches += 1
            continue
        summary.rows_written += written
    return summary
