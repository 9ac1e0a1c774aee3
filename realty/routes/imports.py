# Bulk CSV import endpoints.
# Uploads are accepted with 202 and handed to the import dispatcher (SQS, or inline when the queue is down).
import logging

from fastapi import APIRouter, Depends, File, Form, HTTPException, Request, UploadFile, status
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ..db import get_db
from .. import models, schemas
from ..errors import ParseError, StorageError
from ..imports.dispatcher import ImportDispatcher
from ..rate_limit import rate_limit
from .auth import get_current_tenant, require_admin

router = APIRouter()
logger = logging.getLogger("realty.imports")


def get_dispatcher(request: Request) -> ImportDispatcher:
    """The dispatcher built by the startup hook; runs everything inline when no queue was resolved."""
    dispatcher = getattr(request.app.state, "import_dispatcher", None)
    if dispatcher is None:
        raise RuntimeError("Import dispatcher is not initialised; the application startup hook builds it")
    return dispatcher


@router.post(
    "/imports",
    response_model=schemas.ImportAccepted,
    status_code=status.HTTP_202_ACCEPTED,
    dependencies=[Depends(rate_limit("import"))],
)
def import_properties(
    file: UploadFile = File(...),
    idempotency_key: str = Form(..., min_length=1, max_length=255),
    db: Session = Depends(get_db),
    tenant: models.Tenant = Depends(require_admin),
    dispatcher: ImportDispatcher = Depends(get_dispatcher),
) -> schemas.ImportAccepted:
    """
    Accept a CSV upload for asynchronous import.

    Idempotency: the first request for a key records an ImportJob and dispatches
    it; repeats of the same key are acknowledged without dispatching again.
    """
    file_bytes = file.file.read()
    if not file_bytes:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Uploaded file is empty")

    job = models.ImportJob(idempotency_key=idempotency_key, tenant_id=tenant.id, status="pending")
    db.add(job)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        logger.info("import.duplicate", extra={"idempotency_key": idempotency_key, "tenant_id": tenant.id})
        return schemas.ImportAccepted(message="Import job already accepted", idempotency_key=idempotency_key)

    try:
        dispatcher.enqueue_import_job(file_bytes, tenant.id, idempotency_key)
    except ParseError as exc:
        # Only reachable on the inline fallback path; queued jobs fail in the worker
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=f"Invalid CSV: {exc}") from exc
    except StorageError as exc:
        logger.error("Inline import failed for %s: %s", idempotency_key, exc)
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Import failed") from exc

    return schemas.ImportAccepted(message="Import job accepted", idempotency_key=idempotency_key)


@router.get("/imports/{idempotency_key}", response_model=schemas.ImportJobRead)
def get_import_job(
    idempotency_key: str,
    db: Session = Depends(get_db),
    tenant: models.Tenant = Depends(get_current_tenant),
):
    job = (
        db.query(models.ImportJob)
        .filter(
            models.ImportJob.idempotency_key == idempotency_key,
            models.ImportJob.tenant_id == tenant.id,
        )
        .first()
    )
    if not job:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Import job not found")
    return job
