# Transaction endpoints: purchases, rent, maintenance, taxes and fees recorded against the tenant's properties.
from datetime import datetime, timezone
from typing import Literal, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Query as OrmQuery, Session

from ..db import get_db
from .. import models, schemas
from ..rate_limit import rate_limit
from .auth import get_current_tenant, require_admin
from .properties import get_owned_property

router = APIRouter()

TransactionSort = Literal["created_at", "amount", "transaction_date"]


def _live_transactions(db: Session, tenant_id: str) -> OrmQuery:
    return db.query(models.Transaction).filter(
        models.Transaction.tenant_id == tenant_id,
        models.Transaction.deleted_at.is_(None),
    )


def _get_owned_transaction(db: Session, tenant_id: str, transaction_id: UUID) -> models.Transaction:
    obj = _live_transactions(db, tenant_id).filter(models.Transaction.id == str(transaction_id)).first()
    if not obj:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Transaction not found")
    return obj


@router.post(
    "/transactions",
    response_model=schemas.TransactionRead,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(rate_limit("write"))],
)
def create_transaction(
    payload: schemas.TransactionCreate,
    db: Session = Depends(get_db),
    tenant: models.Tenant = Depends(require_admin),
):
    get_owned_property(db, tenant.id, payload.property_id)

    obj = models.Transaction(tenant_id=tenant.id, **payload.model_dump())
    db.add(obj)
    db.commit()
    db.refresh(obj)
    return obj


@router.get("/transactions", response_model=schemas.Page[schemas.TransactionRead])
def list_transactions(
    type: Optional[schemas.TransactionType] = None,
    property_id: Optional[int] = None,
    min_amount: Optional[float] = Query(None, ge=0),
    max_amount: Optional[float] = Query(None, ge=0),
    date_from: Optional[datetime] = None,
    date_to: Optional[datetime] = None,
    search: Optional[str] = Query(None, min_length=1, max_length=255),
    sort: TransactionSort = "transaction_date",
    order: Literal["asc", "desc"] = "desc",
    limit: int = Query(10, ge=1, le=100),
    offset: int = Query(0, ge=0),
    db: Session = Depends(get_db),
    tenant: models.Tenant = Depends(get_current_tenant),
):
    """
    List the tenant's live transactions, newest first by default.

    date_from/date_to bound transaction_date inclusively; `search` matches the description.
    """
    q = _live_transactions(db, tenant.id)
    if type:
        q = q.filter(models.Transaction.type == type)
    if property_id is not None:
        q = q.filter(models.Transaction.property_id == property_id)
    if min_amount is not None:
        q = q.filter(models.Transaction.amount >= min_amount)
    if max_amount is not None:
        q = q.filter(models.Transaction.amount <= max_amount)
    if date_from is not None:
        q = q.filter(models.Transaction.transaction_date >= date_from)
    if date_to is not None:
        q = q.filter(models.Transaction.transaction_date <= date_to)
    if search:
        q = q.filter(models.Transaction.description.ilike(f"%{search}%"))

    total = q.count()
    column = getattr(models.Transaction, sort)
    q = q.order_by(column.asc() if order == "asc" else column.desc(), models.Transaction.id.asc())
    items = q.offset(offset).limit(limit).all()
    return schemas.Page[schemas.TransactionRead](
        data=[schemas.TransactionRead.model_validate(obj) for obj in items],
        total=total,
        limit=limit,
        offset=offset,
        has_more=offset + len(items) < total,
    )


@router.get("/transactions/{transaction_id}", response_model=schemas.TransactionRead)
def get_transaction(
    transaction_id: UUID,
    db: Session = Depends(get_db),
    tenant: models.Tenant = Depends(get_current_tenant),
):
    return _get_owned_transaction(db, tenant.id, transaction_id)


@router.patch(
    "/transactions/{transaction_id}",
    response_model=schemas.TransactionRead,
    dependencies=[Depends(rate_limit("write"))],
)
def update_transaction(
    transaction_id: UUID,
    payload: schemas.TransactionUpdate,
    db: Session = Depends(get_db),
    tenant: models.Tenant = Depends(require_admin),
):
    obj = _get_owned_transaction(db, tenant.id, transaction_id)
    for field, value in payload.model_dump(exclude_unset=True).items():
        if value is None and field != "description":
            continue
        setattr(obj, field, value)
    db.add(obj)
    db.commit()
    db.refresh(obj)
    return obj


@router.delete(
    "/transactions/{transaction_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    dependencies=[Depends(rate_limit("write"))],
)
def delete_transaction(
    transaction_id: UUID,
    db: Session = Depends(get_db),
    tenant: models.Tenant = Depends(require_admin),
) -> None:
    obj = _get_owned_transaction(db, tenant.id, transaction_id)
    obj.deleted_at = datetime.now(timezone.utc)
    db.add(obj)
    db.commit()
