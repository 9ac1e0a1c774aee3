# Tenant administration: admins create and inspect tenant accounts.
# These routes are not scoped to the caller's tenant.
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from ..db import get_db
from .. import models, schemas
from ..rate_limit import rate_limit
from .auth import hash_password, require_admin

router = APIRouter()


@router.post(
    "/tenants",
    response_model=schemas.TenantRead,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(rate_limit("write"))],
)
def create_tenant(
    payload: schemas.TenantCreate,
    db: Session = Depends(get_db),
    _admin: models.Tenant = Depends(require_admin),
):
    existing = (
        db.query(models.Tenant)
        .filter((models.Tenant.email == payload.email) | (models.Tenant.name == payload.name))
        .first()
    )
    if existing:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Email or name already in use")

    tenant = models.Tenant(
        name=payload.name,
        email=payload.email,
        password_hash=hash_password(payload.password),
        role=payload.role,
    )
    db.add(tenant)
    db.commit()
    db.refresh(tenant)
    return tenant


@router.get("/tenants", response_model=schemas.Page[schemas.TenantRead])
def list_tenants(
    limit: int = Query(10, ge=1, le=100),
    offset: int = Query(0, ge=0),
    db: Session = Depends(get_db),
    _admin: models.Tenant = Depends(require_admin),
):
    q = db.query(models.Tenant)
    total = q.count()
    items = q.order_by(models.Tenant.name.asc()).offset(offset).limit(limit).all()
    return schemas.Page[schemas.TenantRead](
        data=[schemas.TenantRead.model_validate(t) for t in items],
        total=total,
        limit=limit,
        offset=offset,
        has_more=offset + len(items) < total,
    )


def _live_count(db: Session, model, tenant_id: str) -> int:
    return db.query(model).filter(model.tenant_id == tenant_id, model.deleted_at.is_(None)).count()


@router.get("/tenants/{tenant_id}", response_model=schemas.TenantDetail)
def get_tenant(
    tenant_id: UUID,
    db: Session = Depends(get_db),
    _admin: models.Tenant = Depends(require_admin),
):
    tenant = db.get(models.Tenant, str(tenant_id))
    if not tenant:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"Tenant with ID {tenant_id} not found")
    return schemas.TenantDetail(
        **schemas.TenantRead.model_validate(tenant).model_dump(),
        property_count=_live_count(db, models.Property, tenant.id),
        listing_count=_live_count(db, models.Listing, tenant.id),
        transaction_count=_live_count(db, models.Transaction, tenant.id),
    )
