# Listing endpoints: sale/rental listings attached to the tenant's properties.
# Admins create and edit listings; any tenant account can browse them.
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

ListingSort = Literal["created_at", "price", "listed_at", "expires_at", "title"]


def as_utc(value: datetime) -> datetime:
    # SQLite hands back naive datetimes; treat them as UTC
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


# The listing window must be non-empty: expires_at strictly after listed_at
def _validate_window(listed_at: datetime, expires_at: datetime) -> None:
    if as_utc(expires_at) <= as_utc(listed_at):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="expires_at must be after listed_at")


def _live_listings(db: Session, tenant_id: str) -> OrmQuery:
    return db.query(models.Listing).filter(
        models.Listing.tenant_id == tenant_id,
        models.Listing.deleted_at.is_(None),
    )


def _get_owned_listing(db: Session, tenant_id: str, listing_id: UUID) -> models.Listing:
    obj = _live_listings(db, tenant_id).filter(models.Listing.id == str(listing_id)).first()
    if not obj:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Listing not found")
    return obj


@router.post(
    "/listings",
    response_model=schemas.ListingRead,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(rate_limit("write"))],
)
def create_listing(
    payload: schemas.ListingCreate,
    db: Session = Depends(get_db),
    tenant: models.Tenant = Depends(require_admin),
):
    _validate_window(payload.listed_at, payload.expires_at)
    # 404 unless the property is one of the tenant's live properties
    get_owned_property(db, tenant.id, payload.property_id)

    obj = models.Listing(tenant_id=tenant.id, **payload.model_dump())
    db.add(obj)
    db.commit()
    db.refresh(obj)
    return obj


@router.get("/listings", response_model=schemas.Page[schemas.ListingRead])
def list_listings(
    status_filter: Optional[schemas.ListingStatus] = Query(None, alias="status"),
    property_id: Optional[int] = None,
    min_price: Optional[float] = Query(None, ge=0),
    max_price: Optional[float] = Query(None, ge=0),
    search: Optional[str] = Query(None, min_length=1, max_length=255),
    sort: ListingSort = "created_at",
    order: Literal["asc", "desc"] = "desc",
    limit: int = Query(10, ge=1, le=100),
    offset: int = Query(0, ge=0),
    db: Session = Depends(get_db),
    tenant: models.Tenant = Depends(get_current_tenant),
):
    """List the tenant's live listings. Filters combine with AND; `search` matches the title."""
    q = _live_listings(db, tenant.id)
    if status_filter:
        q = q.filter(models.Listing.status == status_filter)
    if property_id is not None:
        q = q.filter(models.Listing.property_id == property_id)
    if min_price is not None:
        q = q.filter(models.Listing.price >= min_price)
    if max_price is not None:
        q = q.filter(models.Listing.price <= max_price)
    if search:
        q = q.filter(models.Listing.title.ilike(f"%{search}%"))

    total = q.count()
    column = getattr(models.Listing, sort)
    q = q.order_by(column.asc() if order == "asc" else column.desc(), models.Listing.id.asc())
    items = q.offset(offset).limit(limit).all()
    return schemas.Page[schemas.ListingRead](
        data=[schemas.ListingRead.model_validate(obj) for obj in items],
        total=total,
        limit=limit,
        offset=offset,
        has_more=offset + len(items) < total,
    )


@router.get("/listings/{listing_id}", response_model=schemas.ListingRead)
def get_listing(
    listing_id: UUID,
    db: Session = Depends(get_db),
    tenant: models.Tenant = Depends(get_current_tenant),
):
    return _get_owned_listing(db, tenant.id, listing_id)


@router.patch(
    "/listings/{listing_id}",
    response_model=schemas.ListingRead,
    dependencies=[Depends(rate_limit("write"))],
)
def update_listing(
    listing_id: UUID,
    payload: schemas.ListingUpdate,
    db: Session = Depends(get_db),
    tenant: models.Tenant = Depends(require_admin),
):
    obj = _get_owned_listing(db, tenant.id, listing_id)
    changes = payload.model_dump(exclude_unset=True, exclude_none=True)
    _validate_window(changes.get("listed_at", obj.listed_at), changes.get("expires_at", obj.expires_at))
    for field, value in changes.items():
        setattr(obj, field, value)
    db.add(obj)
    db.commit()
    db.refresh(obj)
    return obj


@router.delete(
    "/listings/{listing_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    dependencies=[Depends(rate_limit("write"))],
)
def delete_listing(
    listing_id: UUID,
    db: Session = Depends(get_db),
    tenant: models.Tenant = Depends(require_admin),
) -> None:
    obj = _get_owned_listing(db, tenant.id, listing_id)
    obj.deleted_at = datetime.now(timezone.utc)
    db.add(obj)
    db.commit()
