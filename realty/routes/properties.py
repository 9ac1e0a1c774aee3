# Property endpoints, scoped to the authenticated tenant.
# Admins manage the portfolio; any tenant account can browse and search its own properties.
from datetime import datetime, timezone
from typing import List, Literal, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Query as OrmQuery, Session

from ..db import get_db
from .. import cache, models, schemas
from ..geo import bounding_box, haversine_distance
from ..rate_limit import rate_limit
from .auth import get_current_tenant, require_admin

router = APIRouter()

SortField = Literal["created_at", "valuation", "address", "year_built", "square_feet"]


def _live_properties(db: Session, tenant_id: str) -> OrmQuery:
    return db.query(models.Property).filter(
        models.Property.tenant_id == tenant_id,
        models.Property.deleted_at.is_(None),
    )


def get_owned_property(db: Session, tenant_id: str, property_id: int) -> models.Property:
    obj = _live_properties(db, tenant_id).filter(models.Property.id == property_id).first()
    if not obj:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Property not found")
    return obj


@router.post(
    "/properties",
    response_model=schemas.PropertyRead,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(rate_limit("write"))],
)
def create_property(
    payload: schemas.PropertyCreate,
    db: Session = Depends(get_db),
    tenant: models.Tenant = Depends(require_admin),
):
    obj = models.Property(tenant_id=tenant.id, **payload.model_dump())
    db.add(obj)
    try:
        db.commit()
    except IntegrityError as exc:
        db.rollback()
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Property with this address already exists") from exc
    db.refresh(obj)
    cache.invalidate_tenant(tenant.id)
    return obj


@router.get("/properties", response_model=schemas.Page[schemas.PropertyRead])
def list_properties(
    sector: Optional[str] = None,
    property_type: Optional[str] = None,
    min_price: Optional[float] = Query(None, ge=0),
    max_price: Optional[float] = Query(None, ge=0),
    search: Optional[str] = Query(None, min_length=1, max_length=255),
    sort: SortField = "created_at",
    order: Literal["asc", "desc"] = "desc",
    limit: int = Query(10, ge=1, le=100),
    offset: int = Query(0, ge=0),
    db: Session = Depends(get_db),
    tenant: models.Tenant = Depends(get_current_tenant),
):
    """
    List the tenant's live properties.

    Filters combine with AND. `search` matches an address substring (case-insensitive).
    Results are cached per tenant until the next write to the portfolio.
    """
    params = {
        "sector": sector,
        "property_type": property_type,
        "min_price": min_price,
        "max_price": max_price,
        "search": search,
        "sort": sort,
        "order": order,
        "limit": limit,
        "offset": offset,
    }
    key = cache.cache_key(tenant.id, "list", params)
    cached = cache.get_json(key)
    if cached is not None:
        return cached

    q = _live_properties(db, tenant.id)
    if sector:
        q = q.filter(models.Property.sector == sector)
    if property_type:
        q = q.filter(models.Property.property_type == property_type)
    if min_price is not None:
        q = q.filter(models.Property.valuation >= min_price)
    if max_price is not None:
        q = q.filter(models.Property.valuation <= max_price)
    if search:
        q = q.filter(models.Property.address.ilike(f"%{search}%"))

    total = q.count()
    column = getattr(models.Property, sort)
    q = q.order_by(column.asc() if order == "asc" else column.desc(), models.Property.id.asc())
    items = q.offset(offset).limit(limit).all()

    page = schemas.Page[schemas.PropertyRead](
        data=[schemas.PropertyRead.model_validate(p) for p in items],
        total=total,
        limit=limit,
        offset=offset,
        has_more=offset + len(items) < total,
    )
    body = page.model_dump(mode="json")
    cache.set_json(key, body)
    return body


@router.get("/properties/search/radius", response_model=List[schemas.PropertyWithDistance])
def search_by_radius(
    lat: float = Query(..., ge=-90, le=90),
    lng: float = Query(..., ge=-180, le=180),
    radius_km: float = Query(..., gt=0, le=500),
    db: Session = Depends(get_db),
    tenant: models.Tenant = Depends(get_current_tenant),
):
    """Properties within radius_km of (lat, lng), nearest first."""
    min_lat, max_lat, min_lng, max_lng = bounding_box(lat, lng, radius_km)
    candidates = (
        _live_properties(db, tenant.id)
        .filter(
            models.Property.latitude.between(min_lat, max_lat),
            models.Property.longitude.between(min_lng, max_lng),
        )
        .all()
    )
    results = []
    for prop in candidates:
        distance = haversine_distance(lat, lng, prop.latitude, prop.longitude)
        if distance <= radius_km:
            item = schemas.PropertyRead.model_validate(prop).model_dump()
            results.append(schemas.PropertyWithDistance(**item, distance_km=round(distance, 3)))
    results.sort(key=lambda r: r.distance_km)
    return results


@router.get("/properties/{property_id}", response_model=schemas.PropertyRead)
def get_property(
    property_id: int,
    db: Session = Depends(get_db),
    tenant: models.Tenant = Depends(get_current_tenant),
):
    return get_owned_property(db, tenant.id, property_id)


@router.patch(
    "/properties/{property_id}",
    response_model=schemas.PropertyRead,
    dependencies=[Depends(rate_limit("write"))],
)
def update_property(
    property_id: int,
    payload: schemas.PropertyUpdate,
    db: Session = Depends(get_db),
    tenant: models.Tenant = Depends(require_admin),
):
    obj = get_owned_property(db, tenant.id, property_id)
    for field, value in payload.model_dump(exclude_unset=True).items():
        setattr(obj, field, value)
    db.add(obj)
    db.commit()
    db.refresh(obj)
    cache.invalidate_tenant(tenant.id)
    return obj


@router.delete(
    "/properties/{property_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    dependencies=[Depends(rate_limit("write"))],
)
def delete_property(
    property_id: int,
    db: Session = Depends(get_db),
    tenant: models.Tenant = Depends(require_admin),
) -> None:
    """Soft delete: the row stays (and keeps its address) until restored."""
    obj = get_owned_property(db, tenant.id, property_id)
    obj.deleted_at = datetime.now(timezone.utc)
    db.add(obj)
    db.commit()
    cache.invalidate_tenant(tenant.id)


@router.post("/properties/{property_id}/restore", response_model=schemas.PropertyRead)
def restore_property(
    property_id: int,
    db: Session = Depends(get_db),
    tenant: models.Tenant = Depends(require_admin),
):
    obj = (
        db.query(models.Property)
        .filter(
            models.Property.id == property_id,
            models.Property.tenant_id == tenant.id,
            models.Property.deleted_at.is_not(None),
        )
        .first()
    )
    if not obj:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Deleted property not found")
    obj.deleted_at = None
    db.add(obj)
    db.commit()
    db.refresh(obj)
    cache.invalidate_tenant(tenant.id)
    return obj
