# Portfolio analytics: simple group-by aggregations over the tenant's live properties.
from typing import List

from fastapi import APIRouter, Depends
from sqlalchemy import func
from sqlalchemy.orm import Session

from ..db import get_db
from .. import cache, models, schemas
from .auth import get_current_tenant

router = APIRouter()


@router.get("/analytics/distribution", response_model=List[schemas.DistributionRow])
def property_distribution(db: Session = Depends(get_db), tenant: models.Tenant = Depends(get_current_tenant)):
    """Property counts per (sector, property_type)."""
    key = cache.cache_key(tenant.id, "analytics", {"report": "distribution"})
    cached = cache.get_json(key)
    if cached is not None:
        return cached

    rows = (
        db.query(models.Property.sector, models.Property.property_type, func.count(models.Property.id))
        .filter(models.Property.tenant_id == tenant.id, models.Property.deleted_at.is_(None))
        .group_by(models.Property.sector, models.Property.property_type)
        .order_by(models.Property.sector, models.Property.property_type)
        .all()
    )
    body = [{"sector": s, "property_type": t, "count": int(n)} for s, t, n in rows]
    cache.set_json(key, body)
    return body


@router.get("/analytics/valuation", response_model=List[schemas.ValuationRow])
def valuation_by_sector(db: Session = Depends(get_db), tenant: models.Tenant = Depends(get_current_tenant)):
    """Average valuation and property count per sector."""
    key = cache.cache_key(tenant.id, "analytics", {"report": "valuation"})
    cached = cache.get_json(key)
    if cached is not None:
        return cached

    rows = (
        db.query(
            models.Property.sector,
            func.count(models.Property.id),
            func.avg(models.Property.valuation),
        )
        .filter(models.Property.tenant_id == tenant.id, models.Property.deleted_at.is_(None))
        .group_by(models.Property.sector)
        .order_by(models.Property.sector)
        .all()
    )
    body = [
        {"sector": s, "count": int(n), "avg_valuation": round(float(avg or 0), 2)}
        for s, n, avg in rows
    ]
    cache.set_json(key, body)
    return body
