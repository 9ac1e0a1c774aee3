# SQLAlchemy ORM models for core domain tables (tenants, properties, listings, transactions, import jobs).
# Keep business logic out of models; favor services and transactional logic in route handlers/services.
from uuid import uuid4

from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    Float,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    String,
    Text,
    UniqueConstraint,
    func,
)
from sqlalchemy.orm import declarative_mixin

from .db import Base


@declarative_mixin
class TimestampMixin:
    """Common UTC-aware timestamps automatically managed by the database.

    - created_at: set on insert
    - updated_at: set on insert and updated on each modification
    """
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)


def _uuid() -> str:
    return str(uuid4())


class Tenant(Base, TimestampMixin):
    """Account-holding organisation. Every property belongs to exactly one tenant.

    Roles:
    - admin: can create/update properties and run bulk imports
    - user: read-only access to the tenant's portfolio
    """
    __tablename__ = "tenants"

    id = Column(String(36), primary_key=True, default=_uuid)
    name = Column(String(255), nullable=False, unique=True)
    email = Column(String(255), nullable=False, unique=True, index=True)
    password_hash = Column(String(255), nullable=False)
    role = Column(String(20), nullable=False, default="user", index=True)  # "admin" or "user"


class Property(Base, TimestampMixin):
    """Property owned by a tenant.

    (address, tenant_id) is the natural key used by bulk import upserts; a tenant
    never has two rows for the same address.
    """
    __tablename__ = "properties"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    tenant_id = Column(String(36), ForeignKey("tenants.id"), nullable=False, index=True)
    address = Column(String(255), nullable=False)
    city = Column(String(120), nullable=False)
    state = Column(String(64), nullable=False)
    zip_code = Column(String(20), nullable=False)
    sector = Column(String(120), nullable=False)
    property_type = Column(String(64), nullable=False)
    longitude = Column(Float, nullable=False)
    latitude = Column(Float, nullable=False)
    valuation = Column(Numeric(12, 2, asdecimal=False), nullable=False)
    bedrooms = Column(Integer, nullable=False)
    bathrooms = Column(Integer, nullable=False)
    square_feet = Column(Integer, nullable=False)
    year_built = Column(Integer, nullable=False)
    is_active = Column(Boolean, nullable=False, default=True)
    # soft delete marker; NULL means live
    deleted_at = Column(DateTime(timezone=True), nullable=True)

    __table_args__ = (
        UniqueConstraint("address", "tenant_id", name="uq_properties_address_tenant"),
        Index("ix_properties_tenant_sector", "tenant_id", "sector"),
        Index("ix_properties_lat_lng", "latitude", "longitude"),
    )


class ImportJob(Base, TimestampMixin):
    """Bookkeeping row for one bulk CSV import, keyed by the caller's idempotency key.

    Status transitions:
    pending -> processing -> completed
                         └── failed

    tenant_id is deliberately not a foreign key so a job can record an import
    attempted against a tenant that does not exist.
    """
    __tablename__ = "import_jobs"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    idempotency_key = Column(String(255), nullable=False, unique=True)
    tenant_id = Column(String(36), nullable=False, index=True)
    status = Column(String(20), nullable=False, default="pending")
    total_records = Column(Integer, nullable=False, default=0)
    processed_records = Column(Integer, nullable=False, default=0)
    skipped_batches = Column(Integer, nullable=False, default=0)
    error_message = Column(Text, nullable=True)


class Listing(Base, TimestampMixin):
    """Sale or rental listing advertising one of a tenant's properties.

    The listing window runs from listed_at to expires_at (exclusive); routes
    enforce expires_at > listed_at.
    """
    __tablename__ = "listings"

    id = Column(String(36), primary_key=True, default=_uuid)
    property_id = Column(Integer, ForeignKey("properties.id"), nullable=False, index=True)
    tenant_id = Column(String(36), ForeignKey("tenants.id"), nullable=False, index=True)
    title = Column(String(255), nullable=False)
    description = Column(Text, nullable=False)
    price = Column(Numeric(12, 2, asdecimal=False), nullable=False)
    status = Column(String(20), nullable=False, default="active")  # active | pending | sold
    listed_at = Column(DateTime(timezone=True), nullable=False)
    expires_at = Column(DateTime(timezone=True), nullable=False)
    deleted_at = Column(DateTime(timezone=True), nullable=True)

    __table_args__ = (
        Index("ix_listings_tenant_status", "tenant_id", "status"),
    )


class Transaction(Base, TimestampMixin):
    """Money movement (purchase, rent, maintenance, tax, fee) recorded against a property."""
    __tablename__ = "transactions"

    id = Column(String(36), primary_key=True, default=_uuid)
    property_id = Column(Integer, ForeignKey("properties.id"), nullable=False, index=True)
    tenant_id = Column(String(36), ForeignKey("tenants.id"), nullable=False, index=True)
    type = Column(String(20), nullable=False)
    amount = Column(Numeric(12, 2, asdecimal=False), nullable=False)
    transaction_date = Column(DateTime(timezone=True), nullable=False)
    description = Column(Text, nullable=True)
    deleted_at = Column(DateTime(timezone=True), nullable=True)

    __table_args__ = (
        Index("ix_transactions_tenant_date", "tenant_id", "transaction_date"),
    )
