# Pydantic models (request/response DTOs) used by the API layer and the import queue.
# Keep models minimal and serializable; business logic lives in services/DB.
from pydantic import BaseModel, Field, ConfigDict, field_validator, EmailStr, model_validator
from typing import Generic, List, Literal, Optional, TypeVar
from datetime import datetime


# Properties
# Base attributes for a property (shared by create/read)
class PropertyBase(BaseModel):
    address: str = Field(..., min_length=1, max_length=255)
    city: str = Field(..., min_length=1, max_length=120)
    state: str = Field(..., min_length=1, max_length=64)
    zip_code: str = Field(..., min_length=1, max_length=20)
    sector: str = Field(..., min_length=1, max_length=120)
    property_type: str = Field(..., min_length=1, max_length=64)
    longitude: float = Field(..., ge=-180, le=180)
    latitude: float = Field(..., ge=-90, le=90)
    valuation: float = Field(..., ge=0)
    bedrooms: int = Field(..., ge=0)
    bathrooms: int = Field(..., ge=0)
    square_feet: int = Field(..., ge=0)
    year_built: int = Field(..., ge=1000, le=2100)

    @field_validator("address", "city", "state", "zip_code", "sector", "property_type", mode="before")
    @classmethod
    def strip_text(cls, v: str) -> str:
        # Trim surrounding whitespace before validation
        if isinstance(v, str):
            v = v.strip()
        return v


# Payload for creating a new property
class PropertyCreate(PropertyBase):
    pass


# Partial update; address is the import natural key and cannot change here
class PropertyUpdate(BaseModel):
    valuation: Optional[float] = Field(None, ge=0)
    bedrooms: Optional[int] = Field(None, ge=0)
    bathrooms: Optional[int] = Field(None, ge=0)
    square_feet: Optional[int] = Field(None, ge=0)
    year_built: Optional[int] = Field(None, ge=1000, le=2100)
    sector: Optional[str] = Field(None, min_length=1, max_length=120)
    property_type: Optional[str] = Field(None, min_length=1, max_length=64)
    is_active: Optional[bool] = None


# Response shape when reading a property from the API
class PropertyRead(PropertyBase):
    id: int
    tenant_id: str
    is_active: bool

    model_config = ConfigDict(from_attributes=True)


# Radius search result: the property plus its distance from the search centre
class PropertyWithDistance(PropertyRead):
    distance_km: float


T = TypeVar("T")


# Offset pagination envelope
class Page(BaseModel, Generic[T]):
    data: List[T]
    total: int
    limit: int
    offset: int
    has_more: bool


# Analytics
class DistributionRow(BaseModel):
    sector: str
    property_type: str
    count: int


class ValuationRow(BaseModel):
    sector: str
    count: int
    avg_valuation: float


# Listings
ListingStatus = Literal["active", "pending", "sold"]


class ListingBase(BaseModel):
    title: str = Field(..., min_length=1, max_length=255)
    description: str = Field(..., min_length=1)
    price: float = Field(..., ge=0)
    status: ListingStatus = "active"
    listed_at: datetime
    expires_at: datetime

    @field_validator("title", "description", mode="before")
    @classmethod
    def strip_text(cls, v: str) -> str:
        if isinstance(v, str):
            v = v.strip()
        return v


# Payload for creating a listing on one of the tenant's properties
class ListingCreate(ListingBase):
    property_id: int


class ListingUpdate(BaseModel):
    title: Optional[str] = Field(None, min_length=1, max_length=255)
    description: Optional[str] = Field(None, min_length=1)
    price: Optional[float] = Field(None, ge=0)
    status: Optional[ListingStatus] = None
    listed_at: Optional[datetime] = None
    expires_at: Optional[datetime] = None


class ListingRead(ListingBase):
    id: str
    property_id: int
    tenant_id: str
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


# Transactions
TransactionType = Literal["Purchase", "Rent", "Maintenance", "Tax", "Fee"]


class TransactionBase(BaseModel):
    type: TransactionType
    amount: float = Field(..., gt=0)
    transaction_date: datetime
    description: Optional[str] = Field(None, max_length=2000)


class TransactionCreate(TransactionBase):
    property_id: int


class TransactionUpdate(BaseModel):
    type: Optional[TransactionType] = None
    amount: Optional[float] = Field(None, gt=0)
    transaction_date: Optional[datetime] = None
    description: Optional[str] = Field(None, max_length=2000)


class TransactionRead(TransactionBase):
    id: str
    property_id: int
    tenant_id: str
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


# Imports
# 202 response for an accepted upload
class ImportAccepted(BaseModel):
    message: str
    idempotency_key: str


class ImportJobRead(BaseModel):
    idempotency_key: str
    tenant_id: str
    status: Literal["pending", "processing", "completed", "failed"]
    total_records: int
    processed_records: int
    skipped_batches: int
    error_message: Optional[str] = None
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


# Queue message body for an import job; field aliases are the camelCase wire names
class ImportJobPayload(BaseModel):
    file_buffer: str = Field(..., alias="fileBuffer")
    tenant_id: str = Field(..., alias="tenantId", min_length=1)
    idempotency_key: str = Field(..., alias="idempotencyKey", min_length=1)

    model_config = ConfigDict(populate_by_name=True)


# Authentication and tenant accounts

# Account roles within a tenant
Role = Literal["admin", "user"]


def _normalize_email(v: str) -> str:
    if isinstance(v, str):
        v = v.strip().lower()
    return v


# Request payload for tenant registration
class TenantCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    email: EmailStr
    password: str = Field(..., min_length=8)
    role: Role = "user"

    # Normalize email input to lowercase without surrounding whitespace
    @field_validator("email", mode="before")
    @classmethod
    def normalize_email(cls, v: str) -> str:
        return _normalize_email(v)

    @model_validator(mode="after")
    def strip_name(self) -> "TenantCreate":
        self.name = self.name.strip()
        if not self.name:
            raise ValueError("name must not be blank")
        return self


# API response for a tenant account
class TenantRead(BaseModel):
    id: str
    name: str
    email: EmailStr
    role: Role

    model_config = ConfigDict(from_attributes=True)


# Request payload for logging in
class LoginRequest(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=8)

    @field_validator("email", mode="before")
    @classmethod
    def normalize_email(cls, v: str) -> str:
        return _normalize_email(v)


class RefreshRequest(BaseModel):
    refresh_token: str = Field(..., min_length=1)


# OAuth2-style token pair bundled with the current tenant profile
class TokenResponse(BaseModel):
    access_token: str
    refresh_token: str
    token_type: str = "bearer"
    tenant: TenantRead


# Admin view of a tenant with the size of its portfolio
class TenantDetail(TenantRead):
    property_count: int
    listing_count: int
    transaction_count: int
