from __future__ import annotations

import os
import time
from typing import Literal, Optional

import jwt
from fastapi import APIRouter, Depends, HTTPException, Header, status
from passlib.context import CryptContext
from sqlalchemy.orm import Session

from ..db import get_db
from .. import models, schemas
from ..rate_limit import rate_limit

router = APIRouter()

# Access and refresh tokens are signed with separate secrets so one cannot stand in for the other
JWT_SECRET: str = os.getenv("REALTY_JWT_SECRET", "dev-secret-change-me")
REFRESH_SECRET: str = os.getenv("REALTY_REFRESH_SECRET", "dev-refresh-secret-change-me")
JWT_ALG: str = "HS256"
JWT_TTL_SECONDS: int = int(os.getenv("JWT_TTL_SECONDS", str(60 * 60)))  # 1 hour
REFRESH_TTL_SECONDS: int = int(os.getenv("REFRESH_TTL_SECONDS", str(60 * 60 * 24 * 7)))  # 7 days
# Use bcrypt_sha256 to avoid bcrypt's 72-byte password limit and handle unicode safely.
pwd_context = CryptContext(schemes=["bcrypt_sha256"], deprecated="auto")

TokenType = Literal["access", "refresh"]


# ----------------
# Helpers
# ----------------
def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(password: str, password_hash: str) -> bool:
    return pwd_context.verify(password, password_hash)


def _secret_for(token_type: TokenType) -> str:
    return JWT_SECRET if token_type == "access" else REFRESH_SECRET


def create_token(*, tenant: models.Tenant, token_type: TokenType = "access") -> str:
    now = int(time.time())
    ttl = JWT_TTL_SECONDS if token_type == "access" else REFRESH_TTL_SECONDS
    payload = {
        "sub": tenant.id,
        "email": tenant.email,
        "role": tenant.role,
        "tenant_id": tenant.id,
        "type": token_type,
        "iat": now,
        "exp": now + ttl,
    }
    return jwt.encode(payload, _secret_for(token_type), algorithm=JWT_ALG)


def decode_token(token: str, token_type: TokenType = "access") -> dict:
    try:
        payload = jwt.decode(token, _secret_for(token_type), algorithms=[JWT_ALG])
    except jwt.ExpiredSignatureError as exc:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Token expired") from exc
    except jwt.InvalidTokenError as exc:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid token") from exc
    if payload.get("type") != token_type:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid token type")
    return payload


def issue_tokens(tenant: models.Tenant) -> schemas.TokenResponse:
    return schemas.TokenResponse(
        access_token=create_token(tenant=tenant, token_type="access"),
        refresh_token=create_token(tenant=tenant, token_type="refresh"),
        tenant=schemas.TenantRead.model_validate(tenant),
    )


# ----------------
# Dependencies
# ----------------
def bearer_token_from_auth_header(authorization: Optional[str]) -> str:
    if not authorization:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Authorization header missing")
    parts = authorization.split(" ", 1)
    if len(parts) != 2 or parts[0].lower() != "bearer":
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid Authorization header")
    return parts[1]


def get_current_tenant(
    db: Session = Depends(get_db),
    authorization: Optional[str] = Header(default=None, alias="Authorization"),
) -> models.Tenant:
    token = bearer_token_from_auth_header(authorization)
    payload = decode_token(token)
    tenant_id = payload.get("sub")
    if not tenant_id:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid token payload")
    tenant = db.get(models.Tenant, str(tenant_id))
    if not tenant:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Tenant not found")
    return tenant


def require_admin(tenant: models.Tenant = Depends(get_current_tenant)) -> models.Tenant:
    if tenant.role != "admin":
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Admin role required")
    return tenant


# ----------------
# Routes
# ----------------
@router.post(
    "/auth/signup",
    response_model=schemas.TokenResponse,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(rate_limit("signup"))],
)
def signup(payload: schemas.TenantCreate, db: Session = Depends(get_db)) -> schemas.TokenResponse:
    # Email is normalized by the schema; names and emails are both unique per tenant
    existing = (
        db.query(models.Tenant)
        .filter((models.Tenant.email == payload.email) | (models.Tenant.name == payload.name))
        .first()
    )
    if existing:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Tenant already registered")

    tenant = models.Tenant(
        name=payload.name,
        email=payload.email,
        password_hash=hash_password(payload.password),
        role=payload.role,
    )
    db.add(tenant)
    db.commit()
    db.refresh(tenant)
    return issue_tokens(tenant)


@router.post(
    "/auth/login",
    response_model=schemas.TokenResponse,
    dependencies=[Depends(rate_limit("login"))],
)
def login(payload: schemas.LoginRequest, db: Session = Depends(get_db)) -> schemas.TokenResponse:
    tenant = db.query(models.Tenant).filter(models.Tenant.email == payload.email).first()
    if not tenant or not verify_password(payload.password, tenant.password_hash):
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid credentials")
    return issue_tokens(tenant)


@router.post("/auth/refresh", response_model=schemas.TokenResponse)
def refresh(payload: schemas.RefreshRequest, db: Session = Depends(get_db)) -> schemas.TokenResponse:
    claims = decode_token(payload.refresh_token, token_type="refresh")
    tenant = db.get(models.Tenant, str(claims.get("sub")))
    if not tenant:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid refresh token")
    return issue_tokens(tenant)


@router.get("/auth/me", response_model=schemas.TenantRead)
def me(tenant: models.Tenant = Depends(get_current_tenant)) -> models.Tenant:
    return tenant
