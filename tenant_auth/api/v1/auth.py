"""
Authentication endpoints.

Thin adapter over the orchestrators: parse the JSON:API-style body, call the
service, map the result to a status code chosen per endpoint.

- POST /register  -> 201 | 422
- POST /login     -> 200 | 401
- POST /refresh   -> 200 | 401
- POST /logout    -> 204 | 400  (also DELETE /refresh)
"""

from __future__ import annotations

from typing import Any, Optional

import structlog
from fastapi import APIRouter, Depends, Request, Response
from fastapi.responses import JSONResponse
from pydantic import BaseModel
from sqlalchemy.ext.asyncio import AsyncSession

from tenant_auth.core.database import get_session
from tenant_auth.models.account import Account
from tenant_auth.models.user import User
from tenant_auth.services import authentication, registration
from tenant_auth.services.result import ServiceResult

log = structlog.get_logger()
router = APIRouter()


# ---------------------------------------------------------------------------
# Request bodies
# ---------------------------------------------------------------------------

class RegisterAttributes(BaseModel):
    email: Optional[str] = None
    password: Optional[str] = None
    name: Optional[str] = None
    account_name: Optional[str] = None


class LoginAttributes(BaseModel):
    email: Optional[str] = None
    password: Optional[str] = None


class RefreshAttributes(BaseModel):
    refresh_token: Optional[str] = None


class RegisterData(BaseModel):
    attributes: RegisterAttributes


class LoginData(BaseModel):
    attributes: LoginAttributes


class RefreshData(BaseModel):
    attributes: RefreshAttributes


class RegisterRequest(BaseModel):
    data: RegisterData


class LoginRequest(BaseModel):
    data: LoginData


class RefreshRequest(BaseModel):
    data: RefreshData


# ---------------------------------------------------------------------------
# Serialization
# ---------------------------------------------------------------------------

def serialize_user(user: User) -> dict[str, Any]:
    return {
        "id": str(user.public_id),
        "email": user.email,
        "name": user.name,
        "created_at": user.created_at.isoformat(),
    }


def serialize_account(account: Account) -> dict[str, Any]:
    return {
        "id": str(account.public_id),
        "name": account.name,
        "slug": account.slug,
        "plan": account.plan,
        "status": account.status,
        "created_at": account.created_at.isoformat(),
    }


def _authentication_body(result: ServiceResult, *, include_identity: bool = True) -> dict:
    attributes: dict[str, Any] = {}
    if include_identity:
        attributes["user"] = serialize_user(result.data["user"])
        attributes["account"] = serialize_account(result.data["account"])
    attributes.update(
        access_token=result.data["access_token"],
        refresh_token=result.data["refresh_token"],
        token_type="Bearer",
        expires_in=result.data["expires_in"],
    )
    return {"data": {"type": "authentication", "attributes": attributes}}


def _error_response(status_code: int, title: str, detail) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={"errors": [{"status": str(status_code), "title": title, "detail": detail}]},
    )


def _device_info(request: Request) -> dict[str, Optional[str]]:
    return {
        "user_agent": request.headers.get("user-agent"),
        "ip_address": request.client.host if request.client else None,
    }


# ---------------------------------------------------------------------------
# Endpoints
# ---------------------------------------------------------------------------

@router.post("/register", status_code=201)
async def register(body: RegisterRequest, session: AsyncSession = Depends(get_session)):
    """Create a user, its account and owner membership; returns a token pair."""
    attrs = body.data.attributes
    result = await registration.register(
        session,
        email=attrs.email,
        password=attrs.password,
        name=attrs.name,
        account_name=attrs.account_name,
    )
    if result.failure:
        return _error_response(422, "Registration Failed", result.errors)
    return JSONResponse(status_code=201, content=_authentication_body(result))


@router.post("/login")
async def login(
    body: LoginRequest,
    request: Request,
    session: AsyncSession = Depends(get_session),
):
    """Authenticate with email/password."""
    attrs = body.data.attributes
    result = await authentication.login(
        session, attrs.email, attrs.password, _device_info(request)
    )
    if result.failure:
        return _error_response(401, "Authentication Failed", result.errors)
    return _authentication_body(result)


@router.post("/refresh")
async def refresh(body: RefreshRequest, session: AsyncSession = Depends(get_session)):
    """Rotate a refresh token into a new token pair."""
    result = await authentication.refresh(session, body.data.attributes.refresh_token)
    if result.failure:
        return _error_response(401, "Token Refresh Failed", result.errors)
    return _authentication_body(result, include_identity=False)


@router.post("/logout", status_code=204)
@router.delete("/refresh", status_code=204)
async def logout(body: RefreshRequest, session: AsyncSession = Depends(get_session)):
    """Revoke a refresh token."""
    result = await authentication.logout(session, body.data.attributes.refresh_token)
    if result.failure:
        return _error_response(400, "Logout Failed", result.errors)
    return Response(status_code=204)
