"""
Auth API routes — OTP request, user creation, login, current session.

Route prefix: /auth
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, status
from pydantic import BaseModel, Field

from auth.dependencies import get_auth_context, get_current_claims
from auth.jwt import SessionClaims
from core.context import AuthContext
from core.login import login_user
from core.registration import register_user

logger = logging.getLogger(__name__)

router = APIRouter(tags=["auth"])


# ── Request / response schemas ─────────────────────────────────────────


class OtpRequest(BaseModel):
    email: str = Field(..., min_length=3, max_length=255)


class CreateUserRequest(BaseModel):
    name: str = Field(..., min_length=1, max_length=128)
    email: str = Field(..., min_length=3, max_length=255)
    role_id: Optional[int] = None  # accepted, never applied
    password: str = Field(..., min_length=1, max_length=128)
    otp: int = Field(..., ge=0)


class LoginRequest(BaseModel):
    email: str
    password: str


class MessageResponse(BaseModel):
    message: str


class CreateUserResponse(BaseModel):
    message: str
    user_id: int


class TokenResponse(BaseModel):
    token: str
    token_type: str = "bearer"


class SessionResponse(BaseModel):
    email: str
    expires_at: datetime


# ── Endpoints ──────────────────────────────────────────────────────────


@router.post("/otp", response_model=MessageResponse)
async def send_otp(
    req: OtpRequest,
    ctx: AuthContext = Depends(get_auth_context),
) -> Dict[str, Any]:
    """Issue a one-time code for the address and deliver it out of band."""
    await ctx.otp.issue(req.email)
    return {"message": "Otp Sent"}


@router.post(
    "/user/create",
    response_model=CreateUserResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create_user(
    req: CreateUserRequest,
    ctx: AuthContext = Depends(get_auth_context),
) -> Dict[str, Any]:
    """Register a new user after checking the emailed code."""
    user_id = await register_user(
        ctx,
        name=req.name,
        email=req.email,
        password=req.password,
        otp=req.otp,
        role_id=req.role_id,
    )
    return {"message": "User Created", "user_id": user_id}


@router.post("/user/login", response_model=TokenResponse)
async def login(
    req: LoginRequest,
    ctx: AuthContext = Depends(get_auth_context),
) -> Dict[str, Any]:
    """Login with email + password."""
    token = await login_user(ctx, email=req.email, password=req.password)
    return {"token": token, "token_type": "bearer"}


@router.get("/me", response_model=SessionResponse)
async def me(claims: SessionClaims = Depends(get_current_claims)) -> Dict[str, Any]:
    return {"email": claims.email, "expires_at": claims.expires_at}
