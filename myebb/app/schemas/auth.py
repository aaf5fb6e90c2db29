from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, EmailStr, Field


class UserProfile(BaseModel):
    id: int
    email: str
    name: str | None = None
    provider: str | None = None
    provider_id: str | None = None
    avatar_url: str | None = None
    created_at: datetime


class LoginRequest(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=1)


class RegisterRequest(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=1)
    name: str


class SocialLoginRequest(BaseModel):
    token: str = Field(..., min_length=1)


class LoginResponse(BaseModel):
    token: str
    user: UserProfile


class ProfileUpdateRequest(BaseModel):
    name: str | None = None
    avatar_url: str | None = None
