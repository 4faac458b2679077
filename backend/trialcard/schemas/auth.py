"""Schemas for login, refresh and verified token claims."""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field


class LoginRequest(BaseModel):
    # optional so missing credentials reach the handler and map to a 400
    username: str | None = None
    password: str | None = None


class RefreshRequest(BaseModel):
    refresh_token: str | None = Field(default=None, alias="refreshToken")

    model_config = ConfigDict(populate_by_name=True)


class TokenClaims(BaseModel):
    """Identity attached to a request once its token verifies."""

    user_id: int
    username: str
    department_id: int | None = None
    role: str | None = None
    iat: int | None = None
    exp: int | None = None

    model_config = ConfigDict(frozen=True)


class UserSummary(BaseModel):
    user_id: int
    username: str
    full_name: str | None = None
    email: str | None = None
    department_id: int | None = None
    department: str | None = None
    role: str
    needsPasswordChange: bool = False


class LoginResponse(BaseModel):
    success: bool = True
    token: str
    refreshToken: str
    user: UserSummary
    needsEmailVerification: bool
    needsPasswordChange: bool
    expiresIn: str
    message: str


class RefreshResponse(BaseModel):
    success: bool = True
    token: str


class DepartmentOut(BaseModel):
    department_id: int
    department_name: str
    model_config = ConfigDict(from_attributes=True)


class UserCreate(BaseModel):
    username: str = Field(min_length=1, max_length=50)
    password: str = Field(min_length=6)
    full_name: str | None = None
    email: str | None = None
    role: str = "User"
    department_id: int | None = None
    machine_shop_user_type: Literal["N/A", "NPD", "REGULAR"] = "N/A"
    needs_password_change: bool = True
