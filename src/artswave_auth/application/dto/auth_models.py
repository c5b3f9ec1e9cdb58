"""Pydantic models for register/login HTTP contracts."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field


class CredentialsRequest(BaseModel):
    """Register/login request body.

    Fields stay optional here so presence and length rules are enforced by the
    authentication core, which reports them as 400 validation errors.
    """

    model_config = ConfigDict(extra="ignore")

    username: str | None = None
    password: str | None = None


class ResponseModel(BaseModel):
    """Base model exposing snake_case fields under camelCase JSON keys."""

    model_config = ConfigDict(populate_by_name=True)


class RegisterResponse(ResponseModel):
    """HTTP response model for a created account."""

    username: str
    created_at: datetime = Field(alias="createdAt")


class LoginResponse(ResponseModel):
    """HTTP response model for a successful login."""

    username: str
    last_login: datetime | None = Field(alias="lastLogin")
    token: str
    expires_at: datetime = Field(alias="expiresAt")


class CurrentUserResponse(ResponseModel):
    """HTTP response model for the session owner."""

    username: str
    created_at: datetime = Field(alias="createdAt")
    last_login: datetime | None = Field(alias="lastLogin")
