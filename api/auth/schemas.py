"""
Auth API schemas (request/response models).

Request fields are optional at the schema level so that missing fields reach
the service and come back as a single "Missing required fields" error.
"""

from __future__ import annotations

from pydantic import BaseModel, Field


class RegisterRequest(BaseModel):
    name: str | None = Field(default=None, max_length=200)
    email: str | None = Field(default=None, max_length=320)
    password: str | None = Field(default=None, max_length=128)


class LoginRequest(BaseModel):
    email: str | None = Field(default=None, max_length=320)
    password: str | None = Field(default=None, max_length=128)


class PublicUser(BaseModel):
    id: int
    name: str
    email: str


class RegisterResponse(BaseModel):
    message: str = "User registered successfully"
    token: str


class LoginResponse(BaseModel):
    token: str
    user: PublicUser
