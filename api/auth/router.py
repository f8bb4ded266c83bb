"""
Account API endpoints.
"""

from __future__ import annotations

from fastapi import APIRouter, status

from . import schemas, service

router = APIRouter(prefix="/api/auth")


@router.post("/register", status_code=status.HTTP_201_CREATED)
async def register(request: schemas.RegisterRequest) -> schemas.RegisterResponse:
    return await service.register(request.name, request.email, request.password)


@router.post("/login")
async def login(request: schemas.LoginRequest) -> schemas.LoginResponse:
    return await service.login(request.email, request.password)
