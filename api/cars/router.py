"""
FastAPI router for car listing endpoints.

All routes require a bearer token; the resolved account id is passed to the
service explicitly.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, File, Form, Path, Query, UploadFile, status

from auth import dependencies as auth_dependencies
from core.media import MediaClient

from . import service, uploads
from .dependencies import get_media_client

router = APIRouter(prefix="/api/cars")

# Ids are BIGSERIAL; anything outside that range can never match a row.
MAX_CAR_ID = 2**63 - 1


@router.post("", status_code=status.HTTP_201_CREATED)
async def add_car(
    title: str | None = Form(default=None),
    description: str | None = Form(default=None),
    tags: str | None = Form(default=None),
    images: list[UploadFile] | None = File(default=None),
    current_user: dict = Depends(auth_dependencies.get_current_user),
    media: MediaClient = Depends(get_media_client),
) -> dict:
    car = await service.add_car(
        owner_id=int(current_user["id"]),
        title=title,
        description=description,
        tags=tags,
        images=await uploads.read_images(images),
        media=media,
    )
    return {"success": True, "message": "Car added successfully", "car": car}


@router.get("")
async def get_user_cars(
    current_user: dict = Depends(auth_dependencies.get_current_user),
) -> dict:
    cars = await service.get_user_cars(owner_id=int(current_user["id"]))
    return {"success": True, "count": len(cars), "cars": cars}


@router.get("/search")
async def search_cars(
    keyword: str = Query(default="", max_length=500),
    page: str | None = None,
    limit: str | None = None,
    current_user: dict = Depends(auth_dependencies.get_current_user),
) -> dict:
    # page/limit stay strings so junk values fall back to defaults instead of a 400.
    result = await service.search_cars(
        owner_id=int(current_user["id"]),
        keyword=keyword,
        page=page,
        limit=limit,
    )
    return {
        "success": True,
        "count": len(result.cars),
        "total": result.total,
        "totalPages": result.total_pages,
        "currentPage": result.current_page,
        "cars": result.cars,
    }


@router.get("/{car_id}")
async def get_car_details(
    car_id: int = Path(..., ge=1, le=MAX_CAR_ID),
    current_user: dict = Depends(auth_dependencies.get_current_user),
) -> dict:
    car = await service.get_car_details(car_id, owner_id=int(current_user["id"]))
    return {"success": True, "car": car}


@router.put("/{car_id}")
async def update_car(
    car_id: int = Path(..., ge=1, le=MAX_CAR_ID),
    title: str | None = Form(default=None),
    description: str | None = Form(default=None),
    tags: str | None = Form(default=None),
    images: list[UploadFile] | None = File(default=None),
    current_user: dict = Depends(auth_dependencies.get_current_user),
    media: MediaClient = Depends(get_media_client),
) -> dict:
    car = await service.update_car(
        car_id,
        owner_id=int(current_user["id"]),
        title=title,
        description=description,
        tags=tags,
        images=await uploads.read_images(images),
        media=media,
    )
    return {"success": True, "message": "Car updated successfully", "car": car}


@router.delete("/{car_id}")
async def delete_car(
    car_id: int = Path(..., ge=1, le=MAX_CAR_ID),
    current_user: dict = Depends(auth_dependencies.get_current_user),
    media: MediaClient = Depends(get_media_client),
) -> dict:
    await service.delete_car(car_id, owner_id=int(current_user["id"]), media=media)
    return {"success": True, "message": "Car deleted successfully"}
