"""
Pydantic schemas for car endpoints.
"""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field


class CarSummary(BaseModel):
    """
    Public projection returned right after a listing is created.
    """

    id: int
    title: str
    description: str
    images: list[str] = Field(default_factory=list)
    tags: list[str] = Field(default_factory=list)


class Car(CarSummary):
    user_id: int
    created_at: datetime | None = None
    updated_at: datetime | None = None


class SearchPage(BaseModel):
    cars: list[Car]
    total: int
    total_pages: int
    current_page: int
    limit: int
