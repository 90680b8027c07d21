"""Category schemas."""

from pydantic import BaseModel, Field, field_validator
from datetime import datetime
from typing import Optional, List

from .common import Breadcrumb


def _clean_name(v: str) -> str:
    v = v.strip()
    if not v:
        raise ValueError("Name cannot be empty")
    return v


class CategoryFields(BaseModel):
    """Payload fields that do not affect the tree."""
    description: Optional[str] = None
    is_active: bool = True
    meta_title: Optional[str] = Field(None, max_length=255)
    meta_description: Optional[str] = Field(None, max_length=500)
    meta_keywords: Optional[str] = None
    og_image: Optional[str] = None
    color: Optional[str] = Field(None, max_length=7)
    icon: Optional[str] = Field(None, max_length=50)
    image_id: Optional[int] = None


class CategoryCreate(CategoryFields):
    """Schema for creating a category. ``slug`` is derived from ``name`` when omitted."""
    name: str = Field(..., max_length=255)
    slug: Optional[str] = Field(None, max_length=255)
    parent_id: Optional[int] = None
    order: int = Field(0, ge=0)

    @field_validator('name')
    @classmethod
    def validate_name(cls, v: str) -> str:
        return _clean_name(v)

    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "name": "Technology",
                    "parent_id": None,
                    "order": 0,
                    "description": "Articles about software and hardware",
                    "color": "#3366ff",
                }
            ]
        }
    }


class CategoryUpdate(BaseModel):
    """Partial update. Only fields present in the request body are applied.

    Sending ``"parent_id": null`` explicitly moves the category to the root.
    """
    name: Optional[str] = Field(None, max_length=255)
    slug: Optional[str] = Field(None, max_length=255)
    parent_id: Optional[int] = None
    order: Optional[int] = Field(None, ge=0)
    description: Optional[str] = None
    is_active: Optional[bool] = None
    meta_title: Optional[str] = Field(None, max_length=255)
    meta_description: Optional[str] = Field(None, max_length=500)
    meta_keywords: Optional[str] = None
    og_image: Optional[str] = None
    color: Optional[str] = Field(None, max_length=7)
    icon: Optional[str] = Field(None, max_length=50)
    image_id: Optional[int] = None

    @field_validator('name')
    @classmethod
    def validate_name(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return v
        return _clean_name(v)


class CategoryImage(BaseModel):
    id: int
    name: str
    url: str


class CategoryResponse(CategoryFields):
    """Category with its derived path and breadcrumbs."""
    id: int
    name: str
    slug: str
    parent_id: Optional[int] = None
    order: int = 0
    path: str
    depth: int = 0
    breadcrumbs: List[Breadcrumb] = []
    image: Optional[CategoryImage] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class CategoryOption(BaseModel):
    """Entry of the parent dropdown: ``name`` is the full display path."""
    id: int
    name: str
    level: int
