"""Media library schemas: folders, uploaded items, and folder listings."""

from pydantic import BaseModel, Field, field_validator
from datetime import datetime
from typing import List, Literal, Optional

from .common import Breadcrumb


def _clean_folder_name(v: str) -> str:
    v = v.strip()
    if not v:
        raise ValueError("Folder name cannot be empty")
    if '/' in v:
        raise ValueError("Folder name cannot contain '/'")
    return v


class FolderCreate(BaseModel):
    name: str = Field(..., max_length=255)
    parent_id: Optional[int] = None

    @field_validator('name')
    @classmethod
    def validate_name(cls, v: str) -> str:
        return _clean_folder_name(v)


class FolderRename(BaseModel):
    name: str = Field(..., max_length=255)

    @field_validator('name')
    @classmethod
    def validate_name(cls, v: str) -> str:
        return _clean_folder_name(v)


class FolderResponse(BaseModel):
    id: int
    name: str
    parent_id: Optional[int] = None
    path: str
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class FolderDeleteResponse(BaseModel):
    """Counts of records removed by a cascading folder delete."""
    deleted_folders: int
    deleted_media: int


class MediaItemResponse(BaseModel):
    id: int
    name: str
    file_name: str
    mime_type: Optional[str] = None
    size: int
    folder_id: Optional[int] = None
    owner_id: str
    url: str
    preview_url: Optional[str] = None
    created_at: Optional[datetime] = None


class MediaMoveRequest(BaseModel):
    """Move a media item. ``folder_id=None`` moves it to the library root."""
    folder_id: Optional[int] = None


class LibraryEntry(BaseModel):
    """A folder or a file in a folder listing."""
    type: Literal["folder", "file"]
    id: int
    name: str
    parent_id: Optional[int] = None
    path: Optional[str] = None
    folder_id: Optional[int] = None
    file_name: Optional[str] = None
    mime_type: str = ""
    size: int = 0
    url: Optional[str] = None
    preview_url: Optional[str] = None
    created_at: Optional[datetime] = None


class FolderListing(BaseModel):
    items: List[LibraryEntry]
    total: int
    current_folder: Optional[FolderResponse] = None
    breadcrumbs: List[Breadcrumb] = []
