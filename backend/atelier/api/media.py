"""Media library API: folder tree operations, uploads, listing, download.

Folder routes are registered before the ``/{media_id}`` routes so that
``/api/media/folders/...`` never resolves to a media item.
"""

import logging
from fastapi import APIRouter, Depends, File, Form, Query, Response, UploadFile
from fastapi.responses import FileResponse
from sqlalchemy.orm import Session
from typing import List, Optional

from ..core.auth import AuthContext, require_admin
from ..database import get_db
from ..schemas.common import Breadcrumb, MoveRequest
from ..schemas.media import (
    FolderCreate,
    FolderDeleteResponse,
    FolderListing,
    FolderRename,
    FolderResponse,
    MediaItemResponse,
    MediaMoveRequest,
)
from ..services import MediaFolderService, MediaService
from ..services.storage import LocalMediaStorage, get_storage

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/media", tags=["media"])


# -- Folders ----------------------------------------------------------------

@router.post("/folders", response_model=FolderResponse, status_code=201)
def create_folder(
    data: FolderCreate,
    db: Session = Depends(get_db),
    storage: LocalMediaStorage = Depends(get_storage),
    auth: AuthContext = Depends(require_admin),
):
    """Create a folder. Sibling names must be unique (409)."""
    return MediaFolderService(db, storage).create_folder(data, auth)


@router.put("/folders/{folder_id}", response_model=FolderResponse)
def rename_folder(
    folder_id: int,
    data: FolderRename,
    db: Session = Depends(get_db),
    storage: LocalMediaStorage = Depends(get_storage),
    auth: AuthContext = Depends(require_admin),
):
    """Rename a folder; stored paths of the whole subtree follow."""
    return MediaFolderService(db, storage).rename_folder(folder_id, data.name, auth)


@router.put("/folders/{folder_id}/move", response_model=FolderResponse)
def move_folder(
    folder_id: int,
    request: MoveRequest,
    db: Session = Depends(get_db),
    storage: LocalMediaStorage = Depends(get_storage),
    auth: AuthContext = Depends(require_admin),
):
    return MediaFolderService(db, storage).move_folder(folder_id, request.parent_id, auth)


@router.delete("/folders/{folder_id}", response_model=FolderDeleteResponse)
def delete_folder(
    folder_id: int,
    db: Session = Depends(get_db),
    storage: LocalMediaStorage = Depends(get_storage),
    auth: AuthContext = Depends(require_admin),
):
    """Delete a folder with all subfolders and the media inside them."""
    return MediaFolderService(db, storage).delete_folder(folder_id, auth)


@router.get("/folders/{folder_id}/breadcrumbs", response_model=List[Breadcrumb])
def folder_breadcrumbs(
    folder_id: int,
    db: Session = Depends(get_db),
    storage: LocalMediaStorage = Depends(get_storage),
    auth: AuthContext = Depends(require_admin),
):
    return MediaFolderService(db, storage).breadcrumbs(folder_id)


@router.get("/folders/{folder_id}/descendants", response_model=List[FolderResponse])
def folder_descendants(
    folder_id: int,
    db: Session = Depends(get_db),
    storage: LocalMediaStorage = Depends(get_storage),
    auth: AuthContext = Depends(require_admin),
):
    return MediaFolderService(db, storage).descendants(folder_id)


# -- Media items ------------------------------------------------------------

@router.get("", response_model=FolderListing)
def list_media(
    folder: Optional[int] = Query(None, description="Folder id; omitted for the library root"),
    search: Optional[str] = Query(None),
    type: Optional[str] = Query(None, description="MIME major type, e.g. 'image'"),
    order_by: str = Query("name", pattern="^(name|date|size|type)$"),
    order_dir: str = Query("asc", pattern="^(asc|desc)$"),
    db: Session = Depends(get_db),
    storage: LocalMediaStorage = Depends(get_storage),
    auth: AuthContext = Depends(require_admin),
):
    """Folders and files of one folder, merged and sorted together."""
    return MediaService(db, storage).list_folder(folder, search, type, order_by, order_dir)


@router.post("", response_model=MediaItemResponse, status_code=201)
def upload_media(
    file: UploadFile = File(...),
    folder_id: Optional[int] = Form(None),
    db: Session = Depends(get_db),
    storage: LocalMediaStorage = Depends(get_storage),
    auth: AuthContext = Depends(require_admin),
):
    """Upload one file, optionally into a folder. The caller becomes its owner."""
    service = MediaService(db, storage)
    item = service.upload(file.filename, file.content_type, file.file, folder_id, auth)
    return service.describe(item)


@router.get("/{media_id}", response_model=MediaItemResponse)
def get_media(
    media_id: int,
    db: Session = Depends(get_db),
    storage: LocalMediaStorage = Depends(get_storage),
    auth: AuthContext = Depends(require_admin),
):
    service = MediaService(db, storage)
    return service.describe(service.get_media(media_id))


@router.get("/{media_id}/download")
def download_media(
    media_id: int,
    conversion: Optional[str] = Query(None),
    db: Session = Depends(get_db),
    storage: LocalMediaStorage = Depends(get_storage),
    auth: AuthContext = Depends(require_admin),
):
    path, item = MediaService(db, storage).download(media_id, conversion)
    return FileResponse(path, media_type=item.mime_type, filename=item.file_name)


@router.post("/{media_id}/move", response_model=MediaItemResponse)
def move_media(
    media_id: int,
    request: MediaMoveRequest,
    db: Session = Depends(get_db),
    storage: LocalMediaStorage = Depends(get_storage),
    auth: AuthContext = Depends(require_admin),
):
    service = MediaService(db, storage)
    return service.describe(service.move_media(media_id, request.folder_id, auth))


@router.delete("/{media_id}", status_code=204)
def delete_media(
    media_id: int,
    db: Session = Depends(get_db),
    storage: LocalMediaStorage = Depends(get_storage),
    auth: AuthContext = Depends(require_admin),
):
    """Delete a media item and its stored files."""
    MediaService(db, storage).delete_media(media_id, auth)
    return Response(status_code=204)
