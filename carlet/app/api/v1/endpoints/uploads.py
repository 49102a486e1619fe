"""
File upload endpoint.

Stores a photo on disk and returns the URL under which it is served.
"""

from fastapi import APIRouter, Depends, File, UploadFile, status
from sqlalchemy.ext.asyncio import AsyncSession
from carlet.app.db.session import get_db
from carlet.app.core.dependencies import get_current_user
from carlet.app.schemas.upload import UploadResponse
from carlet.app.services.file_storage import FileStorage, get_file_storage, record_upload

router = APIRouter(prefix="/uploads", tags=["Uploads"])


@router.post("", response_model=UploadResponse, status_code=status.HTTP_201_CREATED)
async def upload_file(
    file: UploadFile = File(...),
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    storage: FileStorage = Depends(get_file_storage)
):
    url = storage.store(await file.read(), file.filename or "")
    await record_upload(db, file.filename or "", url)
    return UploadResponse(file_url=url)
