"""API routes: JSON for uploads and category listings."""
import logging
from datetime import datetime, timezone
from typing import Annotated

from fastapi import APIRouter, Depends, File, Form, UploadFile
from fastapi.concurrency import run_in_threadpool

from app.core.config import Settings
from app.core.security import TokenIdentity
from app.routers.deps import get_app_settings, get_pipeline, upload_gate
from app.schemas.files import StoredFileSchema, UploadOutSchema
from app.services.ingestion import IngestionPipeline
from app.services.storage import list_category_files

logger = logging.getLogger(__name__)

router = APIRouter(tags=["api"])


@router.get("/test")
async def api_test(settings: Annotated[Settings, Depends(get_app_settings)]):
    """Smoke check for API clients."""
    return {
        "message": "API is working!",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "server": settings.app_name,
    }


@router.get("/list-files/{folder}", response_model=list[str])
async def list_files(
    folder: str,
    settings: Annotated[Settings, Depends(get_app_settings)],
):
    """Filenames stored in one category (dotfiles excluded)."""
    return await run_in_threadpool(list_category_files, settings.public_dir, folder)


@router.post("/upload", response_model=UploadOutSchema)
async def upload(
    pipeline: Annotated[IngestionPipeline, Depends(get_pipeline)],
    identity: Annotated[TokenIdentity | None, Depends(upload_gate)],
    file: Annotated[UploadFile | None, File()] = None,
    filename: Annotated[UploadFile | None, File()] = None,  # legacy form field name
    category: Annotated[str | None, Form()] = None,
):
    """Stage, validate and place one file; returns its public URL."""
    upload_file = file or filename
    stored = await run_in_threadpool(
        pipeline.ingest,
        upload_file.file if upload_file else None,
        upload_file.filename if upload_file else None,
        upload_file.content_type if upload_file else None,
        category,
    )
    if identity is not None:
        logger.info("Upload %s by user id=%s", stored.public_url, identity.user_id)

    return UploadOutSchema(
        success=True,
        message="File uploaded successfully",
        file=StoredFileSchema(
            original_name=stored.original_name,
            filename=stored.assigned_name,
            category=stored.category.value,
            size=stored.size_bytes,
            mimetype=stored.mime_type,
            url=stored.public_url,
        ),
    )
