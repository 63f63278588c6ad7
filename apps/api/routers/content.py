"""
Router for self-destructing shared content.
"""

import logging
import os
from pathlib import Path
from typing import Any, Dict, Optional

from fastapi import APIRouter, BackgroundTasks, Depends, File, Form, Request, UploadFile
from fastapi.responses import FileResponse, JSONResponse
from sqlalchemy.ext.asyncio import AsyncSession

from config import settings
from database import get_db
from models.content import CONTENT_KINDS, Content
from routers.client_ip import client_ip
from services.content_access import (
    ViewStatus,
    burn_content,
    delete_content,
    resolve_download,
    view_content,
)
from services.content_store import ContentFlags, ContentStore, coerce_delete_after_minutes
from services.expiration import as_utc
from services.file_storage import UploadTooLarge, delete_file, save_upload

router = APIRouter()
logger = logging.getLogger(__name__)

NOT_FOUND_MESSAGE = "Content not found or has been deleted"
IP_DENIED_MESSAGE = "This content has already been viewed from your IP address"
TRUTHY_FORM_VALUES = {"true", "1", "on"}


def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"success": False, "error": message})


def _form_flag(value: Optional[str]) -> bool:
    return str(value or "").strip().lower() in TRUTHY_FORM_VALUES


def _public_url(public_id: str) -> str:
    return f"{settings.PUBLIC_VIEW_PATH.rstrip('/')}/{public_id}"


def _serialize_content(item: Content, remaining_seconds: Optional[int]) -> Dict[str, Any]:
    created_at = as_utc(item.created_at)
    return {
        "type": item.kind,
        "content": item.content,
        "fileName": item.file_name,
        "hasFile": bool(item.file_path),
        "autoDelete": bool(item.auto_delete),
        "burnAfterRead": bool(item.burn_after_read),
        "ipRestriction": bool(item.ip_restriction),
        "remainingSeconds": remaining_seconds,
        "createdAt": int(created_at.timestamp()) if created_at else None,
    }


def _validation_error(kind: str, content: Optional[str], file: Optional[UploadFile]) -> Optional[str]:
    has_file = file is not None
    has_content = bool((content or "").strip())
    if kind not in CONTENT_KINDS:
        return f"Unsupported content type '{kind}'. Use one of: {', '.join(CONTENT_KINDS)}."
    if not has_content and not has_file:
        return "Content or file is required"
    if kind == "file" and not has_file:
        return "A file is required for file content"
    if kind == "link":
        link = (content or "").strip()
        if not link.startswith("http://") and not link.startswith("https://"):
            return "Link must be an absolute http(s) URL"
    if has_file:
        mime_type = (file.content_type or "").lower()
        if mime_type not in {m.lower() for m in settings.CONTENT_ALLOWED_MIME_TYPES}:
            return "Only image files are allowed (jpeg, png, gif, webp)"
    return None


@router.post("")
async def create_content(
    content_type: Optional[str] = Form(None, alias="type"),
    content: Optional[str] = Form(None),
    auto_delete: Optional[str] = Form(None, alias="autoDelete"),
    delete_after_minutes: Optional[str] = Form(None, alias="deleteAfterMinutes"),
    burn_after_read: Optional[str] = Form(None, alias="burnAfterRead"),
    ip_restriction: Optional[str] = Form(None, alias="ipRestriction"),
    file: Optional[UploadFile] = File(None),
    db: AsyncSession = Depends(get_db),
):
    """Create a shared text, link or image with its expiration flags."""
    if file is not None and not file.filename:
        file = None
    kind = (content_type or "").strip().lower() or ("file" if file is not None else "text")

    problem = _validation_error(kind, content, file)
    if problem:
        if file is not None:
            await file.close()
        return _error(400, problem)

    try:
        minutes = coerce_delete_after_minutes(delete_after_minutes)
    except ValueError as exc:
        if file is not None:
            await file.close()
        return _error(400, str(exc))

    stored_path: Optional[Path] = None
    if file is not None:
        try:
            stored_path = await save_upload(file)
        except UploadTooLarge as exc:
            return _error(400, str(exc))
        except OSError:
            logger.exception("Failed to store uploaded file %s", file.filename)
            return _error(500, "Failed to store uploaded file")

    flags = ContentFlags(
        auto_delete=_form_flag(auto_delete),
        delete_after_minutes=minutes,
        burn_after_read=_form_flag(burn_after_read),
        ip_restriction=_form_flag(ip_restriction),
    )
    try:
        item = await ContentStore(db).create(
            kind=kind,
            content=content if content else None,
            file_path=str(stored_path) if stored_path else None,
            file_name=os.path.basename(file.filename) if file is not None else None,
            mime_type=(file.content_type or None) if file is not None else None,
            flags=flags,
        )
    except Exception:
        logger.exception("Failed to create content kind=%s", kind)
        if stored_path is not None:
            try:
                delete_file(str(stored_path))
            except OSError as exc:
                logger.warning("Could not remove orphaned upload %s: %s", stored_path, exc)
        return _error(500, "Failed to create content")

    return {"success": True, "uuid": item.public_id, "url": _public_url(item.public_id)}


@router.get("/{public_id}")
async def get_content(
    public_id: str,
    request: Request,
    background_tasks: BackgroundTasks,
    db: AsyncSession = Depends(get_db),
):
    """View an item, applying IP restriction, timers and burn-after-read."""
    try:
        outcome = await view_content(db, public_id, client_ip(request))
    except Exception:
        logger.exception("Failed to load content %s", public_id)
        return _error(500, "Failed to load content")

    if outcome.status == ViewStatus.NOT_FOUND:
        return _error(404, NOT_FOUND_MESSAGE)
    if outcome.status == ViewStatus.DENIED_IP:
        return _error(403, IP_DENIED_MESSAGE)

    if outcome.burn:
        # The purge writes from its own session; no read transaction may stay open here.
        await db.commit()
        # Starlette runs background tasks only after the response body is sent.
        background_tasks.add_task(burn_content, outcome.item.id)

    return {
        "success": True,
        "content": _serialize_content(outcome.item, outcome.remaining_seconds),
    }


@router.get("/{public_id}/download")
async def download_content_file(public_id: str, db: AsyncSession = Depends(get_db)):
    """Stream the attached file under its original name."""
    try:
        item = await resolve_download(db, public_id)
    except Exception:
        logger.exception("Failed to resolve download for content %s", public_id)
        return _error(500, "Failed to download file")

    if item is None:
        return _error(404, "File not found")
    return FileResponse(
        item.file_path,
        filename=item.file_name or os.path.basename(item.file_path),
        media_type=item.mime_type or "application/octet-stream",
    )


@router.delete("/{public_id}")
async def delete_content_item(public_id: str, db: AsyncSession = Depends(get_db)):
    """Manually delete an item. Repeated deletes succeed without side effects."""
    try:
        await delete_content(db, public_id)
    except Exception:
        logger.exception("Failed to delete content %s", public_id)
        return _error(500, "Failed to delete content")
    return {"success": True}
