"""Disk storage for files attached to shared content."""

from __future__ import annotations

import os
import uuid
from pathlib import Path
from typing import Optional

from fastapi import UploadFile

from config import settings

CHUNK_SIZE = 1024 * 1024


class UploadTooLarge(Exception):
    """Raised when an upload exceeds CONTENT_MAX_UPLOAD_BYTES."""


def sanitize_filename(filename: Optional[str]) -> str:
    base = os.path.basename(filename or "upload")
    safe = "".join(ch if ch.isalnum() or ch in ("-", "_", ".") else "_" for ch in base)
    return safe or "upload"


async def save_upload(file: UploadFile, max_bytes: Optional[int] = None) -> Path:
    """Stream an upload to CONTENT_UPLOAD_DIR and return the stored path."""
    limit = int(max_bytes or settings.CONTENT_MAX_UPLOAD_BYTES)
    root = Path(settings.CONTENT_UPLOAD_DIR)
    root.mkdir(parents=True, exist_ok=True)
    destination = root / f"{uuid.uuid4()}-{sanitize_filename(file.filename)}"

    total_size = 0
    try:
        with destination.open("wb") as out:
            while True:
                chunk = await file.read(CHUNK_SIZE)
                if not chunk:
                    break
                total_size += len(chunk)
                if total_size > limit:
                    out.close()
                    destination.unlink(missing_ok=True)
                    raise UploadTooLarge(f"File too large. Max upload size is {limit // (1024 * 1024)}MB.")
                out.write(chunk)
    finally:
        await file.close()
    return destination


def file_exists(path: Optional[str]) -> bool:
    return bool(path) and Path(path).is_file()


def delete_file(path: Optional[str]) -> bool:
    """Remove a stored file. Returns False when there was nothing to remove.

    OSErrors other than a missing file propagate to the caller.
    """
    if not path:
        return False
    try:
        Path(path).unlink()
    except FileNotFoundError:
        return False
    return True
