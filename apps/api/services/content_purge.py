"""Delete a content item's backing file and tombstone its record."""

from __future__ import annotations

import logging

from models.content import Content
from services.content_store import ContentStore
from services.file_storage import delete_file

logger = logging.getLogger(__name__)


async def purge_content(store: ContentStore, item: Content, *, reason: str) -> bool:
    """Remove the file (best effort) then mark the record deleted.

    A file that cannot be removed is logged and the record is tombstoned
    anyway. Returns False when the record was already deleted.
    """
    if item.file_path:
        try:
            delete_file(item.file_path)
        except OSError as exc:
            logger.warning(
                "Could not delete file %s for content %s (%s): %s",
                item.file_path,
                item.public_id,
                reason,
                exc,
            )
    transitioned = await store.mark_deleted(item.id)
    if transitioned:
        logger.info("Deleted content %s (%s)", item.public_id, reason)
    return transitioned
