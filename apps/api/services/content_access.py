"""Read path for shared content: who may see an item now, and what viewing it does.

A view walks these steps in order:

1. unknown or deleted item -> not found
2. IP-restricted and already seen from this address -> denied (item untouched)
3. auto-delete timer already past its deadline -> purge, report not found
4. first view under a timer -> start the timer
5. visible; burn-after-read items are purged once the response has been sent

Step 3 always looks at the stored first-view time, never at one set by the
same call, so an item cannot expire on the view that starts its timer.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession

from database import async_session_maker
from models.content import Content
from services.content_purge import purge_content
from services.content_store import ContentStore
from services.expiration import is_expired, remaining_seconds, should_burn, utc_now
from services.file_storage import file_exists
from services.view_tracker import check_and_record_view

logger = logging.getLogger(__name__)


class ViewStatus(str, Enum):
    NOT_FOUND = "not_found"
    DENIED_IP = "denied_ip"
    VISIBLE = "visible"


@dataclass
class ViewOutcome:
    status: ViewStatus
    item: Optional[Content] = None
    remaining_seconds: Optional[int] = None
    burn: bool = False
    expired_on_read: bool = False


async def view_content(
    db: AsyncSession,
    public_id: str,
    viewer_ip: str,
    now: Optional[datetime] = None,
) -> ViewOutcome:
    now = now or utc_now()
    store = ContentStore(db)

    item = await store.get_active(public_id)
    if item is None:
        return ViewOutcome(status=ViewStatus.NOT_FOUND)

    decision = await check_and_record_view(store, item, viewer_ip, now=now)
    if not decision.allowed:
        return ViewOutcome(status=ViewStatus.DENIED_IP, item=item)

    if is_expired(item, now):
        await purge_content(store, item, reason="expired_on_read")
        return ViewOutcome(status=ViewStatus.NOT_FOUND, expired_on_read=True)

    if item.auto_delete and item.first_viewed_at is None:
        await store.set_first_viewed(item, now)

    return ViewOutcome(
        status=ViewStatus.VISIBLE,
        item=item,
        remaining_seconds=remaining_seconds(item, now),
        burn=should_burn(item),
    )


async def burn_content(item_id: str) -> None:
    """Purge a burn-after-read item. Runs after the response was delivered.

    The view response carries only metadata, so a burned file item is gone
    before its bytes can be fetched from the download endpoint.
    """
    try:
        async with async_session_maker() as db:
            item = await db.get(Content, item_id)
            if item is None or item.deleted:
                return
            await purge_content(ContentStore(db), item, reason="burn_after_read")
    except Exception:
        logger.exception("Burn-after-read cleanup failed for content id=%s", item_id)


async def resolve_download(
    db: AsyncSession,
    public_id: str,
    now: Optional[datetime] = None,
) -> Optional[Content]:
    """Return the file-backed item if it may still be downloaded.

    Lazy expiry applies; IP restriction and the first-view timer do not.
    """
    now = now or utc_now()
    store = ContentStore(db)
    item = await store.get_active(public_id)
    if item is None:
        return None
    if is_expired(item, now):
        await purge_content(store, item, reason="expired_on_read")
        return None
    if not item.file_path or not file_exists(item.file_path):
        return None
    return item


async def delete_content(db: AsyncSession, public_id: str) -> bool:
    """Manual delete. Unknown and already deleted ids are a silent no-op."""
    store = ContentStore(db)
    item = await store.get_active(public_id)
    if item is None:
        return False
    return await purge_content(store, item, reason="manual")
