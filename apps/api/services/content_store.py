"""Persistence operations for shared content and its IP view records."""

from __future__ import annotations

import re
import uuid
from dataclasses import dataclass
from datetime import datetime
from typing import Any, List, Optional

from sqlalchemy import update
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select
from sqlalchemy.orm.attributes import set_committed_value

from config import settings
from models.content import Content
from models.content_view import ContentView
from services.expiration import as_utc, utc_now

_LEADING_INT = re.compile(r"\s*([+-]?\d+)")
# Largest value a BIGINT column holds.
MAX_STORABLE_MINUTES = 2**63 - 1

_INSERT_BY_DIALECT = {
    "sqlite": sqlite.insert,
    "postgresql": postgresql.insert,
}


def coerce_delete_after_minutes(value: Any) -> int:
    """Parse a timer duration; absent, invalid or non-positive input falls back to the default.

    There is no upper bound beyond what storage can hold; larger values raise ValueError.
    """
    default = max(int(settings.CONTENT_DEFAULT_DELETE_AFTER_MINUTES), 1)
    if value is None or isinstance(value, bool):
        return default
    match = _LEADING_INT.match(str(value))
    if not match:
        return default
    minutes = int(match.group(1))
    if minutes <= 0:
        return default
    if minutes > MAX_STORABLE_MINUTES:
        raise ValueError("deleteAfterMinutes is too large")
    return minutes


@dataclass
class ContentFlags:
    auto_delete: bool = False
    delete_after_minutes: Any = None
    burn_after_read: bool = False
    ip_restriction: bool = False


class ContentStore:
    """Row-level operations over `contents` and `content_views`.

    Every mutating call commits on its own; the conditional updates and the
    unique (content_id, ip_address) constraint are what keep concurrent
    requests and the reaper from stepping on each other.
    """

    def __init__(self, db: AsyncSession):
        self.db = db

    async def create(
        self,
        *,
        kind: str,
        content: Optional[str] = None,
        file_path: Optional[str] = None,
        file_name: Optional[str] = None,
        mime_type: Optional[str] = None,
        flags: Optional[ContentFlags] = None,
        now: Optional[datetime] = None,
    ) -> Content:
        flags = flags or ContentFlags()
        row = Content(
            id=str(uuid.uuid4()),
            public_id=str(uuid.uuid4()),
            kind=kind,
            content=content,
            file_path=file_path,
            file_name=file_name,
            mime_type=mime_type,
            auto_delete=bool(flags.auto_delete),
            delete_after_minutes=coerce_delete_after_minutes(flags.delete_after_minutes),
            burn_after_read=bool(flags.burn_after_read),
            ip_restriction=bool(flags.ip_restriction),
            first_viewed_at=None,
            created_at=now or utc_now(),
            deleted=False,
        )
        self.db.add(row)
        await self.db.commit()
        return row

    async def get_active(self, public_id: str) -> Optional[Content]:
        """Return the item unless it is deleted or unknown; both read as None."""
        result = await self.db.execute(
            select(Content).where(
                Content.public_id == public_id,
                Content.deleted.is_(False),
            )
        )
        return result.scalar_one_or_none()

    async def list_timer_candidates(self) -> List[Content]:
        """Live items whose auto-delete timer has started."""
        result = await self.db.execute(
            select(Content).where(
                Content.deleted.is_(False),
                Content.auto_delete.is_(True),
                Content.first_viewed_at.is_not(None),
            )
        )
        return list(result.scalars().all())

    async def mark_deleted(self, item_id: str) -> bool:
        """Tombstone an item. Returns False when it was already deleted."""
        result = await self.db.execute(
            update(Content)
            .where(Content.id == item_id, Content.deleted.is_(False))
            .values(deleted=True)
            .execution_options(synchronize_session=False)
        )
        await self.db.commit()
        return bool(result.rowcount)

    async def set_first_viewed(self, item: Content, timestamp: datetime) -> datetime:
        """Start the auto-delete timer unless another request already did.

        Returns the stored value, which belongs to whichever call won.
        """
        result = await self.db.execute(
            update(Content)
            .where(Content.id == item.id, Content.first_viewed_at.is_(None))
            .values(first_viewed_at=timestamp)
            .execution_options(synchronize_session=False)
        )
        await self.db.commit()
        if result.rowcount:
            stored = timestamp
        else:
            current = await self.db.execute(
                select(Content.first_viewed_at).where(Content.id == item.id)
            )
            stored = current.scalar_one_or_none() or timestamp
        stored = as_utc(stored)
        set_committed_value(item, "first_viewed_at", stored)
        return stored

    async def record_view(self, item_id: str, ip_address: str, now: Optional[datetime] = None) -> bool:
        """Insert-or-ignore a view record. Returns False for a duplicate (item, ip)."""
        values = {
            "id": str(uuid.uuid4()),
            "content_id": item_id,
            "ip_address": ip_address,
            "viewed_at": now or utc_now(),
        }
        insert_factory = _INSERT_BY_DIALECT.get(self.db.get_bind().dialect.name)
        if insert_factory is not None:
            stmt = insert_factory(ContentView).values(**values).on_conflict_do_nothing(
                index_elements=["content_id", "ip_address"]
            )
            result = await self.db.execute(stmt)
            await self.db.commit()
            return bool(result.rowcount)

        try:
            async with self.db.begin_nested():
                self.db.add(ContentView(**values))
        except IntegrityError:
            await self.db.commit()
            return False
        await self.db.commit()
        return True

    async def has_viewed(self, item_id: str, ip_address: str) -> bool:
        result = await self.db.execute(
            select(ContentView.id)
            .where(
                ContentView.content_id == item_id,
                ContentView.ip_address == ip_address,
            )
            .limit(1)
        )
        return result.scalar_one_or_none() is not None
